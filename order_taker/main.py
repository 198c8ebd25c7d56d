"""Entry point for order-taker: interactive reports or a one-shot printout."""

from __future__ import annotations

import argparse
import json
from datetime import datetime
from functools import partial

from rich.console import Console

from order_taker.config import CURRENCY, DB_PATH
from order_taker.data import CURRENCIES, category_lookup
from order_taker.logger import setup_logger
from order_taker.persistence import bootstrap_schema, import_records, load_menu_items, load_orders
from order_taker.rendering import render_report
from order_taker.reports import ReportRange, build_report
from order_taker.reports_app import ReportsApp

RANGE_CHOICES = [report_range.value for report_range in ReportRange]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="order-taker", description="Sales reports for recorded orders.")
    parser.add_argument("--db", default=DB_PATH, help="SQLite record store path (default: %(default)s)")
    parser.add_argument("--currency", default=CURRENCY, choices=sorted(CURRENCIES), help="display currency")
    once = parser.add_mutually_exclusive_group()
    once.add_argument("--print", dest="print_range", choices=RANGE_CHOICES, help="print one report and exit")
    once.add_argument("--json", dest="json_range", choices=RANGE_CHOICES, help="dump one report as JSON and exit")
    once.add_argument("--import", dest="import_path", metavar="FILE", help="load an orders/menu JSON export and exit")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Run the Textual reports app, print a single report, or import records."""
    args = build_parser().parse_args(argv)
    one_shot = args.print_range or args.json_range
    logger = setup_logger(console=bool(one_shot or args.import_path))

    bootstrap_schema(args.db)

    if args.import_path:
        with open(args.import_path, encoding="utf-8") as fh:
            records = json.load(fh)
        if isinstance(records, list):
            records = {"orders": records}
        orders, menu_items = import_records(records, db_path=args.db)
        Console().print(f"Imported {orders} orders and {menu_items} menu items")
        return

    if not one_shot:
        ReportsApp(
            load_orders=partial(load_orders, db_path=args.db),
            load_menu=partial(load_menu_items, db_path=args.db),
            currency=args.currency,
        ).run()
        return

    snapshot = build_report(
        load_orders(db_path=args.db),
        one_shot,
        datetime.now().astimezone(),
        category_lookup(load_menu_items(db_path=args.db)),
    )
    logger.info("report range=%s orders=%d", snapshot.report_range.value, snapshot.metrics.total_orders)

    console = Console()
    if args.json_range:
        console.print_json(data=snapshot.to_dict())
    else:
        console.print(render_report(snapshot, args.currency))


if __name__ == "__main__":
    main()
