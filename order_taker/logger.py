"""Logging setup for the order-taker application."""

from __future__ import annotations

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from order_taker.config import LOG_DIR, LOG_LEVEL

LOGGER_NAME = "order_taker"


def setup_logger(
    log_dir: str | Path | None = None,
    level: str | None = None,
    console: bool = False,
) -> logging.Logger:
    """
    Configure the package logger once and return it.

    Log records go to a file rotated at midnight (seven days kept). Console
    output is off by default because the Textual UI owns the terminal; the
    one-shot report printer turns it on.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel((level or LOG_LEVEL).upper())

    # Calling setup_logger() again must not stack handlers.
    if logger.handlers:
        return logger

    log_path = Path(log_dir if log_dir is not None else LOG_DIR)
    log_path.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = TimedRotatingFileHandler(
        filename=log_path / "order-taker.log",
        when="midnight",
        interval=1,
        backupCount=7,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    logger.info("Logger initialized (daily rotation enabled)")
    return logger
