"""
Logger helpers for browserdriver.

Handlers, formatters and levels belong to the test suite using the driver; this
module only hands out named loggers and attaches structured fields to records.
"""
import logging
from typing import Any


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_with_fields(logger: logging.Logger, level: int, msg: str, **fields: Any):
    """Log ``msg`` with ``fields`` appended as ``key=value`` pairs.

    The fields are also set on the record as ``extra_fields`` so a JSON
    formatter can emit them as separate keys.
    """
    if not logger.isEnabledFor(level):
        return
    if fields:
        msg = f"{msg} ({' '.join(f'{key}={value}' for key, value in fields.items())})"
    logger.log(level, msg, extra={"extra_fields": fields})
