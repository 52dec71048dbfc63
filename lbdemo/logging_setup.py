from __future__ import annotations

import logging
import os
import sys
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from .config import TIMEZONE

_TZ = ZoneInfo(TIMEZONE)


def format_time(dt: datetime) -> str:
    """``2006/01/02 15:04:05.000`` style timestamp in the display zone."""
    local = dt.astimezone(_TZ)
    return local.strftime("%Y/%m/%d %H:%M:%S.") + f"{local.microsecond // 1000:03d}"


def current_time() -> str:
    return format_time(datetime.now(_TZ))


class LocalTimeFormatter(logging.Formatter):
    """Prefix every record with a millisecond timestamp in the display zone."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s - %(message)s")

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:  # noqa: N802 - logging API
        return format_time(datetime.fromtimestamp(record.created, _TZ))


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure the ``lbdemo`` logger once.
    Level precedence:
      - explicit `level` arg
      - env LOG_LEVEL
      - default INFO
    """
    logger = logging.getLogger("lbdemo")
    if getattr(logger, "_lbdemo_configured", False):
        return

    lvl_name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    lvl = logging.getLevelName(lvl_name)
    if not isinstance(lvl, int):
        lvl = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(LocalTimeFormatter())

    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(lvl)
    logger._lbdemo_configured = True  # type: ignore[attr-defined]


def get_logger(name: str) -> logging.Logger:
    """Get a module logger under the ``lbdemo`` namespace."""
    if not name.startswith("lbdemo"):
        name = f"lbdemo.{name}"
    return logging.getLogger(name)
