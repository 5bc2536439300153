"""
Centralized logging configuration.

Modules obtain their logger with ``logging.getLogger(__name__)``; the app
factory calls ``configure_logging`` once at startup.
"""
from __future__ import annotations

import logging
import sys

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_configured = False


# PUBLIC_INTERFACE
def configure_logging(level: str = "INFO") -> None:
    """Install a stdout handler on the root logger. Later calls only adjust the level."""
    global _configured
    root = logging.getLogger()
    numeric = logging.getLevelName(level.upper())
    root.setLevel(numeric if isinstance(numeric, int) else logging.INFO)
    if _configured:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, _DATE_FORMAT))
    root.addHandler(handler)
    _configured = True
