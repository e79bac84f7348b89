# app/utils/logger.py
"""
Centralised logging configuration for the entire application.
Logs to console and to a rotating file in /logs/.

Engine modules log through a component adapter so every line carries its tag:

    logger = get_logger(__name__, "REPORT")
    logger.info(f"{report.id} verified")    # -> ... | [REPORT] 12 verified
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from app.config import settings

LOG_LEVEL = settings.LOG_LEVEL.upper()
LOG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "logs")
LOG_FILE = "ecosmart.log"

# Third-party loggers that drown out engine transitions at DEBUG
QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "urllib3")

_configured = False


class ComponentAdapter(logging.LoggerAdapter):
    """Prefixes each message with `[COMPONENT]` and exposes the tag as `record.component`."""

    def process(self, msg, kwargs):
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("component", self.extra["component"])
        kwargs["extra"] = extra
        return f"[{self.extra['component']}] {msg}", kwargs


def _configure_root_logger():
    global _configured
    if _configured:
        return
    _configured = True
    os.makedirs(LOG_DIR, exist_ok=True)

    fmt = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler()
    console.setLevel(LOG_LEVEL)
    console.setFormatter(fmt)

    # Rotating file handler: keeps last 10 x 5MB log files
    file_handler = RotatingFileHandler(
        filename=os.path.join(LOG_DIR, LOG_FILE),
        maxBytes=5 * 1024 * 1024,
        backupCount=10,
        encoding="utf-8",
    )
    file_handler.setLevel(LOG_LEVEL)
    file_handler.setFormatter(fmt)

    root = logging.getLogger()
    root.setLevel(LOG_LEVEL)
    root.addHandler(console)
    root.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str, component: str = None):
    """
    Get a named logger. Call this at the top of every module.
    With `component`, returns an adapter that tags every line, e.g. [SCHEDULE].
    """
    _configure_root_logger()
    logger = logging.getLogger(name)
    if component:
        return ComponentAdapter(logger, {"component": component.upper()})
    return logger
