"""Centralized logging configuration."""

import logging
from typing import Optional

from config import settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s  %(message)s"

# Third-party loggers that drown out sync progress at INFO.
QUIET_LOGGERS = (
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "httpx",
    "httpcore",
    "uvicorn.access",
)


def setup_logging(level: Optional[str] = None) -> None:
    """Configure logging for the API process and the scheduler script.

    The root level comes from ``level`` when given, else LOG_LEVEL.
    The upstream transport logs under ``integrations`` and follows
    PMS_LOG_LEVEL when that is set, so request retries can be traced
    without turning on DEBUG everywhere.
    """
    root_level = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        level=getattr(logging, root_level),
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    transport = logging.getLogger("integrations")
    if settings.PMS_LOG_LEVEL:
        transport.setLevel(getattr(logging, settings.PMS_LOG_LEVEL))
    else:
        transport.setLevel(logging.NOTSET)
