"""Logging setup shared by the API process and the Celery worker"""
import logging
import sys
from rivo_scheduling.config.settings import get_settings

# Framework loggers that drown out booking and notification logs
NOISY_LOGGERS = [
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "sqlalchemy.orm",
    "alembic",
    "celery",
    "kombu",
    "httpx",
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
]


def setup_logging(verbose=True):
    """
    Configure the root logger.

    verbose: LOG_LEVEL for everything; otherwise WARNING, with the
    framework loggers cut down to errors.
    """
    settings = get_settings()

    if verbose:
        level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    if not verbose:
        for name in NOISY_LOGGERS:
            logger = logging.getLogger(name)
            logger.setLevel(logging.ERROR)
            logger.propagate = False
