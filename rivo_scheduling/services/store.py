# ============================================================================
# rivo_scheduling/services/store.py
# Data-store failure handling shared by the service layer
# ============================================================================
from contextlib import contextmanager
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rivo_scheduling.core.exceptions import StoreError

logger = logging.getLogger(__name__)


@contextmanager
def store_errors(db: Session, action: str):
    """
    Roll back and re-raise SQLAlchemy failures as StoreError.

    The driver message goes to the log only; callers see "Failed to <action>".
    """
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Error trying to {action}: {exc}", exc_info=True)
        raise StoreError(f"Failed to {action}") from exc
