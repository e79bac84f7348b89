# app/services/transaction.py
"""
Request-scoped unit of work.
Every public engine operation runs through run_in_transaction(): one commit on success,
rollback + bounded retry on optimistic-lock / race conflicts, ConcurrencyConflict
when the retries run out. Engine errors and genuine constraint violations roll back
and propagate untouched.
"""

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from app.config import settings
from app.exceptions import ConcurrencyConflict
from app.utils.logger import get_logger

logger = get_logger(__name__, "TX")

# Unique violations a concurrent twin request can produce.
# PostgreSQL names the constraint, SQLite lists the columns.
RACE_CONSTRAINTS = (
    "uq_user_achievement",
    "user_achievements.user_id, user_achievements.achievement_id",
)
# serialization_failure, deadlock_detected
RETRYABLE_PGCODES = ("40001", "40P01")


def is_retryable(exc: Exception) -> bool:
    if isinstance(exc, StaleDataError):
        return True
    if isinstance(exc, IntegrityError):
        message = str(exc.orig)
        return any(name in message for name in RACE_CONSTRAINTS)
    if isinstance(exc, OperationalError):
        return (getattr(exc.orig, "pgcode", None) in RETRYABLE_PGCODES
                or "database is locked" in str(exc.orig))
    return False


def run_in_transaction(db: Session, operation, *args, **kwargs):
    attempts = max(1, settings.MAX_TRANSACTION_RETRIES)
    name = getattr(operation, "__name__", "operation").lstrip("_")

    for attempt in range(1, attempts + 1):
        try:
            result = operation(db, *args, **kwargs)
            db.commit()
            return result
        except Exception as exc:
            db.rollback()
            if not is_retryable(exc):
                raise
            logger.warning(f"{name} conflict on attempt {attempt}/{attempts}: {exc.__class__.__name__}")

    raise ConcurrencyConflict(name, attempts)
