"""Translation of SQLAlchemy failures into StorageError."""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from incident_bot.core.exceptions import StorageError
from incident_bot.core.logging import get_logger

logger = get_logger(__name__)


@contextmanager
def storage_guard(db: Session, operation: str) -> Iterator[None]:
    """
    Roll the session back and raise StorageError on any database failure.

    Usage:
        with storage_guard(self.db, "append_timeline_event"):
            self.db.add(event)
            self.db.commit()
    """
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("storage_operation_failed", operation=operation, error=str(e))
        raise StorageError(f"Database operation failed: {operation}", operation=operation) from e
