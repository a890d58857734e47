"""Commit helpers translating driver failures into seating errors."""
import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session

from seatdesk.core.errors import ConflictError, StoreUnavailableError

logger = logging.getLogger(__name__)


@contextmanager
def committing(db: Session, conflict_message: str, **conflict_detail) -> Iterator[Session]:
    """
    Run the writes in the block and commit them.

    A uniqueness violation means another request won the race for the same
    seat or subscriber and surfaces as ConflictError; any other driver error
    surfaces as StoreUnavailableError. The session is rolled back either way.
    """
    try:
        yield db
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Unique constraint rejected write: %s (%s)", conflict_message, exc.orig)
        raise ConflictError(conflict_message, conflict_detail) from exc
    except DBAPIError as exc:
        db.rollback()
        logger.error("Store failure during write: %s", exc)
        raise StoreUnavailableError() from exc
    except Exception:
        db.rollback()
        raise


@contextmanager
def reading(db: Session) -> Iterator[Session]:
    try:
        yield db
    except DBAPIError as exc:
        db.rollback()
        logger.error("Store failure during read: %s", exc)
        raise StoreUnavailableError() from exc
