# backend/services/unit_of_work.py
import logging
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from database import transaction
from services.errors import InventoryError, TransactionFailure
from services.uniqueness import duplicate_from_integrity_error

logger = logging.getLogger(__name__)


@contextmanager
def atomic(db: Session, category=None, values: dict = None):
    """database.transaction plus translation of storage errors.

    Domain errors pass through untouched (the rollback has already happened).
    UNIQUE violations on the category's columns become DuplicateFieldError,
    anything else from SQLAlchemy becomes TransactionFailure.
    """
    try:
        with transaction(db):
            yield db
    except InventoryError:
        raise
    except IntegrityError as exc:
        duplicate = duplicate_from_integrity_error(exc, category, values)
        if duplicate is not None:
            raise duplicate from exc
        logger.exception("Integrity error, transaction rolled back")
        raise TransactionFailure(str(exc.orig)) from exc
    except SQLAlchemyError as exc:
        logger.exception("Storage error, transaction rolled back")
        raise TransactionFailure() from exc
