# backend/services/uniqueness.py
"""Pre-transaction duplicate checks plus mapping of storage UNIQUE violations.

The pre-check only exists to give a readable error early; the UNIQUE
constraints on the tables decide when two requests race.
"""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from services.errors import DuplicateFieldError

logger = logging.getLogger(__name__)

LIVE_ASSIGNMENT_STATUSES = ("active", "returned")


def check_unique(db: Session, category, values: dict, exclude_id: Optional[int] = None) -> None:
    model = category.model
    for name in category.unique_fields:
        value = values.get(name)
        if value in (None, ""):
            continue
        q = db.query(model.id).filter(getattr(model, name) == value)
        if exclude_id is not None:
            q = q.filter(model.id != exclude_id)
        if q.first() is not None:
            raise DuplicateFieldError(category.name, name, value)


def check_single_assignment(db: Session, category, employee_id: int, stock_item_id: int,
                            exclude_id: Optional[int] = None) -> None:
    """An employee holds at most one live unit of the same stock item."""
    if not category.single_assignment or employee_id is None or stock_item_id is None:
        return
    model = category.model
    q = db.query(model.id).filter(
        model.employee_id == employee_id,
        model.stock_item_id == stock_item_id,
        model.status.in_(LIVE_ASSIGNMENT_STATUSES),
    )
    if exclude_id is not None:
        q = q.filter(model.id != exclude_id)
    if q.first() is not None:
        raise DuplicateFieldError(category.name, "employee_id", employee_id)


def duplicate_from_integrity_error(exc: IntegrityError, category, values: dict = None) -> Optional[DuplicateFieldError]:
    """Turn a storage UNIQUE violation on a category column into DuplicateFieldError.

    Recognizes SQLite ("UNIQUE constraint failed: dvrs.ip") and PostgreSQL
    ("dvrs_ip_key" / "Key (ip)=(...)") wording. Returns None when the error
    is not about one of the category's unique fields.
    """
    if category is None:
        return None
    message = str(getattr(exc, "orig", exc))
    table = category.model.__tablename__
    for name in category.unique_fields:
        if (
            f"{table}.{name}" in message
            or f"{table}_{name}_key" in message
            or f"Key ({name})=" in message
        ):
            value = (values or {}).get(name)
            logger.info("Storage rejected duplicate %s.%s=%r", table, name, value)
            return DuplicateFieldError(category.name, name, value)
    return None
