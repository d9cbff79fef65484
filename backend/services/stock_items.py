# backend/services/stock_items.py
import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from models.stock import StockItem
from models.consumable import ConsumableLine
from models.equipment import Printer
from services.errors import EntityNotFound, InvalidQuantity, StockItemInUse
from services.ledger import StockLedger, EQUIPMENT_MODELS, detach_references
from services.unit_of_work import atomic

logger = logging.getLogger(__name__)

DESCRIPTIVE_FIELDS = (
    "equipment_type_id", "brand", "model", "description",
    "minimum_threshold", "acquisition_date", "acquisition_value",
)


def get_stock_item(db: Session, stock_item_id: int) -> StockItem:
    item = db.query(StockItem).filter(StockItem.id == stock_item_id).first()
    if item is None:
        raise EntityNotFound("StockItem", stock_item_id)
    return item


def _initial_counters(total, available, assigned):
    if total is None and available is None and assigned is None:
        return 0, 0, 0
    if available is None and assigned is None:
        available, assigned = total, 0
    else:
        available = available or 0
        assigned = assigned or 0
        if total is None:
            total = available + assigned
    if min(total, available, assigned) < 0:
        raise InvalidQuantity("Quantities cannot be negative")
    if total != available + assigned:
        raise InvalidQuantity(
            f"total ({total}) must equal available ({available}) + assigned ({assigned})"
        )
    return total, available, assigned


def create_stock_item(db: Session, data: dict, actor_id: Optional[int] = None) -> StockItem:
    total, available, assigned = _initial_counters(
        data.get("total_qty"), data.get("available_qty"), data.get("assigned_qty")
    )
    with atomic(db):
        item = StockItem(
            **{k: v for k, v in data.items() if k in DESCRIPTIVE_FIELDS},
            total_qty=total,
            available_qty=available,
            assigned_qty=assigned,
        )
        db.add(item)
        db.flush()
        StockLedger(db, actor_id).record_initial(item)
        logger.info("Stock item %s (%s) created with %s unit(s)", item.id, item.label, total)
    db.refresh(item)
    return item


def update_stock_item(db: Session, stock_item_id: int, data: dict) -> StockItem:
    """Descriptive fields only; counters go through the ledger."""
    with atomic(db):
        item = StockLedger(db).lock(stock_item_id)
        for name, value in data.items():
            if name in DESCRIPTIVE_FIELDS:
                setattr(item, name, value)
        db.flush()
    db.refresh(item)
    return item


def adjust_quantities(db: Session, stock_item_id: int, available: int, assigned: int,
                      reason: str = None, actor_id: Optional[int] = None) -> StockItem:
    with atomic(db):
        item = StockLedger(db, actor_id).adjust(stock_item_id, available, assigned, reason=reason)
        db.flush()
    db.refresh(item)
    return item


def receive_units(db: Session, stock_item_id: int, qty: int, reason: str = None,
                  actor_id: Optional[int] = None) -> StockItem:
    with atomic(db):
        item = StockLedger(db, actor_id).receive(stock_item_id, qty, reason=reason)
        db.flush()
    db.refresh(item)
    return item


def references_to(db: Session, stock_item_id: int) -> dict:
    refs = {}
    for model in EQUIPMENT_MODELS:
        n = db.query(model).filter(model.stock_item_id == stock_item_id).count()
        if n:
            refs[model.__tablename__] = n
    toners = db.query(Printer).filter(Printer.current_toner_id == stock_item_id).count()
    if toners:
        refs["printer_toners"] = toners
    lines = db.query(ConsumableLine).filter(ConsumableLine.stock_item_id == stock_item_id).count()
    if lines:
        refs["consumable_lines"] = lines
    return refs


def delete_stock_item(db: Session, stock_item_id: int) -> None:
    with atomic(db):
        item = StockLedger(db).lock(stock_item_id)
        refs = references_to(db, stock_item_id)
        if refs:
            raise StockItemInUse(stock_item_id, refs)
        detach_references(db, stock_item_id)
        db.delete(item)
        db.flush()
    logger.info("Stock item %s deleted", stock_item_id)


def search_stock_items(db: Session, q: str = None):
    query = db.query(StockItem)
    if q:
        like = f"%{q}%"
        query = query.filter(or_(
            StockItem.brand.ilike(like),
            StockItem.model.ilike(like),
            StockItem.description.ilike(like),
        ))
    return query.order_by(StockItem.brand.asc(), StockItem.model.asc())
