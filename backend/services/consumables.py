# backend/services/consumables.py
import logging
from typing import Dict, Iterable, Optional

from sqlalchemy.orm import Session

from models.consumable import Consumable, ConsumableLine
from services.errors import EntityNotFound, InvalidQuantity
from services.ledger import StockLedger
from services.unit_of_work import atomic

logger = logging.getLogger(__name__)

HEADER_FIELDS = ("name", "site_id", "department_id", "sent_at", "details")


def merge_lines(lines: Iterable) -> Dict[int, int]:
    """{stock_item_id: quantity}; repeated stock items are summed."""
    merged: Dict[int, int] = {}
    for line in lines or []:
        stock_item_id = _get(line, "stock_item_id")
        quantity = _get(line, "quantity")
        if stock_item_id is None:
            raise InvalidQuantity("Every line needs a stock_item_id")
        if quantity is None or quantity <= 0:
            raise InvalidQuantity(
                f"Quantity for stock item {stock_item_id} must be positive",
                stock_item_id=stock_item_id,
            )
        merged[stock_item_id] = merged.get(stock_item_id, 0) + quantity
    return merged


def _get(line, name):
    if isinstance(line, dict):
        return line.get(name)
    return getattr(line, name, None)


def apply_shipment(ledger: StockLedger, lines: Dict[int, int], previous: Dict[int, int],
                   reason: str = None) -> None:
    """Bring the ledger from the previous line set to the new one.

    Removed lines and lowered quantities go back to available, new lines and
    raised quantities are reserved (InsufficientStock aborts everything).
    Rows are locked in stock_item_id order so two shipments touching the
    same items cannot deadlock.
    """
    deltas = {}
    for stock_item_id in set(lines) | set(previous):
        delta = lines.get(stock_item_id, 0) - previous.get(stock_item_id, 0)
        if delta:
            deltas[stock_item_id] = delta

    for stock_item_id in sorted(deltas):
        ledger.lock(stock_item_id)

    for stock_item_id in sorted(deltas):
        if deltas[stock_item_id] < 0:
            ledger.release(stock_item_id, -deltas[stock_item_id], reason=reason)
    for stock_item_id in sorted(deltas):
        if deltas[stock_item_id] > 0:
            ledger.reserve(stock_item_id, deltas[stock_item_id], reason=reason)


def get_shipment(db: Session, consumable_id: int) -> Consumable:
    consumable = db.query(Consumable).filter(Consumable.id == consumable_id).first()
    if consumable is None:
        raise EntityNotFound("Consumable", consumable_id)
    return consumable


def _lock(db: Session, consumable_id: int) -> Consumable:
    consumable = (
        db.query(Consumable)
        .filter(Consumable.id == consumable_id)
        .populate_existing()
        .with_for_update(of=Consumable)
        .first()
    )
    if consumable is None:
        raise EntityNotFound("Consumable", consumable_id)
    return consumable


def create_shipment(db: Session, header: dict, lines: Iterable, actor_id: Optional[int] = None) -> Consumable:
    merged = merge_lines(lines)
    if not merged:
        raise InvalidQuantity("A shipment needs at least one line")

    with atomic(db):
        ledger = StockLedger(db, actor_id)
        apply_shipment(ledger, merged, {}, reason=f"shipment '{header.get('name')}'")

        consumable = Consumable(
            **{k: v for k, v in header.items() if k in HEADER_FIELDS},
            created_by_id=actor_id,
        )
        consumable.lines = [
            ConsumableLine(stock_item_id=sid, quantity=qty) for sid, qty in sorted(merged.items())
        ]
        db.add(consumable)
        db.flush()
        logger.info("Shipment %s created with %s line(s)", consumable.id, len(merged))

    db.refresh(consumable)
    return consumable


def update_shipment(db: Session, consumable_id: int, header: dict = None, lines: Iterable = None,
                    actor_id: Optional[int] = None) -> Consumable:
    """Edit header fields and, when ``lines`` is given, diff the line set."""
    merged = merge_lines(lines) if lines is not None else None
    if merged is not None and not merged:
        raise InvalidQuantity("A shipment needs at least one line")

    with atomic(db):
        consumable = _lock(db, consumable_id)

        for name, value in (header or {}).items():
            if name in HEADER_FIELDS:
                setattr(consumable, name, value)

        if merged is not None:
            # Lines whose stock item was deleted are left as they are
            by_item = {l.stock_item_id: l for l in consumable.lines if l.stock_item_id is not None}
            previous = {sid: l.quantity for sid, l in by_item.items()}

            ledger = StockLedger(db, actor_id)
            apply_shipment(ledger, merged, previous, reason=f"shipment #{consumable.id} updated")

            for sid, line in by_item.items():
                if sid not in merged:
                    consumable.lines.remove(line)
                else:
                    line.quantity = merged[sid]
            for sid in sorted(set(merged) - set(by_item)):
                consumable.lines.append(ConsumableLine(stock_item_id=sid, quantity=merged[sid]))

        db.flush()
        logger.info("Shipment %s updated", consumable.id)

    db.refresh(consumable)
    return consumable


def delete_shipment(db: Session, consumable_id: int) -> None:
    """Delete the record only; shipped units stay out of stock."""
    with atomic(db):
        consumable = _lock(db, consumable_id)
        db.delete(consumable)
        db.flush()
    logger.info("Shipment %s deleted (stock not returned)", consumable_id)
