# backend/services/ledger.py
"""Three-counter bookkeeping on StockItem rows.

All methods expect to run inside an open transaction (database.transaction or
services.unit_of_work.atomic). Every counter change re-reads the row with a
row lock first and appends a StockMovement in the same transaction, so a
rollback discards both.
"""
import logging
from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from models.stock import StockItem, StockMovement
from models.consumable import ConsumableLine
from models.equipment import Dvr, Mikrotik, Server, Printer, AssignedEquipment, Telephone
from services.errors import EntityNotFound, InsufficientStock, InvalidQuantity
from services.state_machine import (
    ASSIGNED, AVAILABLE, RESERVE, RELEASE, RETIRE, RESTORE, LedgerEffect
)

logger = logging.getLogger(__name__)

EQUIPMENT_MODELS = (Dvr, Mikrotik, Server, Printer, AssignedEquipment, Telephone)


class StockLedger:
    def __init__(self, db: Session, actor_id: Optional[int] = None):
        self.db = db
        self.actor_id = actor_id

    # Re-read the row inside the transaction: FOR UPDATE on PostgreSQL,
    # the BEGIN IMMEDIATE write lock on SQLite
    def lock(self, stock_item_id: int) -> StockItem:
        # populate_existing() would overwrite counters changed earlier in this
        # transaction; write them to the row before re-reading it
        self.db.flush()
        item = (
            self.db.query(StockItem)
            .filter(StockItem.id == stock_item_id)
            .populate_existing()
            .with_for_update(of=StockItem)
            .first()
        )
        if item is None:
            raise EntityNotFound("StockItem", stock_item_id)
        return item

    def reserve(self, stock_item_id: int, qty: int = 1, reason: str = None) -> StockItem:
        """available -> assigned; refuses to go below zero available."""
        _check_qty(qty)
        item = self.lock(stock_item_id)
        if item.available_qty < qty:
            logger.warning(
                "Reserve refused on stock item %s: requested %s, available %s",
                item.id, qty, item.available_qty,
            )
            raise InsufficientStock(item.id, qty, item.available_qty)
        item.available_qty -= qty
        item.assigned_qty += qty
        self._record(item, RESERVE, qty, reason=reason)
        return item

    def release(self, stock_item_id: int, qty: int = 1, reason: str = None) -> StockItem:
        """assigned -> available; mirrors an earlier reserve."""
        _check_qty(qty)
        item = self.lock(stock_item_id)
        if item.assigned_qty < qty:
            raise InvalidQuantity(
                f"Cannot release {qty} unit(s) of stock item {item.id}: only {item.assigned_qty} assigned",
                stock_item_id=item.id,
            )
        item.available_qty += qty
        item.assigned_qty -= qty
        self._record(item, RELEASE, qty, reason=reason)
        return item

    def retire(self, stock_item_id: int, qty: int = 1, from_bucket: str = ASSIGNED,
               reason: str = None) -> Optional[StockItem]:
        """Remove units for good. Returns None when the item ran out and was deleted."""
        _check_qty(qty)
        item = self.lock(stock_item_id)
        counter = _bucket_column(from_bucket)
        if getattr(item, counter) < qty:
            raise InvalidQuantity(
                f"Cannot retire {qty} unit(s) from {from_bucket} of stock item {item.id}",
                stock_item_id=item.id,
            )
        item.total_qty -= qty
        setattr(item, counter, getattr(item, counter) - qty)

        if item.total_qty <= 0:
            self._record(item, RETIRE, qty, bucket=from_bucket, reason=reason, detached=True)
            self._delete(item)
            return None
        self._record(item, RETIRE, qty, bucket=from_bucket, reason=reason)
        return item

    def restore(self, stock_item_id: int, qty: int = 1, to_bucket: str = ASSIGNED,
                reason: str = None) -> StockItem:
        """Inverse of retire; no availability check."""
        _check_qty(qty)
        item = self.lock(stock_item_id)
        counter = _bucket_column(to_bucket)
        item.total_qty += qty
        setattr(item, counter, getattr(item, counter) + qty)
        self._record(item, RESTORE, qty, bucket=to_bucket, reason=reason)
        return item

    def adjust(self, stock_item_id: int, available: int, assigned: int, reason: str = None) -> StockItem:
        """Direct admin edit of both buckets; total is recomputed."""
        if available is None or assigned is None or available < 0 or assigned < 0:
            raise InvalidQuantity("Quantities must be non-negative integers", stock_item_id=stock_item_id)
        item = self.lock(stock_item_id)
        held = charged_units(self.db, item.id)
        if assigned < held:
            raise InvalidQuantity(
                f"Stock item {item.id} has {held} unit(s) charged to deployed equipment and shipments; "
                f"assigned cannot go below that",
                stock_item_id=item.id,
                assigned=assigned,
                charged=held,
            )
        delta = (available + assigned) - item.total_qty
        item.available_qty = available
        item.assigned_qty = assigned
        item.total_qty = available + assigned
        self._record(item, "ADJUST", delta, reason=reason or "manual adjustment")
        return item

    def receive(self, stock_item_id: int, qty: int, reason: str = None) -> StockItem:
        """Purchase intake: new units land in available."""
        _check_qty(qty)
        item = self.lock(stock_item_id)
        item.total_qty += qty
        item.available_qty += qty
        self._record(item, "ADJUST", qty, bucket=AVAILABLE, reason=reason or "units received")
        return item

    def apply(self, effect: LedgerEffect, stock_item_id: int, reason: str = None) -> Optional[StockItem]:
        if effect.op == RESERVE:
            return self.reserve(stock_item_id, effect.qty, reason=reason)
        if effect.op == RELEASE:
            return self.release(stock_item_id, effect.qty, reason=reason)
        if effect.op == RETIRE:
            return self.retire(stock_item_id, effect.qty, from_bucket=effect.bucket, reason=reason)
        if effect.op == RESTORE:
            return self.restore(stock_item_id, effect.qty, to_bucket=effect.bucket, reason=reason)
        raise ValueError(f"Unknown ledger operation {effect.op!r}")

    def record_initial(self, item: StockItem, reason: str = "initial stock") -> None:
        """Movement for a freshly inserted item (must be flushed already)."""
        self._record(item, "ADJUST", item.total_qty, reason=reason)

    def _record(self, item: StockItem, op: str, qty: int, bucket: str = None,
                reason: str = None, detached: bool = False) -> None:
        logger.debug(
            "Stock %s %s x%s -> total=%s available=%s assigned=%s",
            item.id, op, qty, item.total_qty, item.available_qty, item.assigned_qty,
        )
        self.db.add(StockMovement(
            stock_item_id=None if detached else item.id,
            stock_label=item.label,
            user_id=self.actor_id,
            op=op.upper(),
            qty=qty,
            bucket=bucket,
            reason=reason,
            total_after=item.total_qty,
            available_after=item.available_qty,
            assigned_after=item.assigned_qty,
        ))

    def _delete(self, item: StockItem) -> None:
        logger.info("Stock item %s (%s) ran out of units and is deleted", item.id, item.label)
        # Pending rows of this transaction must exist before they are detached
        self.db.flush()
        detach_references(self.db, item.id)
        self.db.delete(item)
        self.db.flush()


def charged_units(db: Session, stock_item_id: int) -> int:
    """Units a later release may give back: live equipment plus shipment lines."""
    held = 0
    for model in EQUIPMENT_MODELS:
        held += db.query(func.count(model.id)).filter(
            model.stock_item_id == stock_item_id,
            model.stock_bucket == ASSIGNED,
        ).scalar()
    held += db.query(func.coalesce(func.sum(ConsumableLine.quantity), 0)).filter(
        ConsumableLine.stock_item_id == stock_item_id
    ).scalar()
    return int(held)


def detach_references(db: Session, stock_item_id: int) -> None:
    """Null every foreign key pointing at a stock item that is about to go."""
    for model in EQUIPMENT_MODELS:
        db.execute(
            update(model).where(model.stock_item_id == stock_item_id).values(stock_item_id=None)
        )
    db.execute(
        update(Printer).where(Printer.current_toner_id == stock_item_id).values(current_toner_id=None)
    )
    db.execute(
        update(ConsumableLine).where(ConsumableLine.stock_item_id == stock_item_id).values(stock_item_id=None)
    )
    db.execute(
        update(StockMovement).where(StockMovement.stock_item_id == stock_item_id).values(stock_item_id=None)
    )


def _bucket_column(bucket: str) -> str:
    if bucket == ASSIGNED:
        return "assigned_qty"
    if bucket == AVAILABLE:
        return "available_qty"
    raise ValueError(f"Unknown stock bucket {bucket!r}")


def _check_qty(qty: int) -> None:
    if qty is None or qty <= 0:
        raise InvalidQuantity(f"Quantity must be positive, got {qty}")
