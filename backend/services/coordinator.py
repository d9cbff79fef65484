# backend/services/coordinator.py
"""Status changes of deployed equipment and their stock effects, atomically.

One EquipmentCoordinator serves every category; the differences live in
services.categories. Each mutating call runs in a single transaction:
lock the unit, lock and re-read its stock item, apply the ledger effect,
write the unit. Any failure rolls all of it back.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from models.stock import StockItem
from services.categories import CategoryConfig, get_category, PRINTER
from services.errors import EntityNotFound, InvalidTransition, InvalidQuantity
from services.ledger import StockLedger
from services.state_machine import RETIRED
from services.uniqueness import check_unique, check_single_assignment
from services.unit_of_work import atomic

logger = logging.getLogger(__name__)


def _now():
    return datetime.now(timezone.utc)


class EquipmentCoordinator:
    def __init__(self, db: Session, category, actor_id: Optional[int] = None):
        self.db = db
        self.category: CategoryConfig = get_category(category) if isinstance(category, str) else category
        self.actor_id = actor_id
        self.ledger = StockLedger(db, actor_id)

    @property
    def model(self):
        return self.category.model

    def get(self, instance_id: int):
        instance = self.db.query(self.model).filter(self.model.id == instance_id).first()
        if instance is None:
            raise EntityNotFound(self.category.label, instance_id)
        return instance

    def _lock(self, instance_id: int):
        instance = (
            self.db.query(self.model)
            .filter(self.model.id == instance_id)
            .populate_existing()
            .with_for_update(of=self.model)
            .first()
        )
        if instance is None:
            raise EntityNotFound(self.category.label, instance_id)
        return instance

    def _reason(self, action: str, instance_id=None) -> str:
        if instance_id is None:
            return f"{self.category.name} {action}"
        return f"{self.category.name} #{instance_id} {action}"

    # ---------- create ----------
    def create(self, data: dict):
        """Deploy one unit of a stock item; reserves it or fails with InsufficientStock."""
        fields = self.category.clean(data, creating=True)
        status = (data or {}).get("status") or "active"
        bucket = self.category.machine.initial_bucket(status)

        stock_item_id = fields.get("stock_item_id")
        if stock_item_id is None:
            raise EntityNotFound("StockItem", None)

        check_unique(self.db, self.category, fields)
        check_single_assignment(self.db, self.category, fields.get("employee_id"), stock_item_id)

        with atomic(self.db, self.category, fields):
            item = self.ledger.lock(stock_item_id)
            self.category.check_stock_item(item)
            self.ledger.reserve(item.id, 1, reason=self._reason("created"))

            instance = self.model(**fields)
            instance.status = status
            instance.stock_bucket = bucket
            if self.category.employee_bound:
                instance.assigned_by_id = self.actor_id
                instance.assigned_at = _now()
            self.db.add(instance)
            self.db.flush()
            logger.info("%s %s created on stock item %s", self.category.label, instance.id, item.id)

        self.db.refresh(instance)
        return instance

    # ---------- transitions ----------
    def apply_transition(self, instance_id: int, new_status: Optional[str] = None, update_fields: dict = None):
        """Change status and/or editable fields of a unit in one transaction."""
        current = self.get(instance_id)
        fields = self.category.clean(update_fields)
        if new_status is not None:
            self.category.machine.validate(new_status, current.status)

        check_unique(self.db, self.category, fields, exclude_id=instance_id)

        with atomic(self.db, self.category, fields):
            instance = self._lock(instance_id)
            old_status = instance.status
            target = new_status or old_status
            transition = self.category.machine.plan(old_status, target, instance.stock_bucket)

            if self.category.single_assignment:
                going_live = transition.bucket != RETIRED
                if going_live and ("employee_id" in fields or instance.stock_bucket == RETIRED):
                    check_single_assignment(
                        self.db, self.category,
                        fields.get("employee_id", instance.employee_id),
                        instance.stock_item_id,
                        exclude_id=instance.id,
                    )

            if transition.effect is not None:
                if instance.stock_item_id is None:
                    raise EntityNotFound("StockItem", None)
                remaining = self.ledger.apply(
                    transition.effect,
                    instance.stock_item_id,
                    reason=self._reason(f"{old_status} -> {target}", instance.id),
                )
                if remaining is None:
                    # Last unit retired, the stock item row is gone
                    instance.stock_item = None
                    instance.stock_item_id = None

            for name, value in fields.items():
                setattr(instance, name, value)

            if self.category.employee_bound and target != old_status:
                self._stamp_assignment(instance, target)

            instance.status = target
            instance.stock_bucket = transition.bucket
            self.db.flush()
            if old_status != target:
                logger.info("%s %s: %s -> %s", self.category.label, instance.id, old_status, target)

        self.db.refresh(instance)
        return instance

    def change_status(self, instance_id: int, new_status: str):
        return self.apply_transition(instance_id, new_status)

    def _stamp_assignment(self, instance, target: str) -> None:
        if target == "active":
            instance.assigned_at = _now()
            instance.assigned_by_id = self.actor_id or instance.assigned_by_id
            instance.returned_at = None
        elif target in ("returned", "obsolete") and instance.returned_at is None:
            instance.returned_at = _now()

    # ---------- delete ----------
    def delete(self, instance_id: int) -> None:
        """Remove a unit; an assigned unit goes back to available first."""
        with atomic(self.db, self.category):
            instance = self._lock(instance_id)
            if instance.stock_bucket == "assigned" and instance.stock_item_id is not None:
                self.ledger.release(instance.stock_item_id, 1, reason=self._reason("deleted", instance.id))
            self.db.delete(instance)
            self.db.flush()
        logger.info("%s %s deleted", self.category.label, instance_id)

    # ---------- assignment shortcuts ----------
    def _require_employee_bound(self):
        if not self.category.employee_bound:
            raise InvalidTransition(None, None, f"{self.category.label} units are not assigned to employees")

    def return_unit(self, instance_id: int):
        self._require_employee_bound()
        instance = self.get(instance_id)
        if instance.status in ("returned", "obsolete"):
            raise InvalidTransition(instance.status, "returned", "unit is not active")
        return self.apply_transition(instance_id, "returned")

    def mark_obsolete(self, instance_id: int):
        self._require_employee_bound()
        instance = self.get(instance_id)
        if instance.status == "obsolete":
            raise InvalidTransition(instance.status, "obsolete", "unit is already obsolete")
        return self.apply_transition(instance_id, "obsolete")

    def reactivate(self, instance_id: int):
        self._require_employee_bound()
        instance = self.get(instance_id)
        if instance.status != "obsolete":
            raise InvalidTransition(instance.status, "active", "only obsolete units can be reactivated")
        return self.apply_transition(instance_id, "active")


class PrinterCoordinator(EquipmentCoordinator):
    def __init__(self, db: Session, actor_id: Optional[int] = None):
        super().__init__(db, PRINTER, actor_id)

    def install_toner(self, printer_id: int, toner_stock_item_id: int):
        """Take one toner out of stock and put it in the printer."""
        with atomic(self.db, self.category):
            printer = self._lock(printer_id)
            if printer.stock_bucket == RETIRED:
                raise InvalidTransition(printer.status, printer.status, "printer is retired")

            toner: StockItem = self.ledger.reserve(
                toner_stock_item_id, 1, reason=self._reason("toner installed", printer.id)
            )
            printer.current_toner_id = toner.id
            printer.toner_model = printer.toner_model or toner.label
            printer.toner_installed_at = _now()
            printer.toner_install_count = (printer.toner_install_count or 0) + 1

            if printer.status == "out_of_toner":
                transition = self.category.machine.plan(printer.status, "active", printer.stock_bucket)
                if transition.effect is not None:
                    self.ledger.apply(transition.effect, printer.stock_item_id,
                                      reason=self._reason("out_of_toner -> active", printer.id))
                printer.status = "active"
                printer.stock_bucket = transition.bucket
            self.db.flush()
            logger.info("Printer %s: toner %s installed (#%s)", printer.id, toner.id, printer.toner_install_count)

        self.db.refresh(printer)
        return printer

    def update_print_count(self, printer_id: int, print_count: int):
        if print_count is None or print_count < 0:
            raise InvalidQuantity("Print count must be a non-negative integer")
        with atomic(self.db, self.category):
            printer = self._lock(printer_id)
            printer.print_count = print_count
            self.db.flush()
        self.db.refresh(printer)
        return printer


def coordinator_for(db: Session, category: str, actor_id: Optional[int] = None) -> EquipmentCoordinator:
    if category == PRINTER.name:
        return PrinterCoordinator(db, actor_id)
    return EquipmentCoordinator(db, category, actor_id)
