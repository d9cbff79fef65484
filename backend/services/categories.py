# backend/services/categories.py
# One configuration table per equipment category; services.coordinator
# drives all of them with the same code.
from dataclasses import dataclass, field
from typing import Dict, Tuple, Type

from models.equipment import Dvr, Mikrotik, Server, Printer, AssignedEquipment, Telephone
from models.stock import StockItem
from services.errors import EntityNotFound, InvalidCategoryStock
from services.state_machine import (
    StatusMachine, GENERIC_MACHINE, PRINTER_MACHINE, ASSIGNMENT_MACHINE
)

COMMON_FIELDS = ("site_id", "department_id", "description", "location")


@dataclass(frozen=True)
class CategoryConfig:
    name: str
    label: str
    model: Type
    machine: StatusMachine
    editable_fields: Tuple[str, ...]
    unique_fields: Tuple[str, ...] = ()
    search_fields: Tuple[str, ...] = ("description", "location")
    # Units handed to an employee: stamp assigned_by/assigned_at/returned_at
    employee_bound: bool = False
    # At most one live assignment per (employee, stock item)
    single_assignment: bool = False
    # Equipment type name of the stock item must contain one of these
    stock_type_keywords: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def create_fields(self) -> Tuple[str, ...]:
        return ("stock_item_id",) + self.editable_fields

    def clean(self, data: dict, creating: bool = False) -> dict:
        """Keep only the fields this category accepts; blank identifiers become NULL."""
        allowed = self.create_fields if creating else self.editable_fields
        out = {k: v for k, v in (data or {}).items() if k in allowed}
        for name in self.unique_fields:
            if name in out and isinstance(out[name], str):
                out[name] = out[name].strip() or None
        return out

    def check_stock_item(self, item: StockItem) -> None:
        if not self.stock_type_keywords:
            return
        type_name = (item.equipment_type.name if item.equipment_type else "").lower()
        if not any(k in type_name for k in self.stock_type_keywords):
            raise InvalidCategoryStock(self.name, item.id)


DVR = CategoryConfig(
    name="dvr",
    label="DVR",
    model=Dvr,
    machine=GENERIC_MACHINE,
    editable_fields=COMMON_FIELDS + ("camera_count", "ip", "serial", "mac", "switch_name"),
    unique_fields=("ip", "serial", "mac"),
    search_fields=("ip", "serial", "mac", "switch_name", "location", "description"),
)

MIKROTIK = CategoryConfig(
    name="mikrotik",
    label="Mikrotik",
    model=Mikrotik,
    machine=GENERIC_MACHINE,
    editable_fields=COMMON_FIELDS + ("ip", "serial"),
    unique_fields=("ip", "serial"),
    search_fields=("ip", "serial", "location", "description"),
)

SERVER = CategoryConfig(
    name="server",
    label="Server",
    model=Server,
    machine=GENERIC_MACHINE,
    editable_fields=COMMON_FIELDS + ("ip", "serial"),
    unique_fields=("ip", "serial"),
    search_fields=("ip", "serial", "location", "description"),
    stock_type_keywords=("servidor", "server"),
)

PRINTER = CategoryConfig(
    name="printer",
    label="Printer",
    model=Printer,
    machine=PRINTER_MACHINE,
    editable_fields=COMMON_FIELDS + ("name", "ip", "serial", "toner_model"),
    unique_fields=("ip", "serial"),
    search_fields=("name", "ip", "serial", "toner_model", "location", "description"),
)

ASSIGNED_EQUIPMENT = CategoryConfig(
    name="assigned",
    label="Assigned equipment",
    model=AssignedEquipment,
    machine=ASSIGNMENT_MACHINE,
    editable_fields=COMMON_FIELDS + ("employee_id", "ip", "serial", "notes"),
    unique_fields=("ip", "serial"),
    search_fields=("ip", "serial", "notes", "location", "description"),
    employee_bound=True,
    single_assignment=True,
)

TELEPHONE = CategoryConfig(
    name="telephone",
    label="Telephone",
    model=Telephone,
    machine=ASSIGNMENT_MACHINE,
    editable_fields=COMMON_FIELDS + ("employee_id", "number", "line", "ip", "mac", "imei"),
    unique_fields=("number", "ip", "mac", "imei"),
    search_fields=("number", "line", "ip", "mac", "imei", "location", "description"),
    employee_bound=True,
)

CATEGORIES: Dict[str, CategoryConfig] = {
    c.name: c for c in (DVR, MIKROTIK, SERVER, PRINTER, ASSIGNED_EQUIPMENT, TELEPHONE)
}


def get_category(name: str) -> CategoryConfig:
    try:
        return CATEGORIES[name]
    except KeyError:
        raise EntityNotFound("Category", name)
