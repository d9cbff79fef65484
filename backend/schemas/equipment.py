# backend/schemas/equipment.py
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import List, Optional, Literal

GenericStatus = Literal["active", "inactive", "maintenance", "decommissioned"]
PrinterStatus = Literal["active", "inactive", "maintenance", "obsolete", "out_of_toner"]
AssignmentStatus = Literal["active", "returned", "obsolete"]


class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Fields every deployed unit has
class EquipmentFields(ORMBase):
    site_id: Optional[int] = None
    department_id: Optional[int] = None
    description: Optional[str] = None
    location: Optional[str] = None


class EquipmentOutBase(EquipmentFields):
    id: int
    stock_item_id: Optional[int] = None
    stock_label: Optional[str] = None
    stock_bucket: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# --- DVR ---
class DvrFields(EquipmentFields):
    camera_count: Optional[int] = Field(default=None, ge=0)
    ip: Optional[str] = None
    serial: Optional[str] = None
    mac: Optional[str] = None
    switch_name: Optional[str] = None


class DvrCreate(DvrFields):
    stock_item_id: int
    camera_count: int = Field(default=1, ge=0)
    status: GenericStatus = "active"


class DvrUpdate(DvrFields):
    status: Optional[GenericStatus] = None


class DvrOut(EquipmentOutBase, DvrFields):
    status: GenericStatus


# --- Mikrotik / Server (same shape) ---
class NetworkFields(EquipmentFields):
    ip: Optional[str] = None
    serial: Optional[str] = None


class NetworkCreate(NetworkFields):
    stock_item_id: int
    status: GenericStatus = "active"


class NetworkUpdate(NetworkFields):
    status: Optional[GenericStatus] = None


class NetworkOut(EquipmentOutBase, NetworkFields):
    status: GenericStatus


# --- Printer ---
class PrinterFields(EquipmentFields):
    name: Optional[str] = None
    ip: Optional[str] = None
    serial: Optional[str] = None
    toner_model: Optional[str] = None


class PrinterCreate(PrinterFields):
    stock_item_id: int
    status: Literal["active", "out_of_toner"] = "active"


class PrinterUpdate(PrinterFields):
    status: Optional[PrinterStatus] = None


class PrinterOut(EquipmentOutBase, PrinterFields):
    status: PrinterStatus
    current_toner_id: Optional[int] = None
    toner_installed_at: Optional[datetime] = None
    toner_install_count: int = 0
    print_count: int = 0


class TonerInstall(BaseModel):
    toner_stock_item_id: int


class PrintCountUpdate(BaseModel):
    print_count: int = Field(ge=0)


# --- Assigned equipment ---
class AssignedFields(EquipmentFields):
    ip: Optional[str] = None
    serial: Optional[str] = None
    notes: Optional[str] = None


class AssignedCreate(AssignedFields):
    stock_item_id: int
    employee_id: int
    status: Literal["active"] = "active"


class AssignedUpdate(AssignedFields):
    employee_id: Optional[int] = None
    status: Optional[AssignmentStatus] = None


class AssignedOut(EquipmentOutBase, AssignedFields):
    status: AssignmentStatus
    employee_id: int
    employee_name: Optional[str] = None
    assigned_by_id: Optional[int] = None
    assigned_at: Optional[datetime] = None
    returned_at: Optional[datetime] = None


# --- Telephone ---
class TelephoneFields(EquipmentFields):
    number: Optional[str] = None
    line: Optional[str] = None
    ip: Optional[str] = None
    mac: Optional[str] = None
    imei: Optional[str] = None


class TelephoneCreate(TelephoneFields):
    stock_item_id: int
    employee_id: int
    status: Literal["active"] = "active"


class TelephoneUpdate(TelephoneFields):
    employee_id: Optional[int] = None
    status: Optional[AssignmentStatus] = None


class TelephoneOut(EquipmentOutBase, TelephoneFields):
    status: AssignmentStatus
    employee_id: int
    employee_name: Optional[str] = None
    assigned_by_id: Optional[int] = None
    assigned_at: Optional[datetime] = None
    returned_at: Optional[datetime] = None


class StatusChange(BaseModel):
    status: str


class PageBase(BaseModel):
    total: int
    page: int
    page_size: int


class DvrPage(PageBase):
    items: List[DvrOut]


class NetworkPage(PageBase):
    items: List[NetworkOut]


class PrinterPage(PageBase):
    items: List[PrinterOut]


class AssignedPage(PageBase):
    items: List[AssignedOut]


class TelephonePage(PageBase):
    items: List[TelephoneOut]
