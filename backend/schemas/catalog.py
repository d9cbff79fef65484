# backend/schemas/catalog.py
from pydantic import BaseModel, ConfigDict, EmailStr
from datetime import datetime
from typing import Optional


class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# --- Sites ---
class SiteBase(ORMBase):
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None


class SiteUpdate(ORMBase):
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None


class SiteOut(SiteBase):
    id: int


# --- Departments ---
class DepartmentBase(ORMBase):
    name: str
    site_id: Optional[int] = None


class DepartmentUpdate(ORMBase):
    name: Optional[str] = None
    site_id: Optional[int] = None


class DepartmentOut(DepartmentBase):
    id: int


# --- Equipment types ---
class EquipmentTypeBase(ORMBase):
    name: str
    description: Optional[str] = None
    requires_ip: bool = False
    requires_serial: bool = False


class EquipmentTypeUpdate(ORMBase):
    name: Optional[str] = None
    description: Optional[str] = None
    requires_ip: Optional[bool] = None
    requires_serial: Optional[bool] = None


class EquipmentTypeOut(EquipmentTypeBase):
    id: int


# --- Employees (people who receive equipment) ---
class EmployeeBase(ORMBase):
    first_name: str
    last_name: str
    position: Optional[str] = None
    email: Optional[EmailStr] = None
    site_id: Optional[int] = None
    department_id: Optional[int] = None


class EmployeeUpdate(ORMBase):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    position: Optional[str] = None
    email: Optional[EmailStr] = None
    site_id: Optional[int] = None
    department_id: Optional[int] = None


class EmployeeOut(EmployeeBase):
    id: int
    full_name: str
    created_at: Optional[datetime] = None
