# backend/schemas/consumable.py
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import List, Optional


class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class ConsumableLineIn(BaseModel):
    stock_item_id: int
    # Non-positive values are rejected by the service with INVALID_QUANTITY
    quantity: int


class ConsumableLineOut(ORMBase):
    id: int
    stock_item_id: Optional[int] = None
    quantity: int
    stock_label: Optional[str] = None


class ConsumableHeader(ORMBase):
    name: str
    site_id: Optional[int] = None
    department_id: Optional[int] = None
    sent_at: Optional[datetime] = None
    details: Optional[str] = None


class ConsumableCreate(ConsumableHeader):
    lines: List[ConsumableLineIn] = Field(min_length=1)


# PATCH - omit lines to keep them untouched
class ConsumableUpdate(ORMBase):
    name: Optional[str] = None
    site_id: Optional[int] = None
    department_id: Optional[int] = None
    sent_at: Optional[datetime] = None
    details: Optional[str] = None
    lines: Optional[List[ConsumableLineIn]] = None


class ConsumableOut(ConsumableHeader):
    id: int
    created_by_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    total_units: int
    lines: List[ConsumableLineOut]


class ConsumablePage(BaseModel):
    items: List[ConsumableOut]
    total: int
    page: int
    page_size: int
