# backend/schemas/stock.py
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime, date
from typing import List, Optional


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Descriptive part of a stock item (counters are handled separately)
class StockItemBase(ORMBase):
    equipment_type_id: Optional[int] = None
    brand: str
    model: str
    description: Optional[str] = None
    minimum_threshold: Optional[int] = Field(default=None, ge=0)
    acquisition_date: Optional[date] = None
    acquisition_value: Optional[float] = Field(default=None, ge=0)


class StockItemCreate(StockItemBase):
    """Only total_qty given: everything starts available."""
    total_qty: Optional[int] = Field(default=None, ge=0)
    available_qty: Optional[int] = Field(default=None, ge=0)
    assigned_qty: Optional[int] = Field(default=None, ge=0)


# PATCH - all fields optional, counters not editable here
class StockItemUpdate(ORMBase):
    equipment_type_id: Optional[int] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    description: Optional[str] = None
    minimum_threshold: Optional[int] = Field(default=None, ge=0)
    acquisition_date: Optional[date] = None
    acquisition_value: Optional[float] = Field(default=None, ge=0)


class StockItemOut(StockItemBase):
    id: int
    label: str
    equipment_type_name: Optional[str] = None
    total_qty: int
    available_qty: int
    assigned_qty: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class StockItemPage(ORMBase):
    items: List[StockItemOut]
    total: int
    page: int
    page_size: int


# Direct admin edit of both buckets; total is recomputed
class QuantityAdjust(BaseModel):
    available_qty: int = Field(ge=0)
    assigned_qty: int = Field(ge=0)
    reason: Optional[str] = None


# Purchase intake
class ReceiveUnits(BaseModel):
    quantity: int = Field(gt=0)
    reason: Optional[str] = "Units received"


class StockMovementOut(ORMBase):
    id: int
    stock_item_id: Optional[int] = None
    stock_label: Optional[str] = None
    user_id: Optional[int] = None
    op: str
    qty: int
    bucket: Optional[str] = None
    reason: Optional[str] = None
    total_after: Optional[int] = None
    available_after: Optional[int] = None
    assigned_after: Optional[int] = None
    created_at: datetime


# Paginated response for stock movement history
class StockMovementPage(BaseModel):
    items: List[StockMovementOut]
    total: int
    page: int
    page_size: int


class StockSummary(BaseModel):
    items: int
    total_qty: int
    available_qty: int
    assigned_qty: int
    acquisition_value: float
    low_stock: int
