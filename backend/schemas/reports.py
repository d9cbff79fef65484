# schemas/reports.py
from typing import List, Optional
from pydantic import BaseModel, ConfigDict

# Schemas for low stock alerting
class LowStockItem(BaseModel):
    id: int
    label: str
    equipment_type_name: Optional[str] = None
    available_qty: int
    total_qty: int
    minimum_threshold: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)

class LowStockPage(BaseModel):
    items: List[LowStockItem]
    total: int
    page: int
    page_size: int
