# backend/routes/stats.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Dict, List, Optional

from database import get_db
from utils.tokenJWT import get_current_user
from models.users import User
from services import statistics
from services.categories import get_category

router = APIRouter(
    prefix="/stats",
    tags=["Stats"]
)

# === Pydantic Response Schemas ===

class Dashboard(BaseModel):
    employees: int
    sites: int
    departments: int
    stock_items: int
    low_stock: int
    active_assignments: int

class SiteCount(BaseModel):
    site_id: Optional[int] = None
    site: str
    count: int

class DepartmentCount(BaseModel):
    department_id: Optional[int] = None
    department: str
    count: int

class CategoryStats(BaseModel):
    category: str
    total: int
    by_status: Dict[str, int]
    by_site: List[SiteCount]
    # Printers only
    print_count: Optional[int] = None

class ConsumableStats(BaseModel):
    shipments: int
    total_units: int
    by_site: List[SiteCount]
    by_department: List[DepartmentCount]


# === Endpoints ===

@router.get("/dashboard", response_model=Dashboard)
def get_dashboard(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return statistics.dashboard(db)


@router.get("/consumables", response_model=ConsumableStats)
def get_consumable_stats(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return statistics.consumable_statistics(db)


@router.get("/equipment/{category}", response_model=CategoryStats)
def get_category_stats(category: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    get_category(category)
    return statistics.category_statistics(db, category)
