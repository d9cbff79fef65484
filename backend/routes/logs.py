# backend/routes/logs.py
# Audit trail of API mutations (write_log); ledger history lives in /stock-items/movements
from datetime import date, datetime, time
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from database import get_db
from models.log import Log
from models.users import User
from utils.tokenJWT import require_admin

router = APIRouter(prefix="/logs", tags=["Logs"])


class LogEntry(BaseModel):
    id: int
    ts: datetime
    user_id: Optional[int] = None
    action: str
    resource: str
    resource_id: Optional[int] = None
    status: str
    meta: Optional[Any] = None

    model_config = ConfigDict(from_attributes=True)


class LogEntries(BaseModel):
    items: List[LogEntry]
    total: int
    page: int
    page_size: int


@router.get("", response_model=LogEntries)
def audit_trail(
    resource: Optional[str] = Query(None, description="Table name, e.g. dvrs, stock_items, consumables"),
    resource_id: Optional[int] = Query(None),
    action: Optional[str] = Query(None, description="Action prefix, e.g. DVR_ or STOCK_"),
    user_id: Optional[int] = Query(None),
    day_from: Optional[date] = Query(None),
    day_to: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    query = db.query(Log)
    if resource:
        query = query.filter(Log.resource == resource)
    if resource_id is not None:
        query = query.filter(Log.resource_id == resource_id)
    if action:
        query = query.filter(Log.action.startswith(action.upper()))
    if user_id is not None:
        query = query.filter(Log.user_id == user_id)
    if day_from:
        query = query.filter(Log.ts >= datetime.combine(day_from, time.min))
    if day_to:
        query = query.filter(Log.ts <= datetime.combine(day_to, time.max))

    total = query.count()
    items = (
        query.order_by(Log.ts.desc(), Log.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {"items": items, "total": total, "page": page, "page_size": page_size}
