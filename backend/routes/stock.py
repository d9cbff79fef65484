# backend/routes/stock.py
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import Optional

from database import get_db
from models.stock import StockMovement
from models.users import User
from utils.tokenJWT import get_current_user, require_editor
from utils.audit import write_log
from services import stock_items as svc
from services import statistics
import schemas.stock as stock_schemas
from schemas.reports import LowStockPage

router = APIRouter(prefix="/stock-items", tags=["Stock"])


@router.get("", response_model=stock_schemas.StockItemPage)
def list_stock_items(
    q: Optional[str] = Query(None, description="Search brand/model/description"),
    equipment_type_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = svc.search_stock_items(db, q)
    if equipment_type_id is not None:
        query = query.filter_by(equipment_type_id=equipment_type_id)
    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.get("/summary", response_model=stock_schemas.StockSummary)
def stock_summary(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return statistics.stock_summary(db)


@router.get("/low-stock", response_model=LowStockPage)
def low_stock(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return statistics.low_stock(db, page, page_size)


# Ledger history (reserve/release/retire/restore/adjust)
@router.get("/movements", response_model=stock_schemas.StockMovementPage)
def list_movements(
    stock_item_id: Optional[int] = Query(None),
    op: Optional[str] = Query(None, description="RESERVE, RELEASE, RETIRE, RESTORE, ADJUST"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(StockMovement)
    if stock_item_id is not None:
        query = query.filter(StockMovement.stock_item_id == stock_item_id)
    if op:
        query = query.filter(StockMovement.op == op.upper())
    total = query.count()
    items = (
        query.order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.get("/{stock_item_id}", response_model=stock_schemas.StockItemOut)
def get_stock_item(stock_item_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return svc.get_stock_item(db, stock_item_id)


@router.post("", response_model=stock_schemas.StockItemOut)
def create_stock_item(
    payload: stock_schemas.StockItemCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_editor),
):
    item = svc.create_stock_item(db, payload.model_dump(), actor_id=current_user.id)
    write_log(db, user_id=current_user.id, action="STOCK_ITEM_CREATE", resource="stock_items",
              resource_id=item.id, ip=request.client.host, meta={"label": item.label, "total": item.total_qty})
    return item


@router.patch("/{stock_item_id}", response_model=stock_schemas.StockItemOut)
def update_stock_item(
    stock_item_id: int,
    payload: stock_schemas.StockItemUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_editor),
):
    data = payload.model_dump(exclude_unset=True)
    item = svc.update_stock_item(db, stock_item_id, data)
    write_log(db, user_id=current_user.id, action="STOCK_ITEM_UPDATE", resource="stock_items",
              resource_id=item.id, ip=request.client.host, meta={"fields": sorted(data)})
    return item


@router.put("/{stock_item_id}/quantities", response_model=stock_schemas.StockItemOut)
def adjust_quantities(
    stock_item_id: int,
    payload: stock_schemas.QuantityAdjust,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_editor),
):
    item = svc.adjust_quantities(db, stock_item_id, payload.available_qty, payload.assigned_qty,
                                 reason=payload.reason, actor_id=current_user.id)
    write_log(db, user_id=current_user.id, action="STOCK_ADJUST", resource="stock_items",
              resource_id=item.id, ip=request.client.host,
              meta={"available": item.available_qty, "assigned": item.assigned_qty, "reason": payload.reason})
    return item


@router.post("/{stock_item_id}/receive", response_model=stock_schemas.StockItemOut)
def receive_units(
    stock_item_id: int,
    payload: stock_schemas.ReceiveUnits,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_editor),
):
    item = svc.receive_units(db, stock_item_id, payload.quantity, reason=payload.reason, actor_id=current_user.id)
    write_log(db, user_id=current_user.id, action="STOCK_RECEIVE", resource="stock_items",
              resource_id=item.id, ip=request.client.host, meta={"quantity": payload.quantity})
    return item


@router.delete("/{stock_item_id}")
def delete_stock_item(
    stock_item_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_editor),
):
    label = svc.get_stock_item(db, stock_item_id).label
    svc.delete_stock_item(db, stock_item_id)
    write_log(db, user_id=current_user.id, action="STOCK_ITEM_DELETE", resource="stock_items",
              resource_id=stock_item_id, ip=request.client.host, meta={"label": label})
    return {"detail": f"Stock item '{label}' deleted"}
