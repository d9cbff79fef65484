# backend/routes/consumables.py
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import Optional, List

from database import get_db
from models.consumable import Consumable
from models.users import User
from utils.tokenJWT import get_current_user, require_editor
from utils.audit import write_log
from services import consumables as svc
import schemas.consumable as schemas

router = APIRouter(prefix="/consumables", tags=["Consumables"])


def _page(query, page: int, page_size: int) -> dict:
    total = query.count()
    items = (query.order_by(Consumable.created_at.desc(), Consumable.id.desc())
             .offset((page - 1) * page_size)
             .limit(page_size)
             .all())
    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.get("", response_model=schemas.ConsumablePage)
def list_shipments(
    q: Optional[str] = Query(None, description="Search name/details"),
    site_id: Optional[int] = Query(None),
    department_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Consumable)
    if site_id is not None:
        query = query.filter(Consumable.site_id == site_id)
    if department_id is not None:
        query = query.filter(Consumable.department_id == department_id)
    if q:
        like = f"%{q}%"
        query = query.filter(or_(Consumable.name.ilike(like), Consumable.details.ilike(like)))
    return _page(query, page, page_size)


@router.get("/recent", response_model=List[schemas.ConsumableOut])
def recent_shipments(
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return (db.query(Consumable)
            .order_by(Consumable.created_at.desc(), Consumable.id.desc())
            .limit(limit)
            .all())


@router.get("/by-site/{site_id}", response_model=schemas.ConsumablePage)
def shipments_by_site(
    site_id: int,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _page(db.query(Consumable).filter(Consumable.site_id == site_id), page, page_size)


@router.get("/by-department/{department_id}", response_model=schemas.ConsumablePage)
def shipments_by_department(
    department_id: int,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _page(db.query(Consumable).filter(Consumable.department_id == department_id), page, page_size)


@router.get("/{consumable_id}", response_model=schemas.ConsumableOut)
def get_shipment(consumable_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return svc.get_shipment(db, consumable_id)


@router.post("", response_model=schemas.ConsumableOut)
def create_shipment(
    payload: schemas.ConsumableCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_editor),
):
    header = payload.model_dump(exclude={"lines"})
    shipment = svc.create_shipment(db, header, payload.lines, actor_id=current_user.id)
    write_log(db, user_id=current_user.id, action="SHIPMENT_CREATE", resource="consumables",
              resource_id=shipment.id, ip=request.client.host,
              meta={"lines": {l.stock_item_id: l.quantity for l in shipment.lines}})
    return shipment


@router.patch("/{consumable_id}", response_model=schemas.ConsumableOut)
def update_shipment(
    consumable_id: int,
    payload: schemas.ConsumableUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_editor),
):
    data = payload.model_dump(exclude_unset=True, exclude={"lines"})
    shipment = svc.update_shipment(db, consumable_id, data, payload.lines, actor_id=current_user.id)
    write_log(db, user_id=current_user.id, action="SHIPMENT_UPDATE", resource="consumables",
              resource_id=shipment.id, ip=request.client.host,
              meta={"fields": sorted(data), "lines_changed": payload.lines is not None})
    return shipment


# Shipped units are not put back into stock
@router.delete("/{consumable_id}")
def delete_shipment(
    consumable_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_editor),
):
    svc.delete_shipment(db, consumable_id)
    write_log(db, user_id=current_user.id, action="SHIPMENT_DELETE", resource="consumables",
              resource_id=consumable_id, ip=request.client.host)
    return {"detail": f"Shipment {consumable_id} deleted"}
