# routes/reports.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_user
from utils.pdf import render_report
from models.users import User
from models.stock import StockItem
from models.catalog import Site, Employee
from models.equipment import AssignedEquipment
from services import statistics
from services.categories import get_category
from services.errors import EntityNotFound

router = APIRouter(prefix="/reports", tags=["Reports"])


def _pdf(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )


# -----------------------------
# 1) Stock de equipos
# -----------------------------
@router.get("/stock")
def report_stock(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    rows = db.query(StockItem).order_by(StockItem.brand.asc(), StockItem.model.asc()).all()
    data = {
        "summary": statistics.stock_summary(db),
        "items": [
            {
                "label": it.label,
                "type": it.equipment_type_name,
                "total": it.total_qty,
                "available": it.available_qty,
                "assigned": it.assigned_qty,
                "threshold": it.minimum_threshold,
            }
            for it in rows
        ],
    }
    return _pdf(render_report("stock", data), "stock.pdf")


# -----------------------------
# 2) Equipos por categoría (opcionalmente por sede)
# -----------------------------
@router.get("/equipment/{category}")
def report_equipment(
    category: str,
    site_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    cfg = get_category(category)
    model = cfg.model
    site = None
    query = db.query(model)
    if site_id is not None:
        site = db.query(Site).filter(Site.id == site_id).first()
        if site is None:
            raise EntityNotFound("Site", site_id)
        query = query.filter(model.site_id == site_id)

    units = query.order_by(model.id.asc()).all()
    by_status = {}
    for unit in units:
        by_status[unit.status] = by_status.get(unit.status, 0) + 1

    data = {
        "category": cfg.label,
        "site": site.name if site else None,
        "by_status": by_status,
        "items": [
            {
                "id": u.id,
                "stock": u.stock_label,
                "status": u.status,
                "ip": getattr(u, "ip", None),
                "serial": getattr(u, "serial", None),
                "site": u.site.name if u.site else None,
                "location": u.location,
            }
            for u in units
        ],
    }
    return _pdf(render_report("equipment", data), f"{cfg.name}.pdf")


# -----------------------------
# 3) Equipos asignados (opcionalmente por empleado)
# -----------------------------
@router.get("/assignments")
def report_assignments(
    employee_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    employee = None
    query = db.query(AssignedEquipment)
    if employee_id is not None:
        employee = db.query(Employee).filter(Employee.id == employee_id).first()
        if employee is None:
            raise EntityNotFound("Employee", employee_id)
        query = query.filter(AssignedEquipment.employee_id == employee_id)

    rows = query.order_by(AssignedEquipment.assigned_at.desc()).all()
    data = {
        "employee": employee.full_name if employee else None,
        "items": [
            {
                "employee": r.employee_name,
                "stock": r.stock_label,
                "status": r.status,
                "serial": r.serial,
                "assigned_at": r.assigned_at,
                "returned_at": r.returned_at,
            }
            for r in rows
        ],
    }
    return _pdf(render_report("assignments", data), "assignments.pdf")
