# backend/services/statistics.py
"""Read-only rollups for the dashboard, reports and stats endpoints.

Best effort: a failing sub-query is logged and replaced by 0 / [] so one
broken statistic never takes the whole page down. Nothing here is used to
decide a ledger operation.
"""
import logging
from typing import Callable

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import settings
from models.catalog import Site, Department, Employee
from models.consumable import Consumable, ConsumableLine
from models.equipment import AssignedEquipment, Telephone
from models.stock import StockItem
from services.categories import get_category, PRINTER

logger = logging.getLogger(__name__)


def _safe(db: Session, label: str, fn: Callable, default):
    try:
        return fn()
    except SQLAlchemyError:
        logger.exception("Statistic '%s' failed, using %r", label, default)
        db.rollback()
        return default


def _low_stock_filter():
    threshold = func.coalesce(StockItem.minimum_threshold, settings.LOW_STOCK_FALLBACK_THRESHOLD)
    return StockItem.available_qty <= threshold


def stock_summary(db: Session) -> dict:
    def totals():
        row = db.query(
            func.count(StockItem.id),
            func.coalesce(func.sum(StockItem.total_qty), 0),
            func.coalesce(func.sum(StockItem.available_qty), 0),
            func.coalesce(func.sum(StockItem.assigned_qty), 0),
            func.coalesce(func.sum(StockItem.acquisition_value), 0),
        ).one()
        return {
            "items": int(row[0]),
            "total_qty": int(row[1]),
            "available_qty": int(row[2]),
            "assigned_qty": int(row[3]),
            "acquisition_value": float(row[4]),
        }

    summary = _safe(db, "stock totals", totals, {
        "items": 0, "total_qty": 0, "available_qty": 0, "assigned_qty": 0, "acquisition_value": 0.0,
    })
    summary["low_stock"] = _safe(
        db, "low stock count", lambda: db.query(StockItem).filter(_low_stock_filter()).count(), 0
    )
    return summary


def low_stock(db: Session, page: int = 1, page_size: int = 20) -> dict:
    def rows():
        q = db.query(StockItem).filter(_low_stock_filter())
        total = q.count()
        items = (
            q.order_by(StockItem.available_qty.asc(), StockItem.brand.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return total, items

    total, items = _safe(db, "low stock", rows, (0, []))
    return {"items": items, "total": total, "page": page, "page_size": page_size}


def category_statistics(db: Session, category: str) -> dict:
    cfg = get_category(category)
    model = cfg.model

    by_status = _safe(
        db, f"{cfg.name} by status",
        lambda: dict(db.query(model.status, func.count(model.id)).group_by(model.status).all()),
        {},
    )

    def sites():
        rows = (
            db.query(model.site_id, Site.name, func.count(model.id))
            .outerjoin(Site, Site.id == model.site_id)
            .group_by(model.site_id, Site.name)
            .all()
        )
        return [
            {"site_id": site_id, "site": name or "Unknown", "count": count}
            for site_id, name, count in rows
        ]

    stats = {
        "category": cfg.name,
        "total": _safe(db, f"{cfg.name} total", lambda: db.query(model).count(), 0),
        "by_status": {status: by_status.get(status, 0) for status in cfg.machine.statuses},
        "by_site": _safe(db, f"{cfg.name} by site", sites, []),
    }
    if cfg is PRINTER:
        stats["print_count"] = int(_safe(
            db, "printer print count",
            lambda: db.query(func.coalesce(func.sum(model.print_count), 0)).scalar(),
            0,
        ))
    return stats


def consumable_statistics(db: Session) -> dict:
    def by_site():
        rows = (
            db.query(Consumable.site_id, Site.name, func.count(Consumable.id))
            .outerjoin(Site, Site.id == Consumable.site_id)
            .group_by(Consumable.site_id, Site.name)
            .all()
        )
        return [{"site_id": sid, "site": name or "Unknown", "count": n} for sid, name, n in rows]

    def by_department():
        rows = (
            db.query(Consumable.department_id, Department.name, func.count(Consumable.id))
            .outerjoin(Department, Department.id == Consumable.department_id)
            .group_by(Consumable.department_id, Department.name)
            .all()
        )
        return [{"department_id": did, "department": name or "Unknown", "count": n} for did, name, n in rows]

    return {
        "shipments": _safe(db, "shipments", lambda: db.query(Consumable).count(), 0),
        "total_units": int(_safe(
            db, "shipped units",
            lambda: db.query(func.coalesce(func.sum(ConsumableLine.quantity), 0)).scalar(),
            0,
        )),
        "by_site": _safe(db, "shipments by site", by_site, []),
        "by_department": _safe(db, "shipments by department", by_department, []),
    }


def dashboard(db: Session) -> dict:
    def active_assignments():
        assigned = db.query(AssignedEquipment).filter(AssignedEquipment.status == "active").count()
        phones = db.query(Telephone).filter(Telephone.status == "active").count()
        return assigned + phones

    return {
        "employees": _safe(db, "employees", lambda: db.query(Employee).count(), 0),
        "sites": _safe(db, "sites", lambda: db.query(Site).count(), 0),
        "departments": _safe(db, "departments", lambda: db.query(Department).count(), 0),
        "stock_items": _safe(db, "stock items", lambda: db.query(StockItem).count(), 0),
        "low_stock": _safe(
            db, "low stock count", lambda: db.query(StockItem).filter(_low_stock_filter()).count(), 0
        ),
        "active_assignments": _safe(db, "active assignments", active_assignments, 0),
    }
