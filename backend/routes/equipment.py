# backend/routes/equipment.py
# The six equipment categories share one set of endpoints; build_router()
# wires a category's schemas to the generic coordinator.
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import Optional

from database import get_db
from models.users import User
from utils.tokenJWT import get_current_user, require_editor
from utils.audit import write_log
from services.categories import get_category
from services.coordinator import coordinator_for
import schemas.equipment as s

CATEGORY_SCHEMAS = {
    "dvr": (s.DvrCreate, s.DvrUpdate, s.DvrOut, s.DvrPage),
    "mikrotik": (s.NetworkCreate, s.NetworkUpdate, s.NetworkOut, s.NetworkPage),
    "server": (s.NetworkCreate, s.NetworkUpdate, s.NetworkOut, s.NetworkPage),
    "printer": (s.PrinterCreate, s.PrinterUpdate, s.PrinterOut, s.PrinterPage),
    "assigned": (s.AssignedCreate, s.AssignedUpdate, s.AssignedOut, s.AssignedPage),
    "telephone": (s.TelephoneCreate, s.TelephoneUpdate, s.TelephoneOut, s.TelephonePage),
}

PREFIXES = {
    "dvr": "/dvrs",
    "mikrotik": "/mikrotiks",
    "server": "/servers",
    "printer": "/printers",
    "assigned": "/assigned-equipment",
    "telephone": "/telephones",
}


def _filtered(db: Session, cfg, site_id=None, status=None, department_id=None, employee_id=None, q=None):
    model = cfg.model
    query = db.query(model)
    if site_id is not None:
        query = query.filter(model.site_id == site_id)
    if department_id is not None:
        query = query.filter(model.department_id == department_id)
    if status:
        query = query.filter(model.status == status)
    if employee_id is not None and cfg.employee_bound:
        query = query.filter(model.employee_id == employee_id)
    if q:
        like = f"%{q}%"
        query = query.filter(or_(*[getattr(model, f).ilike(like) for f in cfg.search_fields]))
    return query.order_by(model.id.desc())


def _page(query, page: int, page_size: int) -> dict:
    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}


def build_router(category: str) -> APIRouter:
    cfg = get_category(category)
    Create, Update, Out, Page = CATEGORY_SCHEMAS[category]
    resource = cfg.model.__tablename__
    action = cfg.name.upper()

    router = APIRouter(prefix=PREFIXES[category], tags=[cfg.label])

    def _log(db, user, request, verb, unit_id, meta=None):
        write_log(db, user_id=user.id, action=f"{action}_{verb}", resource=resource,
                  resource_id=unit_id, ip=request.client.host, meta=meta)

    @router.get("", response_model=Page)
    def list_units(
        site_id: Optional[int] = Query(None),
        department_id: Optional[int] = Query(None),
        status: Optional[str] = Query(None),
        employee_id: Optional[int] = Query(None),
        q: Optional[str] = Query(None),
        page: int = Query(1, ge=1),
        page_size: int = Query(20, ge=1, le=100),
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
    ):
        query = _filtered(db, cfg, site_id, status, department_id, employee_id, q)
        return _page(query, page, page_size)

    @router.get("/search", response_model=Page)
    def search_units(
        q: str = Query(..., min_length=1),
        page: int = Query(1, ge=1),
        page_size: int = Query(20, ge=1, le=100),
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
    ):
        return _page(_filtered(db, cfg, q=q), page, page_size)

    @router.get("/by-site/{site_id}", response_model=Page)
    def units_by_site(
        site_id: int,
        page: int = Query(1, ge=1),
        page_size: int = Query(20, ge=1, le=100),
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
    ):
        return _page(_filtered(db, cfg, site_id=site_id), page, page_size)

    @router.get("/by-status/{status}", response_model=Page)
    def units_by_status(
        status: str,
        page: int = Query(1, ge=1),
        page_size: int = Query(20, ge=1, le=100),
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
    ):
        cfg.machine.validate(status)
        return _page(_filtered(db, cfg, status=status), page, page_size)

    @router.get("/{unit_id}", response_model=Out)
    def get_unit(unit_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
        return coordinator_for(db, category).get(unit_id)

    @router.post("", response_model=Out)
    def create_unit(
        payload: Create,
        request: Request,
        db: Session = Depends(get_db),
        current_user: User = Depends(require_editor),
    ):
        unit = coordinator_for(db, category, current_user.id).create(payload.model_dump())
        _log(db, current_user, request, "CREATE", unit.id,
             {"stock_item_id": unit.stock_item_id, "status": unit.status})
        return unit

    @router.patch("/{unit_id}", response_model=Out)
    def update_unit(
        unit_id: int,
        payload: Update,
        request: Request,
        db: Session = Depends(get_db),
        current_user: User = Depends(require_editor),
    ):
        data = payload.model_dump(exclude_unset=True)
        new_status = data.pop("status", None)
        unit = coordinator_for(db, category, current_user.id).apply_transition(unit_id, new_status, data)
        _log(db, current_user, request, "UPDATE", unit.id, {"fields": sorted(data), "status": unit.status})
        return unit

    @router.put("/{unit_id}/status", response_model=Out)
    def change_status(
        unit_id: int,
        payload: s.StatusChange,
        request: Request,
        db: Session = Depends(get_db),
        current_user: User = Depends(require_editor),
    ):
        coordinator = coordinator_for(db, category, current_user.id)
        old_status = coordinator.get(unit_id).status
        unit = coordinator.change_status(unit_id, payload.status)
        _log(db, current_user, request, "STATUS", unit.id, {"old": old_status, "new": unit.status})
        return unit

    @router.delete("/{unit_id}")
    def delete_unit(
        unit_id: int,
        request: Request,
        db: Session = Depends(get_db),
        current_user: User = Depends(require_editor),
    ):
        coordinator_for(db, category, current_user.id).delete(unit_id)
        _log(db, current_user, request, "DELETE", unit_id)
        return {"detail": f"{cfg.label} {unit_id} deleted"}

    if cfg.employee_bound:
        @router.get("/by-employee/{employee_id}", response_model=Page)
        def units_by_employee(
            employee_id: int,
            page: int = Query(1, ge=1),
            page_size: int = Query(20, ge=1, le=100),
            db: Session = Depends(get_db),
            current_user: User = Depends(get_current_user),
        ):
            return _page(_filtered(db, cfg, employee_id=employee_id), page, page_size)

        @router.post("/{unit_id}/return", response_model=Out)
        def return_unit(unit_id: int, request: Request, db: Session = Depends(get_db),
                        current_user: User = Depends(require_editor)):
            unit = coordinator_for(db, category, current_user.id).return_unit(unit_id)
            _log(db, current_user, request, "RETURN", unit.id)
            return unit

        @router.post("/{unit_id}/obsolete", response_model=Out)
        def mark_obsolete(unit_id: int, request: Request, db: Session = Depends(get_db),
                          current_user: User = Depends(require_editor)):
            unit = coordinator_for(db, category, current_user.id).mark_obsolete(unit_id)
            _log(db, current_user, request, "OBSOLETE", unit.id)
            return unit

        @router.post("/{unit_id}/reactivate", response_model=Out)
        def reactivate(unit_id: int, request: Request, db: Session = Depends(get_db),
                       current_user: User = Depends(require_editor)):
            unit = coordinator_for(db, category, current_user.id).reactivate(unit_id)
            _log(db, current_user, request, "REACTIVATE", unit.id)
            return unit

    if category == "printer":
        @router.post("/{unit_id}/toner", response_model=Out)
        def install_toner(unit_id: int, payload: s.TonerInstall, request: Request,
                          db: Session = Depends(get_db), current_user: User = Depends(require_editor)):
            unit = coordinator_for(db, category, current_user.id).install_toner(unit_id, payload.toner_stock_item_id)
            _log(db, current_user, request, "TONER", unit.id,
                 {"toner_stock_item_id": payload.toner_stock_item_id, "installs": unit.toner_install_count})
            return unit

        @router.put("/{unit_id}/print-count", response_model=Out)
        def update_print_count(unit_id: int, payload: s.PrintCountUpdate, request: Request,
                               db: Session = Depends(get_db), current_user: User = Depends(require_editor)):
            unit = coordinator_for(db, category, current_user.id).update_print_count(unit_id, payload.print_count)
            _log(db, current_user, request, "PRINT_COUNT", unit.id, {"print_count": unit.print_count})
            return unit

    return router


routers = [build_router(name) for name in CATEGORY_SCHEMAS]
