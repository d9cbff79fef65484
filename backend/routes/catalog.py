# backend/routes/catalog.py
# Plain CRUD for the reference tables: sites, departments, equipment types, employees
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from models.catalog import Site, Department, EquipmentType, Employee
from models.users import User
from utils.tokenJWT import get_current_user, require_editor
from utils.audit import write_log
from services.errors import EntityNotFound, DuplicateFieldError
from services.unit_of_work import atomic
import schemas.catalog as schemas

router = APIRouter(tags=["Catalog"])


def _get_or_404(db: Session, model, obj_id: int, kind: str):
    obj = db.query(model).filter(model.id == obj_id).first()
    if obj is None:
        raise EntityNotFound(kind, obj_id)
    return obj


def _unique_name(db: Session, model, kind: str, name: Optional[str], exclude_id: int = None):
    if not name:
        return
    q = db.query(model.id).filter(model.name == name)
    if exclude_id is not None:
        q = q.filter(model.id != exclude_id)
    if q.first() is not None:
        raise DuplicateFieldError(kind, "name", name)


def _save(db: Session, obj):
    with atomic(db):
        db.add(obj)
        db.flush()
    db.refresh(obj)
    return obj


def _patch(db: Session, obj, data: dict):
    for key, value in data.items():
        setattr(obj, key, value)
    return _save(db, obj)


def _delete(db: Session, obj):
    with atomic(db):
        db.delete(obj)
        db.flush()


# -----------------------------
# Sites (sedes)
# -----------------------------
@router.get("/sites", response_model=List[schemas.SiteOut])
def list_sites(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return db.query(Site).order_by(Site.name.asc()).all()


@router.get("/sites/{site_id}", response_model=schemas.SiteOut)
def get_site(site_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_or_404(db, Site, site_id, "Site")


@router.post("/sites", response_model=schemas.SiteOut)
def create_site(payload: schemas.SiteBase, request: Request, db: Session = Depends(get_db),
                current_user: User = Depends(require_editor)):
    _unique_name(db, Site, "site", payload.name)
    site = _save(db, Site(**payload.model_dump()))
    write_log(db, user_id=current_user.id, action="SITE_CREATE", resource="sites",
              resource_id=site.id, ip=request.client.host, meta={"name": site.name})
    return site


@router.patch("/sites/{site_id}", response_model=schemas.SiteOut)
def update_site(site_id: int, payload: schemas.SiteUpdate, db: Session = Depends(get_db),
                current_user: User = Depends(require_editor)):
    site = _get_or_404(db, Site, site_id, "Site")
    data = payload.model_dump(exclude_unset=True)
    _unique_name(db, Site, "site", data.get("name"), exclude_id=site_id)
    return _patch(db, site, data)


@router.delete("/sites/{site_id}")
def delete_site(site_id: int, request: Request, db: Session = Depends(get_db),
                current_user: User = Depends(require_editor)):
    site = _get_or_404(db, Site, site_id, "Site")
    name = site.name
    _delete(db, site)
    write_log(db, user_id=current_user.id, action="SITE_DELETE", resource="sites",
              resource_id=site_id, ip=request.client.host, meta={"name": name})
    return {"detail": f"Site '{name}' deleted"}


# -----------------------------
# Departments
# -----------------------------
@router.get("/departments", response_model=List[schemas.DepartmentOut])
def list_departments(site_id: Optional[int] = Query(None), db: Session = Depends(get_db),
                     current_user: User = Depends(get_current_user)):
    query = db.query(Department)
    if site_id is not None:
        query = query.filter(Department.site_id == site_id)
    return query.order_by(Department.name.asc()).all()


@router.post("/departments", response_model=schemas.DepartmentOut)
def create_department(payload: schemas.DepartmentBase, db: Session = Depends(get_db),
                      current_user: User = Depends(require_editor)):
    if payload.site_id is not None:
        _get_or_404(db, Site, payload.site_id, "Site")
    return _save(db, Department(**payload.model_dump()))


@router.patch("/departments/{department_id}", response_model=schemas.DepartmentOut)
def update_department(department_id: int, payload: schemas.DepartmentUpdate, db: Session = Depends(get_db),
                      current_user: User = Depends(require_editor)):
    department = _get_or_404(db, Department, department_id, "Department")
    return _patch(db, department, payload.model_dump(exclude_unset=True))


@router.delete("/departments/{department_id}")
def delete_department(department_id: int, db: Session = Depends(get_db),
                      current_user: User = Depends(require_editor)):
    _delete(db, _get_or_404(db, Department, department_id, "Department"))
    return {"detail": f"Department {department_id} deleted"}


# -----------------------------
# Equipment types (tipos de equipo)
# -----------------------------
@router.get("/equipment-types", response_model=List[schemas.EquipmentTypeOut])
def list_equipment_types(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return db.query(EquipmentType).order_by(EquipmentType.name.asc()).all()


@router.post("/equipment-types", response_model=schemas.EquipmentTypeOut)
def create_equipment_type(payload: schemas.EquipmentTypeBase, db: Session = Depends(get_db),
                          current_user: User = Depends(require_editor)):
    _unique_name(db, EquipmentType, "equipment_type", payload.name)
    return _save(db, EquipmentType(**payload.model_dump()))


@router.patch("/equipment-types/{type_id}", response_model=schemas.EquipmentTypeOut)
def update_equipment_type(type_id: int, payload: schemas.EquipmentTypeUpdate, db: Session = Depends(get_db),
                          current_user: User = Depends(require_editor)):
    equipment_type = _get_or_404(db, EquipmentType, type_id, "EquipmentType")
    data = payload.model_dump(exclude_unset=True)
    _unique_name(db, EquipmentType, "equipment_type", data.get("name"), exclude_id=type_id)
    return _patch(db, equipment_type, data)


@router.delete("/equipment-types/{type_id}")
def delete_equipment_type(type_id: int, db: Session = Depends(get_db),
                          current_user: User = Depends(require_editor)):
    _delete(db, _get_or_404(db, EquipmentType, type_id, "EquipmentType"))
    return {"detail": f"Equipment type {type_id} deleted"}


# -----------------------------
# Employees (people receiving equipment)
# -----------------------------
@router.get("/employees", response_model=List[schemas.EmployeeOut])
def list_employees(
    q: Optional[str] = Query(None, description="Search by name/email"),
    site_id: Optional[int] = Query(None),
    department_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Employee)
    if site_id is not None:
        query = query.filter(Employee.site_id == site_id)
    if department_id is not None:
        query = query.filter(Employee.department_id == department_id)
    if q:
        like = f"%{q}%"
        query = query.filter(or_(
            Employee.first_name.ilike(like), Employee.last_name.ilike(like), Employee.email.ilike(like)
        ))
    return query.order_by(Employee.last_name.asc(), Employee.first_name.asc()).all()


@router.get("/employees/{employee_id}", response_model=schemas.EmployeeOut)
def get_employee(employee_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_or_404(db, Employee, employee_id, "Employee")


@router.post("/employees", response_model=schemas.EmployeeOut)
def create_employee(payload: schemas.EmployeeBase, db: Session = Depends(get_db),
                    current_user: User = Depends(require_editor)):
    return _save(db, Employee(**payload.model_dump()))


@router.patch("/employees/{employee_id}", response_model=schemas.EmployeeOut)
def update_employee(employee_id: int, payload: schemas.EmployeeUpdate, db: Session = Depends(get_db),
                    current_user: User = Depends(require_editor)):
    employee = _get_or_404(db, Employee, employee_id, "Employee")
    return _patch(db, employee, payload.model_dump(exclude_unset=True))


@router.delete("/employees/{employee_id}")
def delete_employee(employee_id: int, db: Session = Depends(get_db),
                    current_user: User = Depends(require_editor)):
    _delete(db, _get_or_404(db, Employee, employee_id, "Employee"))
    return {"detail": f"Employee {employee_id} deleted"}
