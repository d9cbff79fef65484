# backend/models/equipment.py
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text, func
from sqlalchemy.orm import relationship, declared_attr
from database import Base


# Columns shared by every deployed unit. Each row charges (or has charged) one
# unit of the referenced stock item; how it is charged is tracked in
# stock_bucket: "assigned", "available" or "retired".
class EquipmentMixin:
    id = Column(Integer, primary_key=True, index=True)
    status = Column(String(20), nullable=False, default="active", index=True)
    stock_bucket = Column(String(10), nullable=False, default="assigned")
    description = Column(String, nullable=True)
    location = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @declared_attr
    def stock_item_id(cls):
        # NULL once the stock item itself was deleted by retiring its last unit
        return Column(Integer, ForeignKey("stock_items.id", ondelete="SET NULL"), nullable=True, index=True)

    @declared_attr
    def site_id(cls):
        return Column(Integer, ForeignKey("sites.id"), nullable=True, index=True)

    @declared_attr
    def department_id(cls):
        return Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)

    @declared_attr
    def stock_item(cls):
        return relationship("StockItem", foreign_keys=f"[{cls.__name__}.stock_item_id]", lazy="joined")

    @property
    def stock_label(self):
        return self.stock_item.label if self.stock_item else None

    @property
    def employee_name(self):
        employee = getattr(self, "employee", None)
        return employee.full_name if employee else None

    @declared_attr
    def site(cls):
        return relationship("Site")

    @declared_attr
    def department(cls):
        return relationship("Department")


class Dvr(EquipmentMixin, Base):
    __tablename__ = "dvrs"

    camera_count = Column(Integer, nullable=False, default=1)
    ip = Column(String, unique=True, nullable=True)
    serial = Column(String, unique=True, nullable=True)
    mac = Column(String, unique=True, nullable=True)
    switch_name = Column(String, nullable=True)


class Mikrotik(EquipmentMixin, Base):
    __tablename__ = "mikrotiks"

    ip = Column(String, unique=True, nullable=True)
    serial = Column(String, unique=True, nullable=True)


class Server(EquipmentMixin, Base):
    __tablename__ = "servers"

    ip = Column(String, unique=True, nullable=True)
    serial = Column(String, unique=True, nullable=True)


class Printer(EquipmentMixin, Base):
    __tablename__ = "printers"

    name = Column(String, nullable=True)
    ip = Column(String, unique=True, nullable=True)
    serial = Column(String, unique=True, nullable=True)

    # Toner bookkeeping; each installation reserves one unit of the toner stock item
    toner_model = Column(String, nullable=True)
    current_toner_id = Column(Integer, ForeignKey("stock_items.id", ondelete="SET NULL"), nullable=True)
    toner_installed_at = Column(DateTime(timezone=True), nullable=True)
    toner_install_count = Column(Integer, nullable=False, default=0)
    print_count = Column(Integer, nullable=False, default=0)

    current_toner = relationship("StockItem", foreign_keys=[current_toner_id])


# Unit handed to an employee (laptop, monitor, ...)
class AssignedEquipment(EquipmentMixin, Base):
    __tablename__ = "assigned_equipment"

    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    assigned_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    assigned_at = Column(DateTime(timezone=True), nullable=True)
    returned_at = Column(DateTime(timezone=True), nullable=True)
    ip = Column(String, unique=True, nullable=True)
    serial = Column(String, unique=True, nullable=True)
    notes = Column(Text, nullable=True)

    employee = relationship("Employee")
    assigned_by = relationship("User")


class Telephone(EquipmentMixin, Base):
    __tablename__ = "telephones"

    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    assigned_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    assigned_at = Column(DateTime(timezone=True), nullable=True)
    returned_at = Column(DateTime(timezone=True), nullable=True)
    number = Column(String, unique=True, nullable=True)
    line = Column(String, nullable=True)
    ip = Column(String, unique=True, nullable=True)
    mac = Column(String, unique=True, nullable=True)
    imei = Column(String, unique=True, nullable=True)

    employee = relationship("Employee")
    assigned_by = relationship("User")
