# backend/models/catalog.py
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship
from database import Base


# Office or branch where equipment is deployed (sede)
class Site(Base):
    __tablename__ = "sites"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    address = Column(String, nullable=True)
    phone = Column(String, nullable=True)

    departments = relationship("Department", back_populates="site")


class Department(Base):
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=True, index=True)

    site = relationship("Site", back_populates="departments")


# Kind of stock item (router, printer, toner, phone...). The flags tell the
# front-end which identification fields a deployed unit needs.
class EquipmentType(Base):
    __tablename__ = "equipment_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    description = Column(String, nullable=True)
    requires_ip = Column(Boolean, nullable=False, default=False)
    requires_serial = Column(Boolean, nullable=False, default=False)


# Staff member who receives assigned equipment or a telephone
class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False, index=True)
    position = Column(String, nullable=True)
    email = Column(String, nullable=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=True, index=True)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    site = relationship("Site")
    department = relationship("Department")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
