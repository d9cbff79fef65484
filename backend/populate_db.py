import os
import random
import sys

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from database import SessionLocal, init_db
from models.users import User
from models.catalog import Site, Department, EquipmentType, Employee
from models.stock import StockItem
from services.stock_items import create_stock_item
from services.coordinator import coordinator_for
from services.consumables import create_shipment

# Configuration
SITES = {
    "Sede Central": ["Sistemas", "Contabilidad", "Recepcion"],
    "Sucursal Norte": ["Ventas", "Bodega"],
}
EQUIPMENT_TYPES = [
    ("DVR", True, True),
    ("Router", True, True),
    ("Servidor", True, True),
    ("Impresora", True, True),
    ("Toner", False, False),
    ("Laptop", False, True),
    ("Telefono IP", True, False),
]
# (type, brand, model, total units, minimum threshold)
STOCK = [
    ("DVR", "Hikvision", "DS-7208HGHI", 6, 2),
    ("Router", "Mikrotik", "RB4011", 8, 3),
    ("Servidor", "Dell", "PowerEdge R450", 3, 1),
    ("Impresora", "HP", "LaserJet M404", 5, 2),
    ("Toner", "HP", "CF258A", 20, None),
    ("Laptop", "Lenovo", "ThinkPad T14", 12, 4),
    ("Telefono IP", "Yealink", "T31P", 15, None),
]
EMPLOYEES = [("Ana", "Rojas"), ("Luis", "Paredes"), ("Marta", "Quispe"), ("Jorge", "Salinas")]
# End Configuration


def seed_catalog(session):
    """Sites, departments, equipment types and employees."""
    departments = []
    for site_name, dept_names in SITES.items():
        site = Site(name=site_name, address=f"{site_name} 100")
        session.add(site)
        session.flush()
        for name in dept_names:
            dept = Department(name=name, site_id=site.id)
            session.add(dept)
            departments.append(dept)

    types = {}
    for name, requires_ip, requires_serial in EQUIPMENT_TYPES:
        types[name] = EquipmentType(name=name, requires_ip=requires_ip, requires_serial=requires_serial)
        session.add(types[name])
    session.flush()

    employees = []
    for first, last in EMPLOYEES:
        dept = random.choice(departments)
        emp = Employee(first_name=first, last_name=last, position="Staff",
                       site_id=dept.site_id, department_id=dept.id)
        session.add(emp)
        employees.append(emp)
    session.commit()
    return types, employees


def seed_stock(session, types, admin_id):
    items = {}
    for type_name, brand, model, total, threshold in STOCK:
        items[type_name] = create_stock_item(session, {
            "equipment_type_id": types[type_name].id,
            "brand": brand,
            "model": model,
            "minimum_threshold": threshold,
            "total_qty": total,
        }, actor_id=admin_id)
    return items


def seed_deployments(session, items, employees, admin_id):
    site_ids = [s.id for s in session.query(Site).all()]

    dvrs = coordinator_for(session, "dvr", admin_id)
    for n in range(2):
        dvrs.create({"stock_item_id": items["DVR"].id, "site_id": random.choice(site_ids),
                     "ip": f"10.10.0.{10 + n}", "camera_count": 8})

    routers = coordinator_for(session, "mikrotik", admin_id)
    for n in range(3):
        routers.create({"stock_item_id": items["Router"].id, "site_id": random.choice(site_ids),
                        "ip": f"10.10.1.{n + 1}"})

    coordinator_for(session, "server", admin_id).create(
        {"stock_item_id": items["Servidor"].id, "site_id": site_ids[0], "ip": "10.10.2.1", "serial": "SRV-0001"}
    )

    printers = coordinator_for(session, "printer", admin_id)
    printer = printers.create({"stock_item_id": items["Impresora"].id, "site_id": site_ids[0],
                               "name": "Recepcion", "status": "out_of_toner"})
    printers.install_toner(printer.id, items["Toner"].id)

    assigned = coordinator_for(session, "assigned", admin_id)
    phones = coordinator_for(session, "telephone", admin_id)
    for n, emp in enumerate(employees):
        assigned.create({"stock_item_id": items["Laptop"].id, "employee_id": emp.id,
                         "site_id": emp.site_id, "serial": f"LNV-{n + 1:04d}"})
        phones.create({"stock_item_id": items["Telefono IP"].id, "employee_id": emp.id,
                       "site_id": emp.site_id, "number": f"{4000 + n}"})

    create_shipment(session, {"name": "Toner mensual", "site_id": site_ids[-1]},
                    [{"stock_item_id": items["Toner"].id, "quantity": 4}], actor_id=admin_id)


def populate_database():
    """Main execution function to populate database."""
    init_db()
    session = SessionLocal()
    try:
        if session.query(StockItem).count():
            print("Baza danych zawiera już dane inwentarza, pomijam.")
            return

        admin_user = session.query(User).filter(User.role == "admin").first()
        if not admin_user:
            admin_user = User(email="admin@example.com", name="Administrador", role="admin")
            session.add(admin_user)
            session.commit()

        types, employees = seed_catalog(session)
        items = seed_stock(session, types, admin_user.id)
        seed_deployments(session, items, employees, admin_user.id)
        print(f"Wstawiono {len(items)} pozycji magazynowych i przykładowe wdrożenia.")
    finally:
        session.close()


if __name__ == "__main__":
    populate_database()
