import pytest

from models.equipment import Dvr
from models.stock import StockMovement
from services.coordinator import EquipmentCoordinator, PrinterCoordinator, coordinator_for
from services.errors import (
    DuplicateFieldError, EntityNotFound, InsufficientStock, InvalidCategoryStock, InvalidTransition,
)


def test_dvr_lifecycle(db, make_stock, counters, site, user):
    item = make_stock(total=5)
    dvrs = EquipmentCoordinator(db, "dvr", user.id)

    dvr = dvrs.create({"stock_item_id": item.id, "site_id": site.id, "ip": "10.0.0.10", "camera_count": 8})
    assert dvr.status == "active"
    assert dvr.stock_bucket == "assigned"
    assert counters(item.id) == (5, 4, 1)

    dvrs.change_status(dvr.id, "maintenance")
    assert counters(item.id) == (5, 5, 0)

    dvr = dvrs.change_status(dvr.id, "decommissioned")
    assert dvr.stock_bucket == "retired"
    assert counters(item.id) == (4, 4, 0)


def test_create_without_available_units(db, make_stock, counters):
    item = make_stock(total=1, assigned=1)
    with pytest.raises(InsufficientStock):
        EquipmentCoordinator(db, "dvr").create({"stock_item_id": item.id})
    assert counters(item.id) == (1, 0, 1)
    assert db.query(Dvr).count() == 0


def test_create_must_start_live(db, make_stock, counters):
    item = make_stock(total=2)
    with pytest.raises(InvalidTransition):
        EquipmentCoordinator(db, "mikrotik").create({"stock_item_id": item.id, "status": "maintenance"})
    assert counters(item.id) == (2, 2, 0)


def test_reactivation_skips_availability_check(db, make_stock, counters):
    item = make_stock(total=2)
    dvrs = EquipmentCoordinator(db, "dvr")
    first = dvrs.create({"stock_item_id": item.id})
    dvrs.create({"stock_item_id": item.id})
    assert counters(item.id) == (2, 0, 2)

    dvrs.change_status(first.id, "decommissioned")
    assert counters(item.id) == (1, 0, 1)

    dvrs.change_status(first.id, "active")
    assert counters(item.id) == (2, 0, 2)


def test_round_trip_restores_counters(db, make_stock, counters):
    item = make_stock(total=3)
    routers = EquipmentCoordinator(db, "mikrotik")
    unit = routers.create({"stock_item_id": item.id, "ip": "192.168.1.1"})
    before = counters(item.id)

    routers.change_status(unit.id, "inactive")
    routers.change_status(unit.id, "active")
    assert counters(item.id) == before


def test_same_status_writes_nothing(db, make_stock, counters):
    item = make_stock(total=3)
    dvrs = EquipmentCoordinator(db, "dvr")
    dvr = dvrs.create({"stock_item_id": item.id})
    movements = db.query(StockMovement).count()

    dvrs.change_status(dvr.id, "active")
    dvrs.change_status(dvr.id, "active")
    assert counters(item.id) == (3, 2, 1)
    assert db.query(StockMovement).count() == movements


def test_status_and_fields_in_one_call(db, make_stock, counters):
    item = make_stock(total=3)
    dvrs = EquipmentCoordinator(db, "dvr")
    dvr = dvrs.create({"stock_item_id": item.id, "ip": "10.0.0.1"})

    dvr = dvrs.apply_transition(dvr.id, "inactive", {"ip": "10.0.0.2", "location": "Rack 2"})
    assert (dvr.status, dvr.ip, dvr.location) == ("inactive", "10.0.0.2", "Rack 2")
    assert counters(item.id) == (3, 3, 0)


def test_retiring_last_unit_deletes_stock_item(db, make_stock, counters):
    item = make_stock(total=1)
    dvrs = EquipmentCoordinator(db, "dvr")
    dvr = dvrs.create({"stock_item_id": item.id})

    dvr = dvrs.change_status(dvr.id, "decommissioned")
    assert counters(item.id) is None
    assert dvr.stock_item_id is None
    assert dvr.status == "decommissioned"

    with pytest.raises(EntityNotFound) as exc:
        dvrs.change_status(dvr.id, "active")
    assert exc.value.kind == "StockItem"
    assert dvrs.get(dvr.id).status == "decommissioned"


def test_failed_write_rolls_back_ledger(db, make_stock, counters, monkeypatch):
    item = make_stock(total=3)
    dvrs = EquipmentCoordinator(db, "dvr")
    dvrs.create({"stock_item_id": item.id, "ip": "10.0.0.5"})
    assert counters(item.id) == (3, 2, 1)

    # Let the duplicate reach the UNIQUE constraint
    monkeypatch.setattr("services.coordinator.check_unique", lambda *a, **kw: None)
    with pytest.raises(DuplicateFieldError) as exc:
        dvrs.create({"stock_item_id": item.id, "ip": "10.0.0.5"})
    assert exc.value.field == "ip"
    assert counters(item.id) == (3, 2, 1)
    assert db.query(Dvr).count() == 1


def test_unknown_status(db, make_stock):
    item = make_stock(total=2)
    dvrs = EquipmentCoordinator(db, "dvr")
    dvr = dvrs.create({"stock_item_id": item.id})
    with pytest.raises(InvalidTransition):
        dvrs.change_status(dvr.id, "returned")


def test_delete_releases_live_unit(db, make_stock, counters):
    item = make_stock(total=2)
    dvrs = EquipmentCoordinator(db, "dvr")
    live = dvrs.create({"stock_item_id": item.id})
    idle = dvrs.create({"stock_item_id": item.id})
    dvrs.change_status(idle.id, "inactive")
    assert counters(item.id) == (2, 1, 1)

    dvrs.delete(live.id)
    dvrs.delete(idle.id)
    assert counters(item.id) == (2, 2, 0)
    with pytest.raises(EntityNotFound):
        dvrs.get(live.id)


def test_server_needs_server_stock(db, make_stock, counters, server_type):
    router_item = make_stock(total=2)
    server_item = make_stock(total=2, brand="Dell", equipment_type=server_type)
    servers = EquipmentCoordinator(db, "server")

    with pytest.raises(InvalidCategoryStock):
        servers.create({"stock_item_id": router_item.id})
    assert counters(router_item.id) == (2, 2, 0)

    server = servers.create({"stock_item_id": server_item.id, "serial": "SRV-01"})
    assert server.stock_item.equipment_type_name == "Servidor"
    assert counters(server_item.id) == (2, 1, 1)


def test_assignment_shortcuts(db, make_stock, counters, employee, user):
    item = make_stock(total=3, brand="Lenovo", model="T14")
    assigned = EquipmentCoordinator(db, "assigned", user.id)

    laptop = assigned.create({"stock_item_id": item.id, "employee_id": employee.id, "serial": "LNV-1"})
    assert laptop.assigned_by_id == user.id
    assert laptop.assigned_at is not None
    assert counters(item.id) == (3, 2, 1)

    with pytest.raises(DuplicateFieldError) as exc:
        assigned.create({"stock_item_id": item.id, "employee_id": employee.id})
    assert exc.value.field == "employee_id"

    laptop = assigned.return_unit(laptop.id)
    assert laptop.status == "returned"
    assert laptop.returned_at is not None
    assert counters(item.id) == (3, 3, 0)

    with pytest.raises(InvalidTransition):
        assigned.return_unit(laptop.id)

    laptop = assigned.mark_obsolete(laptop.id)
    assert counters(item.id) == (2, 2, 0)

    with pytest.raises(InvalidTransition):
        assigned.change_status(laptop.id, "returned")

    laptop = assigned.reactivate(laptop.id)
    assert laptop.status == "active"
    assert laptop.returned_at is None
    assert counters(item.id) == (3, 2, 1)


def test_telephones_allow_repeat_assignment(db, make_stock, counters, employee):
    item = make_stock(total=3, brand="Yealink", model="T31")
    phones = EquipmentCoordinator(db, "telephone")
    phones.create({"stock_item_id": item.id, "employee_id": employee.id, "number": "4001"})
    phones.create({"stock_item_id": item.id, "employee_id": employee.id, "number": "4002"})
    assert counters(item.id) == (3, 1, 2)

    with pytest.raises(DuplicateFieldError) as exc:
        phones.create({"stock_item_id": item.id, "employee_id": employee.id, "number": "4001"})
    assert exc.value.field == "number"


def test_shortcuts_only_for_assignments(db, make_stock):
    item = make_stock(total=1)
    dvrs = EquipmentCoordinator(db, "dvr")
    dvr = dvrs.create({"stock_item_id": item.id})
    with pytest.raises(InvalidTransition):
        dvrs.return_unit(dvr.id)


def test_printer_toner(db, make_stock, counters):
    printer_item = make_stock(total=2, brand="HP", model="M404")
    toner = make_stock(total=1, brand="HP", model="CF258A")
    printers = coordinator_for(db, "printer")
    assert isinstance(printers, PrinterCoordinator)

    printer = printers.create({"stock_item_id": printer_item.id, "name": "Recepcion", "status": "out_of_toner"})
    assert printer.status == "out_of_toner"
    assert counters(printer_item.id) == (2, 1, 1)

    printer = printers.install_toner(printer.id, toner.id)
    assert printer.status == "active"
    assert printer.current_toner_id == toner.id
    assert printer.toner_install_count == 1
    assert counters(toner.id) == (1, 0, 1)
    assert counters(printer_item.id) == (2, 1, 1)

    with pytest.raises(InsufficientStock):
        printers.install_toner(printer.id, toner.id)
    assert printers.get(printer.id).toner_install_count == 1

    printer = printers.update_print_count(printer.id, 1520)
    assert printer.print_count == 1520


def test_retired_printer_takes_no_toner(db, make_stock, counters):
    printer_item = make_stock(total=2, brand="HP", model="M404")
    toner = make_stock(total=3, brand="HP", model="CF258A")
    printers = PrinterCoordinator(db)
    printer = printers.create({"stock_item_id": printer_item.id})
    printers.change_status(printer.id, "obsolete")

    with pytest.raises(InvalidTransition):
        printers.install_toner(printer.id, toner.id)
    with pytest.raises(InvalidTransition):
        printers.change_status(printer.id, "out_of_toner")
    assert counters(toner.id) == (3, 3, 0)


def test_toner_from_the_printers_own_stock_item(db, make_stock, counters):
    item = make_stock(total=5, brand="Brother", model="HL-L5100")
    printers = PrinterCoordinator(db)
    printer = printers.create({"stock_item_id": item.id})
    printers.change_status(printer.id, "inactive")
    printer = printers.change_status(printer.id, "out_of_toner")
    assert printer.stock_bucket == "available"
    assert counters(item.id) == (5, 5, 0)

    # one unit for the toner, one for the printer going back to active
    printer = printers.install_toner(printer.id, item.id)
    assert printer.status == "active"
    assert printer.stock_bucket == "assigned"
    assert counters(item.id) == (5, 3, 2)
