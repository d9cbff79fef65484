from sqlalchemy.exc import OperationalError

from config import settings
from services import statistics
from services.consumables import create_shipment
from services.coordinator import EquipmentCoordinator, PrinterCoordinator


def test_low_stock_uses_fallback_threshold(db, make_stock):
    assert settings.LOW_STOCK_FALLBACK_THRESHOLD == 5
    make_stock(total=5, model="AT-5")
    make_stock(total=6, model="AT-6")
    make_stock(total=6, model="OWN-6", minimum_threshold=10)
    make_stock(total=2, model="OWN-2", minimum_threshold=1)

    page = statistics.low_stock(db)
    assert page["total"] == 2
    assert sorted(i.model for i in page["items"]) == ["AT-5", "OWN-6"]


def test_stock_summary(db, make_stock):
    make_stock(total=4, assigned=1, acquisition_value=100)
    make_stock(total=10, acquisition_value=50.5)
    summary = statistics.stock_summary(db)
    assert summary == {
        "items": 2,
        "total_qty": 14,
        "available_qty": 13,
        "assigned_qty": 1,
        "acquisition_value": 150.5,
        "low_stock": 1,
    }


def test_category_statistics(db, make_stock, site):
    item = make_stock(total=5)
    dvrs = EquipmentCoordinator(db, "dvr")
    dvrs.create({"stock_item_id": item.id, "site_id": site.id})
    idle = dvrs.create({"stock_item_id": item.id})
    dvrs.change_status(idle.id, "maintenance")

    stats = statistics.category_statistics(db, "dvr")
    assert stats["total"] == 2
    assert stats["by_status"] == {"active": 1, "inactive": 0, "maintenance": 1, "decommissioned": 0}
    assert {row["site"]: row["count"] for row in stats["by_site"]} == {"Sede Central": 1, "Unknown": 1}
    assert "print_count" not in stats


def test_printer_statistics_sum_print_counts(db, make_stock):
    item = make_stock(total=2, brand="HP", model="M404")
    printers = PrinterCoordinator(db)
    for count in (100, 250):
        printer = printers.create({"stock_item_id": item.id})
        printers.update_print_count(printer.id, count)
    assert statistics.category_statistics(db, "printer")["print_count"] == 350


def test_consumable_statistics(db, make_stock, site):
    item = make_stock(total=10)
    create_shipment(db, {"name": "A", "site_id": site.id}, [{"stock_item_id": item.id, "quantity": 2}])
    create_shipment(db, {"name": "B"}, [{"stock_item_id": item.id, "quantity": 3}])

    stats = statistics.consumable_statistics(db)
    assert stats["shipments"] == 2
    assert stats["total_units"] == 5
    assert {row["site"] for row in stats["by_site"]} == {"Sede Central", "Unknown"}


def test_dashboard_counts(db, make_stock, employee):
    item = make_stock(total=3)
    EquipmentCoordinator(db, "assigned").create({"stock_item_id": item.id, "employee_id": employee.id})
    EquipmentCoordinator(db, "telephone").create({"stock_item_id": item.id, "employee_id": employee.id})

    board = statistics.dashboard(db)
    assert board["employees"] == 1
    assert board["sites"] == 1
    assert board["departments"] == 1
    assert board["stock_items"] == 1
    assert board["low_stock"] == 1
    assert board["active_assignments"] == 2


def test_failing_statistic_falls_back_to_default(db):
    def broken():
        raise OperationalError("SELECT", {}, Exception("no such table"))

    assert statistics._safe(db, "broken", broken, 0) == 0
    assert statistics._safe(db, "fine", lambda: 7, 0) == 7
