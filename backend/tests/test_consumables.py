import pytest

from models.consumable import Consumable, ConsumableLine
from services.consumables import create_shipment, update_shipment, delete_shipment, merge_lines
from services.errors import EntityNotFound, InsufficientStock, InvalidQuantity
from services.ledger import StockLedger
from database import transaction


@pytest.fixture()
def toners(make_stock):
    return make_stock(total=2, brand="HP", model="CF410A"), make_stock(total=10, brand="HP", model="CF411A")


def test_shipment_is_all_or_nothing(db, toners, counters, site):
    a, b = toners
    with pytest.raises(InsufficientStock) as exc:
        create_shipment(db, {"name": "Toner Sede Norte", "site_id": site.id}, [
            {"stock_item_id": b.id, "quantity": 4},
            {"stock_item_id": a.id, "quantity": 3},
        ])
    assert exc.value.stock_item_id == a.id
    assert counters(a.id) == (2, 2, 0)
    assert counters(b.id) == (10, 10, 0)
    assert db.query(Consumable).count() == 0
    assert db.query(ConsumableLine).count() == 0


def test_create_charges_every_line(db, toners, counters, user):
    a, b = toners
    shipment = create_shipment(db, {"name": "Toner"}, [
        {"stock_item_id": a.id, "quantity": 2},
        {"stock_item_id": b.id, "quantity": 3},
    ], actor_id=user.id)
    assert shipment.created_by_id == user.id
    assert shipment.total_units == 5
    assert [(l.stock_item_id, l.quantity) for l in shipment.lines] == [(a.id, 2), (b.id, 3)]
    assert counters(a.id) == (2, 0, 2)
    assert counters(b.id) == (10, 7, 3)


def test_update_charges_only_the_difference(db, toners, counters):
    a, b = toners
    shipment = create_shipment(db, {"name": "Toner"}, [
        {"stock_item_id": a.id, "quantity": 2},
        {"stock_item_id": b.id, "quantity": 3},
    ])

    # a drops out, b goes up by 2: the freed units of a come back first
    shipment = update_shipment(db, shipment.id, {"details": "revised"}, [
        {"stock_item_id": b.id, "quantity": 5},
    ])
    assert shipment.details == "revised"
    assert [(l.stock_item_id, l.quantity) for l in shipment.lines] == [(b.id, 5)]
    assert counters(a.id) == (2, 2, 0)
    assert counters(b.id) == (10, 5, 5)


def test_failed_update_changes_nothing(db, toners, counters):
    a, b = toners
    shipment = create_shipment(db, {"name": "Toner"}, [{"stock_item_id": b.id, "quantity": 1}])

    with pytest.raises(InsufficientStock):
        update_shipment(db, shipment.id, {"name": "Renamed"}, [
            {"stock_item_id": b.id, "quantity": 1},
            {"stock_item_id": a.id, "quantity": 5},
        ])
    db.expire_all()
    shipment = db.get(Consumable, shipment.id)
    assert shipment.name == "Toner"
    assert [(l.stock_item_id, l.quantity) for l in shipment.lines] == [(b.id, 1)]
    assert counters(a.id) == (2, 2, 0)
    assert counters(b.id) == (10, 9, 1)


def test_header_only_update_leaves_stock(db, toners, counters):
    a, _ = toners
    shipment = create_shipment(db, {"name": "Toner"}, [{"stock_item_id": a.id, "quantity": 1}])
    update_shipment(db, shipment.id, {"name": "Toner marzo"})
    assert counters(a.id) == (2, 1, 1)


def test_delete_does_not_return_stock(db, toners, counters):
    a, _ = toners
    shipment = create_shipment(db, {"name": "Toner"}, [{"stock_item_id": a.id, "quantity": 2}])
    delete_shipment(db, shipment.id)
    assert counters(a.id) == (2, 0, 2)
    assert db.query(ConsumableLine).count() == 0
    with pytest.raises(EntityNotFound):
        delete_shipment(db, shipment.id)


def test_line_survives_deleted_stock_item(db, make_stock, counters):
    cable = make_stock(total=1, brand="Generic", model="Cat6")
    shipment = create_shipment(db, {"name": "Cables"}, [{"stock_item_id": cable.id, "quantity": 1}])

    with transaction(db):
        StockLedger(db).retire(cable.id, 1, from_bucket="assigned")
    assert counters(cable.id) is None

    db.refresh(shipment)
    assert shipment.lines[0].stock_item_id is None
    assert shipment.lines[0].stock_label is None


def test_merge_lines_sums_repeats():
    assert merge_lines([
        {"stock_item_id": 1, "quantity": 2},
        {"stock_item_id": 2, "quantity": 1},
        {"stock_item_id": 1, "quantity": 3},
    ]) == {1: 5, 2: 1}


@pytest.mark.parametrize("line", [
    {"stock_item_id": 1, "quantity": 0},
    {"stock_item_id": 1, "quantity": -2},
    {"stock_item_id": None, "quantity": 1},
])
def test_merge_lines_rejects_bad_lines(line):
    with pytest.raises(InvalidQuantity):
        merge_lines([line])


def test_empty_shipment_rejected(db):
    with pytest.raises(InvalidQuantity):
        create_shipment(db, {"name": "Nothing"}, [])
