import pytest

from database import transaction
from models.stock import StockItem, StockMovement
from models.equipment import Dvr
from services.errors import InsufficientStock, InvalidQuantity, EntityNotFound
from services.ledger import StockLedger
from services.state_machine import ASSIGNED, AVAILABLE


def _invariant_holds(item: StockItem) -> bool:
    return (
        item.total_qty == item.available_qty + item.assigned_qty
        and min(item.total_qty, item.available_qty, item.assigned_qty) >= 0
    )


def test_reserve_moves_available_to_assigned(db, make_stock, counters):
    item = make_stock(total=5)
    with transaction(db):
        StockLedger(db).reserve(item.id, 2)
    assert counters(item.id) == (5, 3, 2)


def test_reserve_refuses_more_than_available(db, make_stock, counters):
    item = make_stock(total=3, available=1, assigned=2)
    with pytest.raises(InsufficientStock) as exc:
        with transaction(db):
            StockLedger(db).reserve(item.id, 2)
    assert exc.value.requested == 2
    assert exc.value.available == 1
    assert counters(item.id) == (3, 1, 2)


def test_release_mirrors_reserve(db, make_stock, counters):
    item = make_stock(total=4)
    with transaction(db):
        ledger = StockLedger(db)
        ledger.reserve(item.id, 3)
        ledger.release(item.id, 3)
    assert counters(item.id) == (4, 4, 0)


def test_release_below_zero_assigned_rejected(db, make_stock, counters):
    item = make_stock(total=2)
    with pytest.raises(InvalidQuantity):
        with transaction(db):
            StockLedger(db).release(item.id, 1)
    assert counters(item.id) == (2, 2, 0)


@pytest.mark.parametrize("bucket,expected", [
    (ASSIGNED, (4, 3, 1)),
    (AVAILABLE, (4, 2, 2)),
])
def test_retire_from_bucket(db, make_stock, counters, bucket, expected):
    item = make_stock(total=5, assigned=2)
    with transaction(db):
        StockLedger(db).retire(item.id, 1, from_bucket=bucket)
    assert counters(item.id) == expected


def test_retire_last_unit_deletes_item_and_detaches_units(db, make_stock, counters, site):
    item = make_stock(total=1, assigned=1)
    dvr = Dvr(stock_item_id=item.id, site_id=site.id, status="active", stock_bucket=ASSIGNED, camera_count=4)
    db.add(dvr)
    db.commit()
    label = item.label

    with transaction(db):
        assert StockLedger(db).retire(item.id, 1, from_bucket=ASSIGNED) is None

    assert counters(item.id) is None
    db.refresh(dvr)
    assert dvr.stock_item_id is None
    movement = db.query(StockMovement).filter(StockMovement.op == "RETIRE").one()
    assert movement.stock_item_id is None
    assert movement.stock_label == label
    assert movement.total_after == 0

    with pytest.raises(EntityNotFound):
        with transaction(db):
            StockLedger(db).lock(item.id)


def test_restore_skips_availability_check(db, make_stock, counters):
    item = make_stock(total=2, available=0, assigned=2)
    with transaction(db):
        StockLedger(db).restore(item.id, 1, to_bucket=ASSIGNED)
    assert counters(item.id) == (3, 0, 3)


def test_adjust_recomputes_total(db, make_stock, counters):
    item = make_stock(total=5)
    with transaction(db):
        StockLedger(db).adjust(item.id, available=7, assigned=1, reason="inventory count")
    assert counters(item.id) == (8, 7, 1)
    movement = db.query(StockMovement).filter(StockMovement.op == "ADJUST").one()
    assert movement.qty == 3
    assert movement.reason == "inventory count"


@pytest.mark.parametrize("available,assigned", [(-1, 0), (0, -2), (None, 1)])
def test_adjust_rejects_negative(db, make_stock, counters, available, assigned):
    item = make_stock(total=5)
    with pytest.raises(InvalidQuantity):
        with transaction(db):
            StockLedger(db).adjust(item.id, available, assigned)
    assert counters(item.id) == (5, 5, 0)


def test_receive_adds_available_units(db, make_stock, counters):
    item = make_stock(total=1)
    with transaction(db):
        StockLedger(db).receive(item.id, 4)
    assert counters(item.id) == (5, 5, 0)


@pytest.mark.parametrize("qty", [0, -1])
def test_non_positive_quantity_rejected(db, make_stock, qty):
    item = make_stock(total=5)
    with pytest.raises(InvalidQuantity):
        StockLedger(db).reserve(item.id, qty)


def test_every_primitive_writes_a_movement(db, make_stock, user):
    item = make_stock(total=5)
    with transaction(db):
        ledger = StockLedger(db, actor_id=user.id)
        ledger.reserve(item.id, 1)
        ledger.release(item.id, 1)
        ledger.retire(item.id, 1, from_bucket=AVAILABLE)
        ledger.restore(item.id, 1, to_bucket=AVAILABLE)
        ledger.receive(item.id, 2)

    ops = [m.op for m in db.query(StockMovement).order_by(StockMovement.id).all()]
    assert ops == ["RESERVE", "RELEASE", "RETIRE", "RESTORE", "ADJUST"]
    assert {m.user_id for m in db.query(StockMovement).all()} == {user.id}
    db.refresh(item)
    assert _invariant_holds(item)


def test_unknown_stock_item(db):
    with pytest.raises(EntityNotFound) as exc:
        StockLedger(db).reserve(999, 1)
    assert exc.value.kind == "StockItem"
    assert exc.value.id == 999


def test_same_item_twice_in_one_transaction(db, make_stock, counters):
    item = make_stock(total=5)
    with transaction(db):
        ledger = StockLedger(db)
        ledger.reserve(item.id, 1)
        ledger.reserve(item.id, 1)
    assert counters(item.id) == (5, 3, 2)

    with transaction(db):
        ledger = StockLedger(db)
        ledger.release(item.id, 2)
        ledger.retire(item.id, 1, from_bucket=AVAILABLE)
        ledger.receive(item.id, 3)
    assert counters(item.id) == (7, 7, 0)
    last = db.query(StockMovement).order_by(StockMovement.id.desc()).first()
    assert (last.total_after, last.available_after, last.assigned_after) == (7, 7, 0)
