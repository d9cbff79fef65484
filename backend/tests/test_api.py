from models.log import Log
from utils.tokenJWT import create_access_token


def _stock(client, total=2, **extra):
    res = client.post("/stock-items", json={"brand": "Hikvision", "model": "DS-7216", "total_qty": total, **extra})
    assert res.status_code == 200, res.text
    return res.json()


def test_stock_item_created_all_available(client):
    item = _stock(client, total=4)
    assert (item["total_qty"], item["available_qty"], item["assigned_qty"]) == (4, 4, 0)
    assert item["label"] == "Hikvision DS-7216"


def test_unbalanced_counters_rejected(client):
    res = client.post("/stock-items", json={
        "brand": "HP", "model": "M404", "total_qty": 3, "available_qty": 1, "assigned_qty": 1,
    })
    assert res.status_code == 400
    assert res.json()["code"] == "INVALID_QUANTITY"


def test_equipment_flow_and_error_codes(client, db):
    item = _stock(client, total=1)

    res = client.post("/dvrs", json={"stock_item_id": item["id"], "ip": "10.0.0.1"})
    assert res.status_code == 200, res.text
    dvr = res.json()
    assert dvr["status"] == "active"
    assert dvr["stock_label"] == "Hikvision DS-7216"

    res = client.post("/dvrs", json={"stock_item_id": item["id"], "ip": "10.0.0.2"})
    assert res.status_code == 409
    body = res.json()
    assert body["code"] == "INSUFFICIENT_STOCK"
    assert (body["requested"], body["available"]) == (1, 0)

    res = client.post("/dvrs", json={"stock_item_id": item["id"], "ip": "10.0.0.1"})
    assert res.status_code == 409
    assert res.json()["code"] == "DUPLICATE_FIELD"
    assert res.json()["field"] == "ip"

    res = client.put(f"/dvrs/{dvr['id']}/status", json={"status": "inactive"})
    assert res.status_code == 200
    assert client.get(f"/stock-items/{item['id']}").json()["available_qty"] == 1

    res = client.put(f"/dvrs/{dvr['id']}/status", json={"status": "returned"})
    assert res.status_code == 400
    assert res.json()["code"] == "INVALID_TRANSITION"

    res = client.get("/dvrs/999")
    assert res.status_code == 404
    assert res.json()["code"] == "NOT_FOUND"

    actions = [a for (a,) in db.query(Log.action).order_by(Log.id).all()]
    assert actions[-2:] == ["DVR_CREATE", "DVR_STATUS"]


def test_patch_changes_status_and_fields(client):
    item = _stock(client, total=2)
    dvr = client.post("/dvrs", json={"stock_item_id": item["id"]}).json()

    res = client.patch(f"/dvrs/{dvr['id']}", json={"status": "maintenance", "location": "Bodega"})
    assert res.status_code == 200
    assert (res.json()["status"], res.json()["location"]) == ("maintenance", "Bodega")
    stock = client.get(f"/stock-items/{item['id']}").json()
    assert (stock["available_qty"], stock["assigned_qty"]) == (2, 0)


def test_stock_item_in_use_cannot_be_deleted(client):
    item = _stock(client, total=2)
    client.post("/mikrotiks", json={"stock_item_id": item["id"]})

    res = client.delete(f"/stock-items/{item['id']}")
    assert res.status_code == 409
    assert res.json()["code"] == "STOCK_ITEM_IN_USE"
    assert res.json()["references"] == {"mikrotiks": 1}


def test_assignment_endpoints(client, employee):
    item = _stock(client, total=2)
    res = client.post("/assigned-equipment", json={"stock_item_id": item["id"], "employee_id": employee.id})
    assert res.status_code == 200, res.text
    unit = res.json()
    assert unit["employee_name"] == "Ana Rojas"

    assert client.post(f"/assigned-equipment/{unit['id']}/return").json()["status"] == "returned"
    assert client.post(f"/assigned-equipment/{unit['id']}/obsolete").json()["status"] == "obsolete"

    res = client.put(f"/assigned-equipment/{unit['id']}/status", json={"status": "returned"})
    assert res.status_code == 400

    assert client.post(f"/assigned-equipment/{unit['id']}/reactivate").json()["status"] == "active"
    page = client.get(f"/assigned-equipment/by-employee/{employee.id}").json()
    assert page["total"] == 1


def test_consumable_endpoints(client):
    a = _stock(client, total=2)
    res = client.post("/consumables", json={"name": "Toner", "lines": [{"stock_item_id": a["id"], "quantity": 3}]})
    assert res.status_code == 409
    assert res.json()["code"] == "INSUFFICIENT_STOCK"

    res = client.post("/consumables", json={"name": "Toner", "lines": [{"stock_item_id": a["id"], "quantity": 2}]})
    assert res.status_code == 200, res.text
    assert res.json()["total_units"] == 2
    assert client.get(f"/stock-items/{a['id']}").json()["available_qty"] == 0


def test_unknown_category(client):
    res = client.get("/stats/equipment/fax")
    assert res.status_code == 404
    assert res.json()["code"] == "NOT_FOUND"


def test_viewer_cannot_mutate(client, db, user):
    from main import app
    from utils.tokenJWT import get_current_user

    user.role = "viewer"
    db.commit()
    app.dependency_overrides[get_current_user] = lambda: user
    res = client.post("/stock-items", json={"brand": "HP", "model": "X", "total_qty": 1})
    assert res.status_code == 403


def test_token_from_cookie(client, db, user):
    from main import app
    from utils.tokenJWT import get_current_user

    del app.dependency_overrides[get_current_user]
    token = create_access_token({"sub": user.email})
    assert client.get("/auth/me").status_code == 401

    client.cookies.set("access_token", token)
    res = client.get("/auth/me")
    assert res.status_code == 200
    assert res.json()["email"] == user.email


def test_audit_trail_filters(client, db, user):
    item = _stock(client, total=3)
    client.post("/dvrs", json={"stock_item_id": item["id"]})
    assert client.get("/logs").status_code == 403

    user.role = "admin"
    db.commit()
    res = client.get("/logs", params={"action": "dvr_"})
    assert res.status_code == 200
    assert [e["action"] for e in res.json()["items"]] == ["DVR_CREATE"]

    res = client.get("/logs", params={"resource": "stock_items", "resource_id": item["id"]})
    assert [e["action"] for e in res.json()["items"]] == ["STOCK_ITEM_CREATE"]
