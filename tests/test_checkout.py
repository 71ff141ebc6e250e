import pytest
from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from storefront_service.app.errors import InvalidInput, PersistenceError
from storefront_service.app.models import Order, OrderItem
from storefront_service.app.schemas import OrderCreate
from storefront_service.app.stores.demo import DemoStore


def test_widget_checkout_by_card(client, order_payload):
    resp = client.post("/api/orders", json=order_payload("card"))

    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "Order placed successfully"
    assert "demo" not in body
    order = body["order"]
    assert order["status"] == "pending"
    assert order["payment_status"] == "completed"
    assert order["payment_method"] == "card"
    assert order["total"] == 30.0
    assert len(order["items"]) == 1
    item = order["items"][0]
    assert item["subtotal"] == 30.0
    assert item["product_name"] == "Widget"
    assert item["product_category"] == "Unknown"
    assert item["order_id"] == order["id"]


def test_cash_on_delivery_leaves_payment_pending(client, order_payload):
    order = client.post("/api/orders", json=order_payload("cod")).json()["order"]

    assert order["payment_status"] == "pending"
    assert order["status"] == "pending"


def test_missing_payment_method_defaults_to_card(client, order_payload):
    payload = order_payload()
    del payload["paymentMethod"]

    order = client.post("/api/orders", json=payload).json()["order"]

    assert order["payment_method"] == "card"
    assert order["payment_status"] == "completed"


def test_every_line_is_stored_with_its_subtotal(client, order_payload):
    items = [
        {"id": 1, "name": "Headphones", "price": 79.99, "quantity": 1, "category": "Electronics"},
        {"id": 6, "name": "Bottle", "price": 24.99, "quantity": 2, "category": "Home"},
        {"id": 7, "name": "Charging Pad", "price": 39.99, "quantity": 3, "category": "Electronics"},
    ]

    order = client.post("/api/orders", json=order_payload(items=items, total=249.94)).json()["order"]

    assert len(order["items"]) == 3
    assert [i["subtotal"] for i in order["items"]] == [79.99, 49.98, 119.97]
    ids = [i["id"] for i in order["items"]]
    assert len(set(ids)) == 3
    assert ids == sorted(ids)
    assert [i["product_category"] for i in order["items"]] == ["Electronics", "Home", "Electronics"]


def test_client_total_is_stored_as_given(client, order_payload):
    order = client.post("/api/orders", json=order_payload(total=25.00)).json()["order"]

    assert order["total"] == 25.0
    assert order["items"][0]["subtotal"] == 30.0


def test_line_items_survive_catalog_changes(client, auth_headers, order_payload):
    created = client.post(
        "/api/products",
        json={"name": "Lamp", "price": 15.5, "category": "Home"},
        headers=auth_headers,
    ).json()["product"]
    items = [{"id": created["id"], "name": "Lamp", "price": 15.5, "quantity": 2, "category": "Home"}]
    client.post("/api/orders", json=order_payload(items=items, total=31.0))

    client.put(f"/api/products/{created['id']}", json={"name": "Desk Lamp", "price": 99}, headers=auth_headers)
    client.delete(f"/api/products/{created['id']}", headers=auth_headers)

    item = client.get("/api/orders", headers=auth_headers).json()[0]["items"][0]
    assert item["product_name"] == "Lamp"
    assert item["product_price"] == 15.5
    assert item["subtotal"] == 31.0


@pytest.mark.parametrize(
    "change, message",
    [
        (lambda p: p.update(items=[]), "No items in order"),
        (lambda p: p.pop("items"), "No items in order"),
        (lambda p: p.pop("customer"), "Invalid customer information"),
        (lambda p: p["customer"].update(name=""), "Invalid customer information"),
        (lambda p: p["customer"].update(email="  "), "Invalid customer information"),
        (lambda p: p["customer"].update(address=""), "Invalid customer information"),
    ],
)
def test_invalid_checkout_is_rejected_before_writing(client, database, order_payload, change, message):
    payload = order_payload()
    change(payload)

    resp = client.post("/api/orders", json=payload)

    assert resp.status_code == 400
    assert resp.json() == {"message": message}
    with database.session() as db:
        assert db.query(Order).count() == 0


def test_non_positive_quantity_is_rejected(client, order_payload):
    payload = order_payload(items=[{"id": 1, "name": "Widget", "price": 10, "quantity": 0}])

    resp = client.post("/api/orders", json=payload)

    assert resp.status_code == 400
    assert "quantity" in resp.json()["message"]


def test_failure_mid_order_rolls_back_everything(store, database, order_payload):
    items = [
        {"id": 1, "name": "Widget", "price": 10, "quantity": 1},
        {"id": 2, "name": "Gadget", "price": 5, "quantity": 2},
    ]
    inserted = []

    def lose_connection_on_second_item(mapper, connection, target):
        inserted.append(target)
        if len(inserted) == 2:
            raise OperationalError("INSERT INTO order_items", {}, Exception("connection lost"))

    event.listen(OrderItem, "before_insert", lose_connection_on_second_item)
    try:
        with pytest.raises(PersistenceError) as excinfo:
            store.place_order(OrderCreate(**order_payload(items=items, total=20)))
    finally:
        event.remove(OrderItem, "before_insert", lose_connection_on_second_item)

    assert "connection lost" in excinfo.value.message
    with database.session() as db:
        assert db.query(Order).count() == 0
        assert db.query(OrderItem).count() == 0

    # The store is usable again once the failure is gone.
    order = store.place_order(OrderCreate(**order_payload(items=items, total=20)))
    assert len(order.items) == 2


def test_store_validates_before_touching_the_database(order_payload):
    store = DemoStore()
    payload = order_payload()
    payload["customer"]["address"] = ""

    with pytest.raises(InvalidInput):
        store.place_order(OrderCreate(**payload))


def test_demo_checkout_is_echoed_and_flagged(demo_client, order_payload):
    items = [{"id": n, "name": f"Item {n}", "price": 1.25, "quantity": n} for n in range(1, 6)]

    resp = demo_client.post("/api/orders", json=order_payload("cod", items=items, total=18.75))

    assert resp.status_code == 201
    body = resp.json()
    assert body["demo"] is True
    assert body["message"] == "Order placed successfully (demo mode)"
    order = body["order"]
    assert order["payment_status"] == "pending"
    assert order["status"] == "pending"
    assert len(order["items"]) == 5
    assert len({i["id"] for i in order["items"]}) == 5
    assert [i["subtotal"] for i in order["items"]] == [1.25, 2.5, 3.75, 5.0, 6.25]


def test_demo_checkout_still_validates(demo_client, order_payload):
    resp = demo_client.post("/api/orders", json=order_payload(items=[]))

    assert resp.status_code == 400
    assert resp.json()["message"] == "No items in order"


def test_bad_checkout_never_reaches_the_database(client, database, order_payload, monkeypatch):
    probes = []
    monkeypatch.setattr(database, "probe", lambda: probes.append(1) or True)

    empty = client.post("/api/orders", json=order_payload(items=[]))
    nameless = order_payload()
    nameless["customer"]["name"] = ""
    no_customer = client.post("/api/orders", json=nameless)

    assert empty.status_code == 400
    assert no_customer.status_code == 400
    assert probes == []

    assert client.post("/api/orders", json=order_payload()).status_code == 201
    assert probes == [1]
