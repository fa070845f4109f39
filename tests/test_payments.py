from marketplace.services import payment_service
from tests.support import SELLER_A, money, new_coupon, place


def _add_to_cart(client, product_id, pack_size_id, quantity, user_id=1):
    client.post(
        f"/cart/items?user_id={user_id}",
        json={"product_id": product_id, "pack_size_id": pack_size_id, "quantity": quantity},
    )


def _pay(client, order_id, user_id=1, method="upi"):
    return client.post(
        f"/payments/?user_id={user_id}",
        json={"order_id": order_id, "method": method, "transaction_id": "tx-1"},
    )


def _cart_pairs(client, user_id=1):
    items = client.get(f"/cart/?user_id={user_id}").json()["items"]
    return {(i["product_id"], i["pack_size_id"]) for i in items}


def test_payment_snapshots_final_amount(client, shopper):
    new_coupon(client, SELLER_A, "SAVE15", value=15)
    order = place(client, 1, [(1, 11, 2), (2, 21, 1)]).json()
    client.post(f"/orders/{order['id']}/apply-coupon?user_id=1", json={"code": "SAVE15"})

    resp = _pay(client, order["id"])
    assert resp.status_code == 201
    payment = resp.json()
    assert money(payment["amount"]) == money(136)
    assert payment["method"] == "upi"

    fetched = client.get(f"/payments/{order['id']}?user_id=1")
    assert fetched.status_code == 200
    assert fetched.json()["id"] == payment["id"]


def test_payment_uses_current_prices(client, shopper, catalog):
    order = place(client, 1, [(1, 11, 1)]).json()
    catalog.set_price(1, 11, 60)

    payment = _pay(client, order["id"]).json()
    assert money(payment["amount"]) == money(61)

    # pozniejsza zmiana ceny nie rusza zaplaconej kwoty
    catalog.set_price(1, 11, 10)
    assert money(client.get(f"/payments/{order['id']}?user_id=1").json()["amount"]) == money(61)


def test_placing_order_keeps_cart_payment_clears_paid_lines(client, shopper):
    _add_to_cart(client, 1, 11, 2)
    _add_to_cart(client, 3, 31, 1)
    order = place(client, 1, [(1, 11, 2)]).json()

    assert _cart_pairs(client) == {(1, 11), (3, 31)}

    _pay(client, order["id"])
    assert _cart_pairs(client) == {(3, 31)}


def test_cancelled_items_stay_in_cart(client, shopper):
    _add_to_cart(client, 1, 11, 1)
    _add_to_cart(client, 2, 21, 1)
    order = place(client, 1, [(1, 11, 1), (2, 21, 1)]).json()
    cancelled = next(i for i in order["items"] if i["product_id"] == 2)
    client.post(f"/orders/items/{cancelled['id']}/cancel?user_id=1", json={"reason": "nope"})

    _pay(client, order["id"])
    assert _cart_pairs(client) == {(2, 21)}


def test_payment_survives_enqueue_failure(client, shopper, monkeypatch):
    class BrokerDown:
        def delay(self, *args, **kwargs):
            raise ConnectionError("broker down")

    monkeypatch.setattr(payment_service, "remove_paid_items_task", BrokerDown())
    _add_to_cart(client, 1, 11, 1)
    order = place(client, 1, [(1, 11, 1)]).json()

    assert _pay(client, order["id"]).status_code == 201
    assert _cart_pairs(client) == {(1, 11)}


def test_one_payment_per_order(client, shopper):
    order = place(client, 1, [(1, 11, 1)]).json()
    assert _pay(client, order["id"]).status_code == 201
    assert _pay(client, order["id"], method="card").status_code == 409


def test_paid_order_is_closed_for_changes(client, shopper):
    order = place(client, 1, [(1, 11, 1), (2, 21, 1)]).json()
    _pay(client, order["id"])

    assert client.delete(f"/orders/items/{order['items'][0]['id']}?user_id=1").status_code == 409

    next_order = place(client, 1, [(1, 11, 1)]).json()
    assert next_order["id"] != order["id"]


def test_payment_validation(client, shopper):
    order = place(client, 1, [(1, 11, 1)]).json()

    assert _pay(client, order["id"], user_id=2).status_code == 404
    assert _pay(client, order["id"], method="barter").status_code == 400
    assert client.get(f"/payments/{order['id']}?user_id=1").status_code == 404

    client.post(f"/orders/{order['id']}/cancel?user_id=1", json={"reason": "nope"})
    assert _pay(client, order["id"]).status_code == 400


def test_list_my_payments(client, shopper):
    first = place(client, 1, [(1, 11, 1)]).json()
    _pay(client, first["id"])
    second = place(client, 1, [(2, 21, 1)]).json()
    _pay(client, second["id"], method="card")

    payments = client.get("/payments/?user_id=1").json()
    assert sorted(p["order_id"] for p in payments) == sorted([first["id"], second["id"]])
    assert client.get("/payments/?user_id=2").json() == []
