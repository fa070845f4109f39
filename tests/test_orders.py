from marketplace.repos.order_repo import OrderRepo
from tests.support import SELLER_A, SELLER_B, create_shopper, money, place


def _items_by_product(order):
    return {(i["product_id"], i["pack_size_id"]): i for i in order["items"]}


# =====================================================
# ADDRESS
# =====================================================

def test_select_address_is_idempotent(client):
    shopper = create_shopper(client, select=False)
    url = f"/users/1/addresses/{shopper['address_id']}/select"

    first = client.put(url)
    second = client.put(url)

    assert first.json()["message"] == "Address selected successfully"
    assert second.json()["message"] == "Address already selected"
    assert client.get("/users/1").json()["selected_address_id"] == shopper["address_id"]


def test_select_foreign_address(client):
    create_shopper(client, user_id=1)
    other = create_shopper(client, user_id=2)
    assert client.put(f"/users/1/addresses/{other['address_id']}/select").status_code == 404


def test_place_order_requires_selected_address(client):
    create_shopper(client, select=False)
    resp = place(client, 1, [(1, 11, 1)])
    assert resp.status_code == 404
    assert "select an address" in resp.json()["detail"]


# =====================================================
# PLACE
# =====================================================

def test_place_order_totals_and_snapshot(client, shopper):
    resp = place(client, 1, [(1, 11, 2), (2, 21, 1)])

    assert resp.status_code == 201
    order = resp.json()
    assert money(order["total_amount"]) == money(151)
    assert money(order["platform_fee"]) == money(1)
    assert money(order["discount"]) == money(0)
    assert money(order["final_amount"]) == money(151)
    assert order["status"] == "pending"
    assert order["version"] == 1
    assert order["delivery_address"]["city"] == "Pune"

    items = _items_by_product(order)
    assert items[(1, 11)]["seller_id"] == SELLER_A
    assert items[(2, 21)]["seller_id"] == SELLER_B
    assert money(items[(1, 11)]["line_total"]) == money(80)


def test_place_order_is_all_or_nothing(client, shopper):
    resp = place(client, 1, [(1, 11, 1), (99, 1, 1)])
    assert resp.status_code == 404
    assert client.get("/orders/?user_id=1").json()["total"] == 0


def test_place_order_rejects_bad_input(client, shopper):
    assert place(client, 1, []).status_code == 400
    assert place(client, 1, [(1, 11, 0)]).status_code == 400
    assert place(client, 1, [(1, 99, 1)]).status_code == 404


def test_items_appended_to_open_order(client, shopper):
    first = place(client, 1, [(1, 11, 1)]).json()
    second = place(client, 1, [(2, 21, 1), (1, 11, 1)]).json()

    assert second["id"] == first["id"]
    assert len(second["items"]) == 3
    assert money(second["total_amount"]) == money(151)
    assert second["version"] == first["version"] + 1
    assert client.get("/orders/?user_id=1").json()["total"] == 1


def test_new_order_once_previous_is_closed(client, shopper):
    first = place(client, 1, [(1, 11, 1)]).json()
    client.patch(
        f"/seller/orders/{first['id']}/status?seller_id={SELLER_A}",
        json={"status": "delivered"},
    )

    second = place(client, 1, [(1, 11, 1)]).json()
    assert second["id"] != first["id"]
    assert client.get("/orders/?user_id=1").json()["total"] == 2


def test_order_visible_only_to_owner(client, shopper):
    order = place(client, 1, [(1, 11, 1)]).json()
    assert client.get(f"/orders/{order['id']}?user_id=1").status_code == 200
    assert client.get(f"/orders/{order['id']}?user_id=2").status_code == 404


def test_totals_follow_price_changes_on_recompute(client, shopper, catalog):
    order = place(client, 1, [(1, 11, 2)]).json()
    catalog.set_price(1, 11, 50)

    updated = client.patch(f"/orders/{order['id']}?user_id=1", json={"comment": "ring twice"}).json()
    assert updated["comment"] == "ring twice"
    assert money(updated["total_amount"]) == money(101)
    assert money(updated["platform_fee"]) == money(1)


# =====================================================
# UPDATE
# =====================================================

def test_update_quantity_and_ignore_unknown_items(client, shopper):
    order = place(client, 1, [(1, 11, 1), (2, 21, 1)]).json()
    item = _items_by_product(order)[(1, 11)]

    resp = client.patch(
        f"/orders/{order['id']}?user_id=1",
        json={"items": [{"id": item["id"], "quantity": 3}, {"id": 9999, "quantity": 5}]},
    )

    assert resp.status_code == 200
    updated = resp.json()
    assert len(updated["items"]) == 2
    assert _items_by_product(updated)[(1, 11)]["quantity"] == 3
    assert money(updated["total_amount"]) == money(191)


def test_update_with_stale_version(client, shopper):
    order = place(client, 1, [(1, 11, 1)]).json()
    resp = client.patch(f"/orders/{order['id']}?user_id=1", json={"comment": "x", "version": 99})
    assert resp.status_code == 409

    ok = client.patch(f"/orders/{order['id']}?user_id=1", json={"comment": "x", "version": order["version"]})
    assert ok.status_code == 200
    assert ok.json()["version"] == order["version"] + 1


def test_customer_can_only_cancel_via_update(client, shopper):
    order = place(client, 1, [(1, 11, 1)]).json()
    item_id = order["items"][0]["id"]

    resp = client.patch(f"/orders/{order['id']}?user_id=1", json={"items": [{"id": item_id, "status": "packing"}]})
    assert resp.status_code == 400

    no_reason = client.patch(
        f"/orders/{order['id']}?user_id=1", json={"items": [{"id": item_id, "status": "cancelled"}]}
    )
    assert no_reason.status_code == 400

    cancelled = client.patch(
        f"/orders/{order['id']}?user_id=1",
        json={"items": [{"id": item_id, "status": "cancelled", "reason_for_cancel": "too slow"}]},
    ).json()
    assert cancelled["items"][0]["status"] == "cancelled"
    assert cancelled["items"][0]["reason_for_cancel"] == "too slow"
    assert cancelled["status"] == "cancelled"
    assert money(cancelled["total_amount"]) == money(1)


def test_invalid_patch_changes_nothing(client, shopper):
    order = place(client, 1, [(1, 11, 1), (2, 21, 1)]).json()
    items = _items_by_product(order)

    resp = client.patch(
        f"/orders/{order['id']}?user_id=1",
        json={
            "items": [
                {"id": items[(1, 11)]["id"], "quantity": 4},
                {"id": items[(2, 21)]["id"], "status": "delivered"},
            ]
        },
    )
    assert resp.status_code == 400

    current = client.get(f"/orders/{order['id']}?user_id=1").json()
    assert _items_by_product(current)[(1, 11)]["quantity"] == 1
    assert current["version"] == order["version"]


def test_patch_rejects_unknown_fields(client, shopper):
    order = place(client, 1, [(1, 11, 1)]).json()
    resp = client.patch(f"/orders/{order['id']}?user_id=1", json={"total_amount": 0})
    assert resp.status_code == 400


def test_quantity_of_delivered_item_is_frozen(client, shopper):
    order = place(client, 1, [(1, 11, 1)]).json()
    item_id = order["items"][0]["id"]
    client.patch(f"/seller/orders/items/{item_id}/status?seller_id={SELLER_A}", json={"status": "delivered"})

    resp = client.patch(f"/orders/{order['id']}?user_id=1", json={"items": [{"id": item_id, "quantity": 2}]})
    assert resp.status_code == 400


def test_version_conflict_rolls_back(client, shopper, monkeypatch):
    order = place(client, 1, [(1, 11, 1)]).json()
    item_id = order["items"][0]["id"]

    monkeypatch.setattr(OrderRepo, "update_order_version", lambda self, **kwargs: 0)
    resp = client.post(f"/orders/items/{item_id}/cancel?user_id=1", json={"reason": "changed mind"})
    assert resp.status_code == 409
    monkeypatch.undo()

    current = client.get(f"/orders/{order['id']}?user_id=1").json()
    assert current["items"][0]["status"] == "pending"
    assert current["version"] == order["version"]


# =====================================================
# DELETE ITEM
# =====================================================

def test_delete_item_recomputes(client, shopper):
    order = place(client, 1, [(1, 11, 2), (2, 21, 1)]).json()
    item_id = _items_by_product(order)[(2, 21)]["id"]

    resp = client.delete(f"/orders/items/{item_id}?user_id=1")
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Item removed"
    assert len(body["order"]["items"]) == 1
    assert money(body["order"]["total_amount"]) == money(81)


def test_delete_last_item_deletes_order(client, shopper):
    order = place(client, 1, [(1, 11, 1)]).json()

    resp = client.delete(f"/orders/items/{order['items'][0]['id']}?user_id=1")
    assert resp.status_code == 200
    assert resp.json()["order"] is None
    assert client.get(f"/orders/{order['id']}?user_id=1").status_code == 404


def test_delivered_item_cannot_be_removed(client, shopper):
    order = place(client, 1, [(1, 11, 1), (2, 21, 1)]).json()
    item_id = _items_by_product(order)[(1, 11)]["id"]
    client.patch(f"/seller/orders/items/{item_id}/status?seller_id={SELLER_A}", json={"status": "delivered"})

    assert client.delete(f"/orders/items/{item_id}?user_id=1").status_code == 400


def test_delete_item_of_other_user(client, shopper):
    order = place(client, 1, [(1, 11, 1)]).json()
    assert client.delete(f"/orders/items/{order['items'][0]['id']}?user_id=2").status_code == 404


# =====================================================
# CANCEL
# =====================================================

def test_cancel_order(client, shopper):
    order = place(client, 1, [(1, 11, 2), (2, 21, 1)]).json()

    resp = client.post(f"/orders/{order['id']}/cancel?user_id=1", json={"reason": "found cheaper", "comment": "sorry"})
    assert resp.status_code == 200
    cancelled = resp.json()
    assert cancelled["status"] == "cancelled"
    assert cancelled["reason_for_cancel"] == "found cheaper"
    assert cancelled["comment"] == "sorry"
    assert all(i["status"] == "cancelled" for i in cancelled["items"])
    assert money(cancelled["total_amount"]) == money(1)
    assert money(cancelled["final_amount"]) == money(1)

    again = client.post(f"/orders/{order['id']}/cancel?user_id=1", json={"reason": "again"})
    assert again.status_code == 409


def test_cancel_requires_reason(client, shopper):
    order = place(client, 1, [(1, 11, 1)]).json()
    assert client.post(f"/orders/{order['id']}/cancel?user_id=1", json={"reason": "  "}).status_code == 400
    assert client.post(f"/orders/{order['id']}/cancel?user_id=1", json={}).status_code == 400


def test_cancel_order_skips_delivered_items(client, shopper):
    order = place(client, 1, [(1, 11, 1), (2, 21, 1)]).json()
    delivered_id = _items_by_product(order)[(1, 11)]["id"]
    client.patch(f"/seller/orders/items/{delivered_id}/status?seller_id={SELLER_A}", json={"status": "delivered"})

    cancelled = client.post(f"/orders/{order['id']}/cancel?user_id=1", json={"reason": "late"}).json()
    items = _items_by_product(cancelled)
    assert items[(1, 11)]["status"] == "delivered"
    assert items[(2, 21)]["status"] == "cancelled"
    assert cancelled["status"] == "cancelled"
    assert cancelled["reason_for_cancel"] == "late"
    assert money(cancelled["total_amount"]) == money(41)

    assert client.post(f"/orders/{order['id']}/cancel?user_id=1", json={"reason": "late"}).status_code == 409
    filtered = client.get("/orders/status/filter?status=cancelled&user_id=1").json()
    assert [o["id"] for o in filtered["orders"]] == [order["id"]]


def test_cancel_order_with_nothing_left_to_cancel(client, shopper):
    order = place(client, 1, [(1, 11, 1)]).json()
    client.patch(f"/seller/orders/{order['id']}/status?seller_id={SELLER_A}", json={"status": "delivered"})

    resp = client.post(f"/orders/{order['id']}/cancel?user_id=1", json={"reason": "late"})
    assert resp.status_code == 400
    assert client.get(f"/orders/{order['id']}?user_id=1").json()["status"] == "completed"


def test_item_cancel_keeps_derived_status(client, shopper):
    order = place(client, 1, [(1, 11, 1), (2, 21, 1)]).json()
    items = _items_by_product(order)
    client.patch(f"/seller/orders/items/{items[(1, 11)]['id']}/status?seller_id={SELLER_A}", json={"status": "delivered"})

    resp = client.post(f"/orders/items/{items[(2, 21)]['id']}/cancel?user_id=1", json={"reason": "late"})
    assert resp.json()["status"] == "processing"


def test_cancel_single_item(client, shopper):
    order = place(client, 1, [(1, 11, 2), (2, 21, 1)]).json()
    item_id = _items_by_product(order)[(2, 21)]["id"]

    resp = client.post(f"/orders/items/{item_id}/cancel?user_id=1", json={"reason": "duplicate"})
    assert resp.status_code == 200
    assert money(resp.json()["total_amount"]) == money(81)
    assert resp.json()["status"] == "processing"

    again = client.post(f"/orders/items/{item_id}/cancel?user_id=1", json={"reason": "duplicate"})
    assert again.status_code == 409


def test_filter_orders_by_derived_status(client, shopper):
    first = place(client, 1, [(1, 11, 1)]).json()
    client.post(f"/orders/{first['id']}/cancel?user_id=1", json={"reason": "nope"})
    second = place(client, 1, [(2, 21, 1)]).json()

    pending = client.get("/orders/status/filter?status=pending&user_id=1").json()
    cancelled = client.get("/orders/status/filter?status=cancelled&user_id=1").json()

    assert [o["id"] for o in pending["orders"]] == [second["id"]]
    assert [o["id"] for o in cancelled["orders"]] == [first["id"]]
    assert client.get("/orders/status/filter?status=shipped&user_id=1").status_code == 400
