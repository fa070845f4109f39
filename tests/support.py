from decimal import Decimal

from marketplace.domain.schemas import ProductInfo


class FakeCatalog:
    """In-memory PriceCatalog; product documents can be edited mid-test."""

    def __init__(self):
        self.products = {}
        self.calls = 0

    def add(self, product_id: int, seller_id: int, packs: dict):
        self.products[product_id] = {
            "id": product_id,
            "seller_id": seller_id,
            "price": str(next(iter(packs.values()))),
            "pack_sizes": [
                {"id": pack_id, "price": str(price), "weight": 1, "unit": "kg", "stock": 10}
                for pack_id, price in packs.items()
            ],
        }

    def set_price(self, product_id: int, pack_size_id: int, price):
        for pack in self.products[product_id]["pack_sizes"]:
            if pack["id"] == pack_size_id:
                pack["price"] = str(Decimal(str(price)))

    def remove(self, product_id: int):
        self.products.pop(product_id, None)

    def find_product(self, product_id: int):
        self.calls += 1
        data = self.products.get(product_id)
        return ProductInfo.model_validate(data) if data else None


SELLER_A = 10
SELLER_B = 20
SELLER_C = 30


def money(value) -> Decimal:
    return Decimal(str(value))


def create_shopper(client, user_id: int = 1, select: bool = True) -> dict:
    client.post("/users/", json={"id": user_id, "name": f"user-{user_id}"})
    resp = client.post(
        f"/users/{user_id}/addresses",
        json={"first_name": "Asha", "city": "Pune", "pincode": "411001", "phone": "9876543210"},
    )
    address_id = resp.json()["addresses"][-1]["id"]
    if select:
        client.put(f"/users/{user_id}/addresses/{address_id}/select")
    return {"user_id": user_id, "address_id": address_id}


def place(client, user_id, items):
    return client.post(
        f"/orders/?user_id={user_id}",
        json={"items": [{"product_id": p, "pack_size_id": k, "quantity": q} for p, k, q in items]},
    )


def new_coupon(client, seller_id, code, discount_type="flat", value=15, min_order=0, max_discount=None, **extra):
    body = {
        "code": code,
        "discount_type": discount_type,
        "discount_value": value,
        "min_order_value": min_order,
        "expiry_date": "2099-01-01T00:00:00Z",
        **extra,
    }
    if max_discount is not None:
        body["max_discount"] = max_discount
    return client.post(f"/seller/coupons?seller_id={seller_id}", json=body)
