# marketplace/product_service/main.py
from fastapi import FastAPI, HTTPException

app = FastAPI(title="Product Service (dev mock)")


PRODUCTS = {
    1: {
        "id": 1,
        "seller_id": 10,
        "price": 40.00,
        "pack_sizes": [
            {"id": 11, "price": 40.00, "weight": 500, "unit": "g", "stock": 120},
            {"id": 12, "price": 75.00, "weight": 1, "unit": "kg", "stock": 60},
        ],
    },
    2: {
        "id": 2,
        "seller_id": 10,
        "price": 70.00,
        "pack_sizes": [
            {"id": 21, "price": 70.00, "weight": 1, "unit": "l", "stock": 40},
        ],
    },
    3: {
        "id": 3,
        "seller_id": 20,
        "price": 250.00,
        "pack_sizes": [
            {"id": 31, "price": 250.00, "weight": 250, "unit": "g", "stock": 15},
        ],
    },
}

@app.get("/products/{product_id}")
def get_product(product_id: int):
    product = PRODUCTS.get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
