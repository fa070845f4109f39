#marketplace/api/routers/carts.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from marketplace.api.deps import get_catalog
from marketplace.data.database import get_db
from marketplace.domain.schemas import CartItemIn, CartOut
from marketplace.services.cart_service import CartService
from marketplace.services.product_client import PriceCatalog

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session = Depends(get_db), catalog: PriceCatalog = Depends(get_catalog)):
    return CartService(db=db, catalog=catalog)


@router.get("/", response_model=CartOut)
def get_cart(user_id: int = Query(...), svc: CartService = Depends(get_service)):
    return svc.get_cart(user_id)


@router.post("/items", response_model=CartOut)
def add_item(payload: CartItemIn, user_id: int = Query(...), svc: CartService = Depends(get_service)):
    return svc.add_item(
        user_id=user_id,
        product_id=payload.product_id,
        pack_size_id=payload.pack_size_id,
        quantity=payload.quantity,
    )


@router.patch("/items", response_model=CartOut)
def set_item_quantity(payload: CartItemIn, user_id: int = Query(...), svc: CartService = Depends(get_service)):
    return svc.set_item_quantity(
        user_id=user_id,
        product_id=payload.product_id,
        pack_size_id=payload.pack_size_id,
        quantity=payload.quantity,
    )


@router.delete("/items/{cart_item_id}", response_model=CartOut)
def remove_item(cart_item_id: int, user_id: int = Query(...), svc: CartService = Depends(get_service)):
    return svc.remove_item(user_id, cart_item_id)
