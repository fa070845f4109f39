# marketplace/api/routers/orders.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from marketplace.api.deps import get_catalog
from marketplace.data.database import get_db
from marketplace.domain.schemas import (
    ApplyCouponIn,
    CancelIn,
    OrderCreate,
    OrderList,
    OrderOut,
    OrderUpdate,
)
from marketplace.domain.status import OrderStatus
from marketplace.services.coupon_service import CouponService
from marketplace.services.order_service import OrderService
from marketplace.services.order_status_service import OrderStatusService
from marketplace.services.product_client import PriceCatalog

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session = Depends(get_db), catalog: PriceCatalog = Depends(get_catalog)):
    return OrderService(db, catalog)


def get_status_service(db: Session = Depends(get_db), catalog: PriceCatalog = Depends(get_catalog)):
    return OrderStatusService(db, catalog)


@router.post("/", response_model=OrderOut, status_code=201)
def place_order(payload: OrderCreate, user_id: int = Query(...), svc: OrderService = Depends(get_service)):
    """
    Składa zamówienie; gdy istnieje otwarte zamówienie, pozycje są do niego dopisywane.
    """
    return svc.place_order(user_id, payload.items)


@router.get("/", response_model=OrderList)
def my_orders(user_id: int = Query(...), svc: OrderService = Depends(get_service)):
    return svc.list_orders(user_id)


@router.get("/status/filter", response_model=OrderList)
def filter_by_status(
    status: OrderStatus = Query(...),
    user_id: int = Query(...),
    svc: OrderService = Depends(get_service),
):
    return svc.filter_orders_by_status(user_id, status)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: int, user_id: int = Query(...), svc: OrderService = Depends(get_service)):
    return svc.get_order(user_id, order_id)


@router.patch("/{order_id}", response_model=OrderOut)
def update_order(
    order_id: int,
    payload: OrderUpdate,
    user_id: int = Query(...),
    svc: OrderService = Depends(get_service),
):
    return svc.update_order(user_id, order_id, payload)


@router.delete("/items/{item_id}")
def delete_order_item(item_id: int, user_id: int = Query(...), svc: OrderService = Depends(get_service)):
    order = svc.delete_order_item(user_id, item_id)
    if order is None:
        return {"message": "Order deleted (last item removed)", "order": None}
    return {"message": "Item removed", "order": OrderOut.model_validate(order)}


@router.post("/{order_id}/cancel", response_model=OrderOut)
def cancel_order(
    order_id: int,
    payload: CancelIn,
    user_id: int = Query(...),
    svc: OrderStatusService = Depends(get_status_service),
):
    return svc.cancel_order(user_id, order_id, payload.reason, payload.comment)


@router.post("/items/{item_id}/cancel", response_model=OrderOut)
def cancel_item(
    item_id: int,
    payload: CancelIn,
    user_id: int = Query(...),
    svc: OrderStatusService = Depends(get_status_service),
):
    return svc.cancel_item(user_id, item_id, payload.reason, payload.comment)


@router.post("/{order_id}/apply-coupon", response_model=OrderOut)
def apply_coupon(
    order_id: int,
    payload: ApplyCouponIn,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
    catalog: PriceCatalog = Depends(get_catalog),
):
    return CouponService(db, catalog).apply_coupon(user_id, order_id, payload.code)
