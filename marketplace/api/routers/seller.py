# marketplace/api/routers/seller.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from marketplace.api.deps import get_catalog
from marketplace.data.database import get_db
from marketplace.domain.schemas import CouponCreate, CouponOut, CouponUpdate, OrderOut, SellerItemOut, StatusIn
from marketplace.domain.status import ItemStatus
from marketplace.services.coupon_service import CouponService
from marketplace.services.order_status_service import OrderStatusService
from marketplace.services.product_client import PriceCatalog

router = APIRouter(prefix="/seller", tags=["seller"])


def get_status_service(db: Session = Depends(get_db), catalog: PriceCatalog = Depends(get_catalog)):
    return OrderStatusService(db, catalog)


# =====================================================
# ORDER STATUS
# =====================================================

@router.patch("/orders/items/{item_id}/status", response_model=OrderOut)
def update_item_status(
    item_id: int,
    payload: StatusIn,
    seller_id: int = Query(...),
    svc: OrderStatusService = Depends(get_status_service),
):
    return svc.update_item_status(seller_id, item_id, payload.status, payload.reason_for_cancel)


@router.patch("/orders/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: int,
    payload: StatusIn,
    seller_id: int = Query(...),
    svc: OrderStatusService = Depends(get_status_service),
):
    """
    Zmienia status wszystkich nieterminalnych pozycji sprzedawcy w zamówieniu.
    """
    return svc.update_order_status(seller_id, order_id, payload.status, payload.reason_for_cancel)


@router.get("/orders/items", response_model=List[SellerItemOut])
def list_items(
    seller_id: int = Query(...),
    status: Optional[ItemStatus] = Query(None),
    svc: OrderStatusService = Depends(get_status_service),
):
    return svc.list_seller_items(seller_id, status)


# =====================================================
# COUPONS
# =====================================================

@router.post("/coupons", response_model=CouponOut, status_code=201)
def create_coupon(payload: CouponCreate, seller_id: int = Query(...), db: Session = Depends(get_db)):
    return CouponService(db).create_coupon(seller_id, payload)


@router.get("/coupons", response_model=List[CouponOut])
def list_coupons(seller_id: int = Query(...), db: Session = Depends(get_db)):
    return CouponService(db).list_seller_coupons(seller_id)


@router.patch("/coupons/{coupon_id}", response_model=CouponOut)
def update_coupon(
    coupon_id: int,
    payload: CouponUpdate,
    seller_id: int = Query(...),
    db: Session = Depends(get_db),
):
    return CouponService(db).update_coupon(seller_id, coupon_id, payload)


@router.delete("/coupons/{coupon_id}", status_code=204)
def delete_coupon(coupon_id: int, seller_id: int = Query(...), db: Session = Depends(get_db)):
    CouponService(db).delete_coupon(seller_id, coupon_id)
    return Response(status_code=204)
