from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from marketplace.data.database import get_db
from marketplace.domain.schemas import CouponOut
from marketplace.services.coupon_service import CouponService

router = APIRouter(prefix="/coupons", tags=["coupons"])


@router.get("/", response_model=List[CouponOut])
def available_coupons(db: Session = Depends(get_db)):
    return CouponService(db).list_available_coupons()


@router.get("/{code}", response_model=CouponOut)
def get_coupon(code: str, db: Session = Depends(get_db)):
    return CouponService(db).get_coupon(code)
