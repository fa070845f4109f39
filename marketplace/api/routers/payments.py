from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from marketplace.api.deps import get_catalog
from marketplace.data.database import get_db
from marketplace.domain.schemas import PaymentCreate, PaymentOut
from marketplace.services.payment_service import PaymentService
from marketplace.services.product_client import PriceCatalog

router = APIRouter(prefix="/payments", tags=["payments"])


def get_service(db: Session = Depends(get_db), catalog: PriceCatalog = Depends(get_catalog)):
    return PaymentService(db, catalog)


@router.post("/", response_model=PaymentOut, status_code=201)
def create_payment(payload: PaymentCreate, user_id: int = Query(...), svc: PaymentService = Depends(get_service)):
    """
    Tworzy płatność (snapshot final_amount) i zleca czyszczenie koszyka.
    """
    return svc.create_payment(user_id, payload)


@router.get("/", response_model=List[PaymentOut])
def my_payments(user_id: int = Query(...), svc: PaymentService = Depends(get_service)):
    return svc.list_payments(user_id)


@router.get("/{order_id}", response_model=PaymentOut)
def get_payment(order_id: int, user_id: int = Query(...), svc: PaymentService = Depends(get_service)):
    return svc.get_payment(user_id, order_id)
