# marketplace/services/coupon_service.py
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from marketplace.data.models.coupon import CouponModel
from marketplace.domain.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from marketplace.domain.schemas import CouponCreate, CouponOut, CouponUpdate
from marketplace.domain.status import is_terminal
from marketplace.repos.coupon_repo import CouponRepo
from marketplace.services.order_service import OrderService
from marketplace.services.pricing import eligible_amount
from marketplace.services.product_client import PriceCatalog
from marketplace.utils.money import D
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)

_NULLABLE = {"max_discount"}


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(dt: datetime) -> datetime:
    # SQLite zwraca naive datetime, traktujemy jako UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def _validate_terms(discount_type: str, discount_value, max_discount) -> None:
    if D(discount_value) <= 0:
        raise ValidationError("discount_value must be > 0")
    if discount_type == "percentage":
        if D(discount_value) > Decimal(100):
            raise ValidationError("percentage discount_value must be <= 100")
    elif max_discount is not None:
        raise ValidationError("max_discount applies to percentage coupons only")


class CouponService:
    def __init__(self, db: Session, catalog: PriceCatalog | None = None):
        self.db = db
        self.repo = CouponRepo(db)
        self.catalog = catalog

    # =====================================================
    # SELLER
    # =====================================================
    def create_coupon(self, seller_id: int, payload: CouponCreate) -> CouponOut:
        code = normalize_code(payload.code)
        if not code:
            raise ValidationError("code is required")

        _validate_terms(payload.discount_type, payload.discount_value, payload.max_discount)

        expiry = _as_utc(payload.expiry_date)
        if expiry <= _now_utc():
            raise ValidationError("expiry_date must be in the future")

        if self.repo.get_by_code(code):
            raise ConflictError("Coupon code already exists")

        coupon = self.repo.create_coupon(
            CouponModel(
                code=code,
                discount_type=payload.discount_type,
                discount_value=payload.discount_value,
                min_order_value=payload.min_order_value,
                max_discount=payload.max_discount,
                expiry_date=expiry,
                is_active=payload.is_active,
                seller_id=seller_id,
            )
        )
        logger.info(f"Seller {seller_id} created coupon {code}")
        return CouponOut.model_validate(coupon)

    def update_coupon(self, seller_id: int, coupon_id: int, payload: CouponUpdate) -> CouponOut:
        coupon = self._get_owned(seller_id, coupon_id)
        changes = payload.model_dump(exclude_unset=True)

        for key, value in changes.items():
            if value is None and key not in _NULLABLE:
                raise ValidationError(f"{key} cannot be null")

        discount_type = changes.get("discount_type", coupon.discount_type)
        _validate_terms(
            discount_type,
            changes.get("discount_value", coupon.discount_value),
            changes.get("max_discount", coupon.max_discount if discount_type == "percentage" else None),
        )
        if "expiry_date" in changes:
            changes["expiry_date"] = _as_utc(changes["expiry_date"])
        if discount_type == "flat":
            changes["max_discount"] = None

        for key, value in changes.items():
            setattr(coupon, key, value)
        self.repo.commit()

        logger.info(f"Seller {seller_id} updated coupon {coupon.code}: {sorted(changes)}")
        return CouponOut.model_validate(coupon)

    def delete_coupon(self, seller_id: int, coupon_id: int) -> None:
        coupon = self._get_owned(seller_id, coupon_id)
        self.repo.delete_coupon(coupon)
        logger.info(f"Seller {seller_id} deleted coupon {coupon_id}")

    def list_seller_coupons(self, seller_id: int) -> List[CouponOut]:
        return [CouponOut.model_validate(c) for c in self.repo.list_by_seller(seller_id)]

    # =====================================================
    # CUSTOMER
    # =====================================================
    def list_available_coupons(self) -> List[CouponOut]:
        now = _now_utc()
        return [
            CouponOut.model_validate(c)
            for c in self.repo.list_active()
            if _as_utc(c.expiry_date) >= now
        ]

    def get_coupon(self, code: str) -> CouponOut:
        coupon = self.repo.get_active_by_code(normalize_code(code))
        if not coupon:
            raise NotFoundError("Coupon not found")
        return CouponOut.model_validate(coupon)

    def apply_coupon(self, user_id: int, order_id: int, code: str) -> Dict[str, Any]:
        """
        Use Case: Zastosowanie kuponu do zamówienia.

        Rabat liczony tylko od pozycji sprzedawcy kuponu (eligible amount),
        ograniczony przez max_discount (procentowy) i przez sama kwote bazowa.
        """
        orders = OrderService(self.db, self.catalog)
        order = orders.load_for_user(user_id, order_id)

        coupon = self.repo.get_active_by_code(normalize_code(code))
        if not coupon:
            raise NotFoundError("Coupon not found or inactive")

        if _as_utc(coupon.expiry_date) < _now_utc():
            raise ValidationError("Coupon has expired")

        if all(is_terminal(i.status) for i in order.items):
            raise ValidationError("Coupon cannot be applied to a closed order")

        lines = orders.pricing.live_lines(order.items)
        if not any(item.seller_id == coupon.seller_id for item, _ in lines):
            raise ValidationError("no items from this seller")

        eligible = eligible_amount(lines, coupon.seller_id)
        if eligible < D(coupon.min_order_value):
            raise ValidationError(f"Minimum order value for this coupon is {coupon.min_order_value}")

        orders.save(order, coupon=coupon)

        logger.info(f"Coupon {coupon.code} applied to order {order_id}, eligible {eligible}")
        return orders.to_dict(order)

    def _get_owned(self, seller_id: int, coupon_id: int) -> CouponModel:
        coupon = self.repo.get_coupon(coupon_id)
        if not coupon:
            raise NotFoundError("Coupon not found")
        if coupon.seller_id != seller_id:
            raise AuthorizationError("You can only manage your own coupons")
        return coupon
