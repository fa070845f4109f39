# marketplace/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict, StrictInt
from typing import List, Literal, Optional
from decimal import Decimal
from datetime import datetime

from marketplace.domain.status import ItemStatus, OrderStatus


class _Strict(BaseModel):
    """Pola spoza listy sa odrzucane (allow-list)."""

    model_config = ConfigDict(extra="forbid")


# =====================================================
# USERS / ADDRESSES
# =====================================================

class UserCreate(_Strict):
    """Schema dla tworzenia użytkownika."""

    id: int = Field(..., gt=0, description="ID użytkownika (musi być > 0)")
    name: str = Field(..., min_length=1, max_length=100, description="Imię użytkownika")


class AddressIn(_Strict):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = Field(None, pattern=r"^[0-9]{10}$")
    email: Optional[str] = Field(None, pattern=r".+@.+\..+")
    house_no: Optional[str] = None
    landmark: Optional[str] = None
    pincode: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    save_as: Literal["Home", "Office", "Other"] = "Home"


class AddressOut(AddressIn):
    model_config = ConfigDict(from_attributes=True)

    id: int


class UserRead(BaseModel):
    """Schema dla użytkownika (response)."""

    id: int
    name: str
    selected_address_id: Optional[int] = None
    addresses: List[AddressOut] = []

    model_config = ConfigDict(from_attributes=True)


# =====================================================
# CATALOG
# =====================================================

class PackSize(BaseModel):
    id: int
    price: Decimal
    weight: Optional[Decimal] = None
    unit: Optional[str] = None
    stock: Optional[int] = None


class ProductInfo(BaseModel):
    """Produkt widziany przez product-service."""

    id: int
    seller_id: int
    price: Optional[Decimal] = None
    pack_sizes: List[PackSize] = []

    def find_pack(self, pack_size_id: int) -> Optional[PackSize]:
        return next((p for p in self.pack_sizes if p.id == pack_size_id), None)


# =====================================================
# CART
# =====================================================

class CartItemIn(_Strict):
    """Schema dla dodawania / zmiany ilości produktu w koszyku."""

    product_id: StrictInt = Field(..., gt=0, description="ID produktu (musi być > 0)")
    pack_size_id: StrictInt = Field(..., gt=0, description="ID wariantu (musi być > 0)")
    quantity: StrictInt = Field(..., ge=1, description="Ilość produktu (co najmniej 1)")


class CartItemOut(BaseModel):
    id: int
    product_id: int
    pack_size_id: int
    quantity: int
    pack_size: Optional[PackSize] = None
    line_total: Optional[Decimal] = None


class CartOut(BaseModel):
    """Schema dla koszyka (response)."""

    cart_id: int
    user_id: int
    items: List[CartItemOut]
    total_amount: Decimal
    is_empty: bool
    version: int


# =====================================================
# ORDERS
# =====================================================

class OrderItemIn(_Strict):
    product_id: StrictInt = Field(..., gt=0)
    pack_size_id: StrictInt = Field(..., gt=0)
    quantity: StrictInt = Field(..., ge=1)


class OrderCreate(_Strict):
    """Schema dla składania zamówienia."""

    items: List[OrderItemIn] = Field(..., min_length=1)


class OrderItemPatch(_Strict):
    """Częściowa aktualizacja pozycji; tylko pola z tej listy."""

    id: int
    quantity: Optional[StrictInt] = Field(None, ge=1)
    status: Optional[ItemStatus] = None
    comment: Optional[str] = None
    reason_for_cancel: Optional[str] = None


class OrderUpdate(_Strict):
    items: List[OrderItemPatch] = []
    comment: Optional[str] = None
    version: Optional[int] = Field(None, description="Oczekiwana wersja zamówienia (compare-and-swap)")


class CancelIn(_Strict):
    reason: str = Field(..., description="Powód anulowania")
    comment: Optional[str] = None


class ApplyCouponIn(_Strict):
    code: str = Field(..., min_length=1)


class OrderItemOut(BaseModel):
    id: int
    product_id: int
    seller_id: int
    pack_size_id: int
    quantity: int
    status: ItemStatus
    reason_for_cancel: Optional[str] = None
    comment: Optional[str] = None
    unit_price: Optional[Decimal] = None
    line_total: Optional[Decimal] = None


class SellerItemOut(BaseModel):
    id: int
    order_id: int
    product_id: int
    seller_id: int
    pack_size_id: int
    quantity: int
    status: ItemStatus
    reason_for_cancel: Optional[str] = None
    comment: Optional[str] = None


class OrderOut(BaseModel):
    """Schema dla zamówienia (response)."""

    id: int
    user_id: int
    status: OrderStatus
    items: List[OrderItemOut]
    delivery_address: Optional[dict] = None
    total_amount: Decimal
    platform_fee: Decimal
    discount: Decimal
    final_amount: Decimal
    applied_coupon: Optional[str] = None
    reason_for_cancel: Optional[str] = None
    comment: Optional[str] = None
    version: int
    created_at: datetime


class OrderList(BaseModel):
    total: int
    orders: List[OrderOut]


class StatusIn(_Strict):
    status: ItemStatus
    reason_for_cancel: Optional[str] = None


# =====================================================
# COUPONS
# =====================================================

class CouponCreate(_Strict):
    code: str = Field(..., min_length=1, max_length=64)
    discount_type: Literal["percentage", "flat"]
    discount_value: Decimal = Field(..., gt=0)
    min_order_value: Decimal = Field(Decimal("0"), ge=0)
    max_discount: Optional[Decimal] = Field(None, gt=0)
    expiry_date: datetime
    is_active: bool = True


class CouponUpdate(_Strict):
    """Dozwolone pola aktualizacji kuponu."""

    discount_type: Optional[Literal["percentage", "flat"]] = None
    discount_value: Optional[Decimal] = Field(None, gt=0)
    min_order_value: Optional[Decimal] = Field(None, ge=0)
    max_discount: Optional[Decimal] = Field(None, gt=0)
    expiry_date: Optional[datetime] = None
    is_active: Optional[bool] = None


class CouponOut(BaseModel):
    id: int
    code: str
    discount_type: str
    discount_value: Decimal
    min_order_value: Decimal
    max_discount: Optional[Decimal] = None
    expiry_date: datetime
    is_active: bool
    seller_id: int

    model_config = ConfigDict(from_attributes=True)


# =====================================================
# PAYMENTS
# =====================================================

class PaymentCreate(_Strict):
    order_id: int = Field(..., gt=0)
    method: Literal["cod", "card", "upi", "wallet"]
    transaction_id: Optional[str] = None
    details: Optional[dict] = None


class PaymentOut(BaseModel):
    id: int
    order_id: int
    user_id: int
    amount: Decimal
    method: str
    transaction_id: Optional[str] = None
    details: Optional[dict] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
