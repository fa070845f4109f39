# marketplace/services/pricing.py
"""
Resolver cen i przeliczanie kwot zamowienia.

Ceny nie sa cache'owane: kazde przeliczenie pyta katalog od nowa, wiec zmiana
ceny przez sprzedawce zmienia wyswietlana sume otwartych zamowien. Jedyne
snapshoty to platform_fee (raz, przy tworzeniu) i kwota platnosci.
"""
from decimal import Decimal
from typing import Iterable

from marketplace.data.models.coupon import CouponModel
from marketplace.data.models.order import OrderItemModel
from marketplace.domain.errors import NotFoundError
from marketplace.domain.schemas import PackSize, ProductInfo
from marketplace.domain.status import ItemStatus
from marketplace.services.product_client import PriceCatalog
from marketplace.utils.money import D, ZERO, round_money
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


class PricingService:
    def __init__(self, catalog: PriceCatalog):
        self.catalog = catalog

    def get_product(self, product_id: int) -> ProductInfo:
        product = self.catalog.find_product(product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")
        return product

    def get_pack(self, product_id: int, pack_size_id: int) -> PackSize:
        pack = self.get_product(product_id).find_pack(pack_size_id)
        if pack is None:
            raise NotFoundError(f"Pack size {pack_size_id} not found for product {product_id}")
        return pack

    def resolve_unit_price(self, product_id: int, pack_size_id: int) -> Decimal:
        return round_money(self.get_pack(product_id, pack_size_id).price)

    def resolve_seller(self, product_id: int) -> int:
        return self.get_product(product_id).seller_id

    def try_unit_price(self, product_id: int, pack_size_id: int) -> Decimal | None:
        """Cena albo None gdy produkt/wariant zniknal z katalogu."""
        try:
            return self.resolve_unit_price(product_id, pack_size_id)
        except NotFoundError:
            return None

    # =====================================================
    # ORDER TOTALS
    # =====================================================

    def live_lines(self, items: Iterable[OrderItemModel]) -> list[tuple[OrderItemModel, Decimal]]:
        """Nieanulowane pozycje z aktualna cena jednostkowa."""
        lines = []
        for item in items:
            if item.status == ItemStatus.CANCELLED.value:
                continue
            price = self.try_unit_price(item.product_id, item.pack_size_id)
            if price is None:
                logger.warning(
                    f"Pozycja {item.id}: produkt {item.product_id}/{item.pack_size_id} "
                    f"nie istnieje w katalogu, pomijam w sumie"
                )
                continue
            lines.append((item, price))
        return lines

    def recompute_order_totals(
        self,
        platform_fee,
        items: Iterable[OrderItemModel],
        coupon: CouponModel | None,
    ) -> dict:
        """
        total = platform_fee + suma(cena x ilosc) po nieanulowanych pozycjach.
        Kupon jest odpinany gdy total < min_order_value albo nie ma juz
        pozycji sprzedawcy kuponu.
        """
        lines = self.live_lines(items)
        subtotal = sum((price * item.quantity for item, price in lines), ZERO)
        total_amount = round_money(D(platform_fee) + subtotal)

        discount = ZERO
        applied_coupon = None

        if coupon is not None:
            eligible = eligible_amount(lines, coupon.seller_id)
            if total_amount < D(coupon.min_order_value) or eligible <= ZERO:
                logger.info(f"Kupon {coupon.code} odpiety (total={total_amount}, eligible={eligible})")
            else:
                discount = compute_discount(coupon, eligible)
                applied_coupon = coupon.code

        discount = min(discount, total_amount)

        return {
            "total_amount": total_amount,
            "discount": discount,
            "final_amount": round_money(total_amount - discount),
            "applied_coupon": applied_coupon,
        }


def eligible_amount(lines: Iterable[tuple[OrderItemModel, Decimal]], seller_id: int) -> Decimal:
    return round_money(
        sum((price * item.quantity for item, price in lines if item.seller_id == seller_id), ZERO)
    )


def compute_discount(coupon: CouponModel, eligible: Decimal) -> Decimal:
    eligible = D(eligible)
    if eligible <= ZERO:
        return ZERO

    if coupon.discount_type == "percentage":
        amount = eligible * D(coupon.discount_value) / Decimal(100)
        if coupon.max_discount is not None:
            amount = min(amount, D(coupon.max_discount))
    else:
        amount = D(coupon.discount_value)

    return round_money(min(amount, eligible))
