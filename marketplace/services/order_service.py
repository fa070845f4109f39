# marketplace/services/order_service.py
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable

from sqlalchemy.orm import Session

from marketplace.data.models.coupon import CouponModel
from marketplace.data.models.order import OrderModel, OrderItemModel
from marketplace.domain.errors import ConflictError, NotFoundError, ValidationError
from marketplace.domain.schemas import OrderItemIn, OrderUpdate
from marketplace.domain.status import ItemStatus, OrderStatus, check_transition, derive_order_status, is_terminal
from marketplace.repos.coupon_repo import CouponRepo
from marketplace.repos.order_repo import OrderRepo
from marketplace.repos.payment_repo import PaymentRepo
from marketplace.services.pricing import PricingService
from marketplace.services.product_client import PriceCatalog
from marketplace.services.user_service import UserService
from marketplace.utils.money import round_money
from marketplace.utils.settings import PLATFORM_FEE
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


def require_reason(reason: str | None) -> str:
    if not reason or not reason.strip():
        raise ValidationError("Reason for cancellation is required")
    return reason.strip()


def order_status(order: OrderModel) -> OrderStatus:
    return derive_order_status(
        (i.status for i in order.items),
        order_cancelled=bool(order.reason_for_cancel),
    )


class OrderService:
    """
    Serwis odpowiedzialny za domenę zamówień.

    Kazda mutacja konczy sie przez save(): przeliczenie kwot z aktualnych
    pozycji i cen, ponowna walidacja kuponu i zapis z warunkiem na version.
    """

    def __init__(self, db: Session, catalog: PriceCatalog, platform_fee: Decimal | None = None):
        self.db = db
        self.repo = OrderRepo(db)
        self.coupons = CouponRepo(db)
        self.payments = PaymentRepo(db)
        self.users = UserService(db)
        self.pricing = PricingService(catalog)
        self.platform_fee = round_money(PLATFORM_FEE if platform_fee is None else platform_fee)

    # =====================================================
    # QUERY
    # =====================================================
    def get_order(self, user_id: int, order_id: int) -> Dict[str, Any]:
        return self.to_dict(self.load_for_user(user_id, order_id))

    def list_orders(self, user_id: int) -> Dict[str, Any]:
        orders = [self.to_dict(o) for o in self.repo.list_orders_by_user(user_id)]
        return {"total": len(orders), "orders": orders}

    def filter_orders_by_status(self, user_id: int, status: OrderStatus) -> Dict[str, Any]:
        orders = [
            self.to_dict(o)
            for o in self.repo.list_orders_by_user(user_id)
            if order_status(o) == status
        ]
        return {"total": len(orders), "orders": orders}

    def load_for_user(self, user_id: int, order_id: int) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order or order.user_id != user_id:
            raise NotFoundError("Order not found for this user")
        return order

    def load_item_for_user(self, user_id: int, item_id: int) -> OrderItemModel:
        item = self.repo.get_item(item_id)
        if not item or item.order.user_id != user_id:
            raise NotFoundError("Order item not found")
        return item

    def to_dict(self, order: OrderModel) -> Dict[str, Any]:
        items = []
        for i in order.items:
            unit_price = self.pricing.try_unit_price(i.product_id, i.pack_size_id)
            items.append(
                {
                    "id": i.id,
                    "product_id": i.product_id,
                    "seller_id": i.seller_id,
                    "pack_size_id": i.pack_size_id,
                    "quantity": i.quantity,
                    "status": i.status,
                    "reason_for_cancel": i.reason_for_cancel,
                    "comment": i.comment,
                    "unit_price": unit_price,
                    "line_total": round_money(unit_price * i.quantity) if unit_price is not None else None,
                }
            )

        return {
            "id": order.id,
            "user_id": order.user_id,
            "status": order_status(order),
            "items": items,
            "delivery_address": order.delivery_address,
            "total_amount": order.total_amount,
            "platform_fee": order.platform_fee,
            "discount": order.discount,
            "final_amount": order.final_amount,
            "applied_coupon": order.applied_coupon,
            "reason_for_cancel": order.reason_for_cancel,
            "comment": order.comment,
            "version": order.version,
            "created_at": order.created_at,
        }

    # =====================================================
    # COMMANDS
    # =====================================================
    def place_order(self, user_id: int, items: Iterable[OrderItemIn]) -> Dict[str, Any]:
        """
        Use Case: Złożenie zamówienia (Command).

        1. Wymaga wybranego adresu dostawy
        2. Kazda pozycja dostaje seller_id z katalogu; brak produktu przerywa
           cale wywolanie (nic nie zapisujemy)
        3. Gdy uzytkownik ma otwarte zamowienie, pozycje sa do niego dopisywane,
           w przeciwnym razie powstaje nowe zamowienie
        """
        items = list(items)
        if not items:
            raise ValidationError("Items must contain at least 1 product")
        for index, it in enumerate(items):
            if it.quantity < 1:
                raise ValidationError(f"Quantity must be >= 1 at index {index}")

        address = self.users.get_selected_address(user_id)

        new_items = []
        for it in items:
            product = self.pricing.get_product(it.product_id)
            if product.find_pack(it.pack_size_id) is None:
                raise NotFoundError(f"Pack size {it.pack_size_id} not found for product {it.product_id}")
            new_items.append(
                OrderItemModel(
                    product_id=it.product_id,
                    seller_id=product.seller_id,
                    pack_size_id=it.pack_size_id,
                    quantity=it.quantity,
                    status=ItemStatus.PENDING.value,
                )
            )

        open_order = self._find_open_order(user_id)

        if open_order:
            logger.info(f"Dopisuje {len(new_items)} pozycji do otwartego zamowienia {open_order.id}")
            open_order.items.extend(new_items)
            self.save(open_order)
            return self.to_dict(open_order)

        totals = self.pricing.recompute_order_totals(self.platform_fee, new_items, None)
        order = OrderModel(
            user_id=user_id,
            delivery_address=address.as_snapshot(),
            platform_fee=self.platform_fee,
            items=new_items,
            version=1,
            **totals,
        )
        created = self.repo.create_order(order)

        logger.info(f"Order {created.id} created for user {user_id}, total {created.total_amount}")
        return self.to_dict(created)

    def update_order(self, user_id: int, order_id: int, patch: OrderUpdate) -> Dict[str, Any]:
        """
        Use Case: Częściowa aktualizacja zamówienia przez klienta.
        Pozycje spoza zamowienia sa ignorowane (bez upsert).
        """
        order = self.load_for_user(user_id, order_id)

        if patch.version is not None and patch.version != order.version:
            raise ConflictError(
                f"Order version mismatch (expected {patch.version}, current {order.version})"
            )

        #najpierw walidacja calego patcha, potem zmiany
        plan = []
        for p in patch.items:
            item = order.find_item(p.id)
            if item is None:
                continue
            fields = p.model_fields_set
            cancel = p.status is not None and p.status.value != item.status

            if cancel:
                if p.status != ItemStatus.CANCELLED:
                    raise ValidationError("Customers can only cancel items")
                check_transition(item.status, p.status.value)
                require_reason(p.reason_for_cancel)
            elif "reason_for_cancel" in fields and item.status != ItemStatus.CANCELLED.value:
                raise ValidationError("reason_for_cancel can only be set on cancelled items")

            if p.quantity is not None and p.quantity != item.quantity:
                if cancel or is_terminal(item.status):
                    raise ValidationError(f"Cannot change quantity of a {item.status} item")

            plan.append((item, p, cancel))

        for item, p, cancel in plan:
            fields = p.model_fields_set
            if cancel:
                item.status = ItemStatus.CANCELLED.value
                item.reason_for_cancel = require_reason(p.reason_for_cancel)
            elif "reason_for_cancel" in fields:
                item.reason_for_cancel = p.reason_for_cancel
            if p.quantity is not None:
                item.quantity = p.quantity
            if "comment" in fields:
                item.comment = p.comment

        changes = {}
        if "comment" in patch.model_fields_set:
            changes["comment"] = patch.comment

        self.save(order, changes)
        logger.info(f"Order {order_id} updated by user {user_id} ({len(plan)} items patched)")
        return self.to_dict(order)

    def delete_order_item(self, user_id: int, item_id: int) -> Dict[str, Any] | None:
        """
        Use Case: Usunięcie pozycji (nie anulowanie).
        Usuniecie ostatniej pozycji kasuje cale zamowienie; zwraca wtedy None.
        """
        item = self.load_item_for_user(user_id, item_id)
        order = item.order

        if item.status == ItemStatus.DELIVERED.value:
            raise ValidationError("Delivered items cannot be removed")
        if self.payments.get_by_order(order.id):
            raise ConflictError("Items cannot be removed from a paid order")

        order.items.remove(item)

        if order.items:
            self.save(order)
            return self.to_dict(order)

        order_id = order.id
        rowcount = self.repo.delete_order_version(order_id, order.version)
        if rowcount == 0:
            self.repo.rollback()
            raise ConflictError("Order was modified by another operation, retry")
        self.repo.commit()

        logger.info(f"Order {order_id} deleted, last item {item_id} removed")
        return None

    def save(self, order: OrderModel, changes: dict | None = None, coupon: CouponModel | None = None) -> None:
        """
        Przelicza kwoty i zapisuje zamowienie z compare-and-swap na version.
        coupon nadpisuje kupon zapisany w zamowieniu (apply_coupon).
        """
        if coupon is None and order.applied_coupon:
            # kupon usuniety albo wylaczony -> odpiety
            coupon = self.coupons.get_active_by_code(order.applied_coupon)

        totals = self.pricing.recompute_order_totals(order.platform_fee, order.items, coupon)

        rowcount = self.repo.update_order_version(
            order_id=order.id,
            old_version=order.version,
            new_data={
                **(changes or {}),
                **totals,
                "version": order.version + 1,
                "updated_at": datetime.now(timezone.utc),
            },
        )

        if rowcount == 0:
            self.repo.rollback()
            logger.warning(f"Konflikt wersji zamowienia {order.id}")
            raise ConflictError("Order was modified by another operation, retry")

        self.repo.commit()

    def _find_open_order(self, user_id: int) -> OrderModel | None:
        #otwarte = co najmniej jedna pozycja nieterminalna i brak platnosci
        for order in self.repo.list_orders_by_user(user_id):
            if not any(not is_terminal(i.status) for i in order.items):
                continue
            if self.payments.get_by_order(order.id):
                continue
            return order
        return None
