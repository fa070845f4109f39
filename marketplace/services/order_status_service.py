# marketplace/services/order_status_service.py
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from marketplace.data.models.order import OrderItemModel
from marketplace.domain.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from marketplace.domain.status import ItemStatus, can_transition, check_transition, is_terminal
from marketplace.services.order_service import OrderService, require_reason
from marketplace.services.product_client import PriceCatalog
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


def _apply_status(item: OrderItemModel, status: ItemStatus, reason: str | None) -> None:
    item.status = status.value
    if status == ItemStatus.CANCELLED and reason:
        item.reason_for_cancel = reason.strip()


class OrderStatusService:
    """
    Przejscia statusow pozycji:
    - sprzedawca zmienia tylko swoje pozycje (po pozycji albo po zamowieniu)
    - klient moze anulowac pozycje albo cale zamowienie (wymagany powod)
    Po kazdym przejsciu kwoty i rabat sa przeliczane.
    """

    def __init__(self, db: Session, catalog: PriceCatalog):
        self.orders = OrderService(db, catalog)
        self.repo = self.orders.repo

    # =====================================================
    # SELLER
    # =====================================================
    def update_item_status(
        self, seller_id: int, item_id: int, status: ItemStatus, reason: str | None = None
    ) -> Dict[str, Any]:
        item = self.repo.get_item(item_id)
        if not item:
            raise NotFoundError("Order item not found")
        if item.seller_id != seller_id:
            raise AuthorizationError("You can only update your own items")

        check_transition(item.status, status.value)

        logger.info(f"Seller {seller_id}: item {item_id} {item.status} -> {status.value}")
        _apply_status(item, status, reason)

        order = item.order
        self.orders.save(order)
        return self.orders.to_dict(order)

    def update_order_status(
        self, seller_id: int, order_id: int, status: ItemStatus, reason: str | None = None
    ) -> Dict[str, Any]:
        """
        Ustawia status na wszystkich pozycjach sprzedawcy w zamowieniu,
        pomijajac terminalne i te, ktorych nie da sie przesunac.
        """
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found")

        own = [i for i in order.items if i.seller_id == seller_id]
        if not own:
            raise AuthorizationError("You have no items in this order")

        movable = [i for i in own if can_transition(i.status, status.value)]
        if not movable:
            raise ValidationError(f"No items of this seller can be moved to '{status.value}'")

        for item in movable:
            _apply_status(item, status, reason)

        logger.info(
            f"Seller {seller_id}: order {order_id}, {len(movable)}/{len(own)} items -> {status.value}"
        )
        self.orders.save(order)
        return self.orders.to_dict(order)

    def list_seller_items(self, seller_id: int, status: ItemStatus | None = None) -> List[Dict[str, Any]]:
        items = self.repo.list_items_by_seller(seller_id, status.value if status else None)
        return [
            {
                "id": i.id,
                "order_id": i.order_id,
                "product_id": i.product_id,
                "seller_id": i.seller_id,
                "pack_size_id": i.pack_size_id,
                "quantity": i.quantity,
                "status": i.status,
                "reason_for_cancel": i.reason_for_cancel,
                "comment": i.comment,
            }
            for i in items
        ]

    # =====================================================
    # CUSTOMER
    # =====================================================
    def cancel_order(
        self, user_id: int, order_id: int, reason: str, comment: str | None = None
    ) -> Dict[str, Any]:
        reason = require_reason(reason)
        order = self.orders.load_for_user(user_id, order_id)

        active = [i for i in order.items if not is_terminal(i.status)]
        if not active:
            if order.reason_for_cancel or all(i.status == ItemStatus.CANCELLED.value for i in order.items):
                raise ConflictError("Order is already cancelled")
            raise ValidationError("Order has no items that can be cancelled")

        for item in active:
            _apply_status(item, ItemStatus.CANCELLED, reason)

        changes = {"reason_for_cancel": reason}
        if comment is not None:
            changes["comment"] = comment

        logger.info(f"User {user_id} cancelled order {order_id} ({len(active)} items)")
        self.orders.save(order, changes)
        return self.orders.to_dict(order)

    def cancel_item(
        self, user_id: int, item_id: int, reason: str, comment: str | None = None
    ) -> Dict[str, Any]:
        reason = require_reason(reason)
        item = self.orders.load_item_for_user(user_id, item_id)

        if item.status == ItemStatus.CANCELLED.value:
            raise ConflictError("Item is already cancelled")
        check_transition(item.status, ItemStatus.CANCELLED.value)

        _apply_status(item, ItemStatus.CANCELLED, reason)
        if comment is not None:
            item.comment = comment

        logger.info(f"User {user_id} cancelled item {item_id}")
        order = item.order
        self.orders.save(order)
        return self.orders.to_dict(order)
