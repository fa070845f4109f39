# marketplace/domain/status.py
"""
Cykl zycia pozycji zamowienia i status zagregowany zamowienia.

    pending -> packing -> out for delivery -> delivered
    kazdy stan nieterminalny -> cancelled

delivered i cancelled sa terminalne.
"""
from enum import Enum
from typing import Iterable

from marketplace.domain.errors import ValidationError


class ItemStatus(str, Enum):
    PENDING = "pending"
    PACKING = "packing"
    OUT_FOR_DELIVERY = "out for delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL = frozenset({ItemStatus.DELIVERED, ItemStatus.CANCELLED})

_DELIVERY_FLOW = [
    ItemStatus.PENDING,
    ItemStatus.PACKING,
    ItemStatus.OUT_FOR_DELIVERY,
    ItemStatus.DELIVERED,
]


def is_terminal(status: str) -> bool:
    return ItemStatus(status) in TERMINAL


def can_transition(current: str, target: str) -> bool:
    current, target = ItemStatus(current), ItemStatus(target)

    if current in TERMINAL:
        return False
    if target == ItemStatus.CANCELLED:
        return True
    #tylko do przodu, mozna przeskoczyc krok
    return _DELIVERY_FLOW.index(target) > _DELIVERY_FLOW.index(current)


def check_transition(current: str, target: str) -> None:
    if is_terminal(current):
        raise ValidationError(f"Item is already {current} and cannot be changed")
    if not can_transition(current, target):
        raise ValidationError(f"Cannot change item status from '{current}' to '{target}'")


def derive_order_status(statuses: Iterable[str], order_cancelled: bool = False) -> OrderStatus:
    """
    Status zamowienia liczony ze statusow pozycji, nigdy zapisywany.

    order_cancelled: klient anulowal cale zamowienie; gdy nie zostala zadna
    pozycja nieterminalna, zamowienie jest anulowane mimo dostarczonych pozycji.
    """
    statuses = [ItemStatus(s) for s in statuses]

    if order_cancelled and statuses and all(s in TERMINAL for s in statuses):
        return OrderStatus.CANCELLED

    if statuses and all(s == ItemStatus.DELIVERED for s in statuses):
        return OrderStatus.COMPLETED
    if statuses and all(s == ItemStatus.CANCELLED for s in statuses):
        return OrderStatus.CANCELLED
    if all(s == ItemStatus.PENDING for s in statuses):
        return OrderStatus.PENDING
    return OrderStatus.PROCESSING
