#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from marketplace.data.models.user import UserModel, AddressModel
from marketplace.data.models.cart import CartModel
from marketplace.data.models.cart_item import CartItemModel
from marketplace.data.models.order import OrderModel, OrderItemModel
from marketplace.data.models.coupon import CouponModel
from marketplace.data.models.payment import PaymentModel

__all__ = [
    "UserModel",
    "AddressModel",
    "CartModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
    "CouponModel",
    "PaymentModel",
]
