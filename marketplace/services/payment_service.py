# marketplace/services/payment_service.py
from typing import List

from sqlalchemy.orm import Session

from marketplace.data.models.payment import PaymentModel
from marketplace.domain.errors import ConflictError, NotFoundError, ValidationError
from marketplace.domain.schemas import PaymentCreate, PaymentOut
from marketplace.domain.status import ItemStatus
from marketplace.repos.payment_repo import PaymentRepo
from marketplace.services.order_service import OrderService
from marketplace.services.product_client import PriceCatalog
from marketplace.tasks.cart_cleanup import remove_paid_items_task
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


class PaymentService:
    """
    Platnosc tworzona raz na zamowienie; amount to snapshot final_amount.
    Czyszczenie koszyka idzie osobno przez Celery.
    """

    def __init__(self, db: Session, catalog: PriceCatalog):
        self.repo = PaymentRepo(db)
        self.orders = OrderService(db, catalog)

    def create_payment(self, user_id: int, payload: PaymentCreate) -> PaymentOut:
        order = self.orders.load_for_user(user_id, payload.order_id)

        if self.repo.get_by_order(order.id):
            raise ConflictError("Payment already exists for this order")

        paid = [i for i in order.items if i.status != ItemStatus.CANCELLED.value]
        if not paid:
            raise ValidationError("Order has no items to pay for")

        pairs = [[i.product_id, i.pack_size_id] for i in paid]

        # final_amount musi byc aktualny w chwili platnosci
        self.orders.save(order)

        created = self.repo.create_payment(
            PaymentModel(
                order_id=order.id,
                user_id=user_id,
                amount=order.final_amount,
                method=payload.method,
                transaction_id=payload.transaction_id,
                details=payload.details,
            )
        )
        logger.info(f"Payment {created.id} created for order {order.id}, amount {created.amount}")

        self._schedule_cart_cleanup(user_id, pairs)
        return PaymentOut.model_validate(created)

    def get_payment(self, user_id: int, order_id: int) -> PaymentOut:
        order = self.orders.load_for_user(user_id, order_id)
        payment = self.repo.get_by_order(order.id)
        if not payment:
            raise NotFoundError("No payment found for this order")
        return PaymentOut.model_validate(payment)

    def list_payments(self, user_id: int) -> List[PaymentOut]:
        return [PaymentOut.model_validate(p) for p in self.repo.list_by_user(user_id)]

    @staticmethod
    def _schedule_cart_cleanup(user_id: int, pairs: list) -> None:
        try:
            remove_paid_items_task.delay(user_id, pairs)
        except Exception as e:
            # nieaktualne linie w koszyku sa akceptowalne, platnosc zostaje
            logger.warning(f"Failed to schedule cart cleanup for user {user_id}: {e}")
