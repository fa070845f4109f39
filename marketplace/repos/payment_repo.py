from sqlalchemy.orm import Session
from marketplace.data.models.payment import PaymentModel


class PaymentRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_order(self, order_id: int) -> PaymentModel | None:
        return self.db.query(PaymentModel).filter(PaymentModel.order_id == order_id).one_or_none()

    def list_by_user(self, user_id: int) -> list[PaymentModel]:
        return (
            self.db.query(PaymentModel)
            .filter(PaymentModel.user_id == user_id)
            .order_by(PaymentModel.created_at.desc(), PaymentModel.id.desc())
            .all()
        )

    def create_payment(self, payment: PaymentModel) -> PaymentModel:
        self.db.add(payment)
        self.db.commit()
        self.db.refresh(payment)
        return payment
