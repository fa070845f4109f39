# marketplace/repos/order_repo.py
from sqlalchemy import update, delete
from sqlalchemy.orm import Session

from marketplace.data.models.order import OrderModel, OrderItemModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_item(self, item_id: int) -> OrderItemModel | None:
        return self.db.get(OrderItemModel, item_id)

    def list_orders_by_user(self, user_id: int) -> list[OrderModel]:
        return (
            self.db.query(OrderModel)
            .filter(OrderModel.user_id == user_id)
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .all()
        )

    def list_items_by_seller(self, seller_id: int, status: str | None = None) -> list[OrderItemModel]:
        q = self.db.query(OrderItemModel).filter(OrderItemModel.seller_id == seller_id)
        if status:
            q = q.filter(OrderItemModel.status == status)
        return q.order_by(OrderItemModel.id).all()

    def update_order_version(self, order_id: int, old_version: int, new_data: dict) -> int:
        # compare-and-swap na polu version
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.version == old_version)
            .values(**new_data)
        )
        return result.rowcount

    def delete_order_version(self, order_id: int, old_version: int) -> int:
        result = self.db.execute(
            delete(OrderModel).where(OrderModel.id == order_id, OrderModel.version == old_version)
        )
        return result.rowcount

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
