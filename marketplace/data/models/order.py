from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, JSON
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from marketplace.data.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # kopia wybranego adresu w chwili zlozenia zamowienia
    delivery_address = Column(JSON, nullable=True)

    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    platform_fee = Column(Numeric(12, 2), nullable=False, default=0)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    final_amount = Column(Numeric(12, 2), nullable=False, default=0)
    applied_coupon = Column(String(64), nullable=True)

    reason_for_cancel = Column(String, nullable=True)
    comment = Column(String, nullable=True)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
    )

    def find_item(self, item_id: int) -> "OrderItemModel | None":
        return next((i for i in self.items if i.id == item_id), None)


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)

    product_id = Column(Integer, nullable=False)
    seller_id = Column(Integer, nullable=False, index=True)
    pack_size_id = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)

    status = Column(String, nullable=False, default="pending")  # pending, packing, out for delivery, delivered, cancelled
    reason_for_cancel = Column(String, nullable=True)
    comment = Column(String, nullable=True)

    order = relationship("OrderModel", back_populates="items")
