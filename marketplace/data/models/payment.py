from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, JSON
from datetime import datetime, timezone

from marketplace.data.database import Base


class PaymentModel(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, unique=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # snapshot final_amount z chwili platnosci
    amount = Column(Numeric(12, 2), nullable=False)
    method = Column(String(16), nullable=False)
    transaction_id = Column(String, nullable=True)
    details = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
