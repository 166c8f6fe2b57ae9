from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Numeric
from sqlalchemy.orm import relationship

from storefront.data.database import Base

ORDER_PLACED = "PLACED"
ORDER_CANCELLED = "CANCELLED"


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True)
    account_id = Column(String(128), nullable=False, index=True)

    status = Column(String(16), nullable=False, default=ORDER_PLACED)  # PLACED, CANCELLED
    total = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.position",
    )
