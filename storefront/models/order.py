from sqlalchemy import Column, Integer, Numeric
from sqlalchemy.orm import relationship

from ..db.base import Base
from ..models.base import TimeStampMixin


class Order(Base, TimeStampMixin):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    subtotal_amount = Column(Numeric(12, 2), nullable=False)  # Amount at checkout, never changed
    total_amount = Column(Numeric(12, 2), nullable=False)     # subtotal_amount less applied coupons

    # Relationships
    coupon_links = relationship("OrderCoupon", back_populates="order", cascade="all, delete-orphan", order_by="OrderCoupon.id")


    def __repr__(self):
        return f"<Order(id={self.id}, user_id={self.user_id}, total_amount={self.total_amount})>"
