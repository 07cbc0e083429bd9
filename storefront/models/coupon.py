from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship

from ..db.base import Base
from ..models.base import TimeStampMixin, utcnow

class Coupon(Base, TimeStampMixin):
    __tablename__ = "coupons"
    __table_args__ = (
        CheckConstraint("discount > 0 AND discount <= 100", name="ck_coupon_discount_range"),
    )

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), nullable=False, unique=True, index=True)
    discount = Column(Numeric(5, 2), nullable=False)  # Percentage off, in (0, 100]
    expiry_date = Column(DateTime(timezone=True), nullable=False)


    def __repr__(self):
        return f'<Coupon(id={self.id}, code={self.code}, discount={self.discount})>'


class CartCoupon(Base):
    __tablename__ = "cart_coupons"

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, unique=True)
    coupon_id = Column(Integer, ForeignKey("coupons.id", ondelete="CASCADE"), nullable=False, index=True)
    applied_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    cart = relationship("Cart", back_populates="coupon_link")
    coupon = relationship("Coupon")


class OrderCoupon(Base):
    __tablename__ = "order_coupons"
    __table_args__ = (
        UniqueConstraint("order_id", "coupon_id", name="uq_order_coupon"),
    )

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    coupon_id = Column(Integer, ForeignKey("coupons.id"), nullable=False, index=True)
    discount = Column(Numeric(5, 2), nullable=False)  # Snapshot of the coupon discount when applied
    applied_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    order = relationship("Order", back_populates="coupon_links")
    coupon = relationship("Coupon")
