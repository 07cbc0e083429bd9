from sqlalchemy import Column, Integer
from sqlalchemy.orm import relationship

from ..db.base import Base
from ..models.base import TimeStampMixin

class Cart(Base, TimeStampMixin):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, unique=True, index=True)

    # Relationships
    cart_items = relationship("CartItem", back_populates="cart", cascade="all, delete-orphan", passive_deletes=True)
    coupon_link = relationship("CartCoupon", back_populates="cart", uselist=False, cascade="all, delete-orphan", passive_deletes=True)


    def __repr__(self):
        return f'<Cart(id={self.id}, user_id={self.user_id})>'
