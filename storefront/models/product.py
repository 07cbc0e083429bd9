from sqlalchemy import Column, Integer, String, Boolean, Numeric, ForeignKey
from sqlalchemy.orm import relationship

from ..db.base import Base
from ..models.base import TimeStampMixin


class Product(Base, TimeStampMixin):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    base_price = Column(Numeric(10, 2), nullable=False)
    is_active = Column(Boolean, default=True)

    # Relationships
    variants = relationship("ProductVariant", back_populates="product", cascade="all, delete-orphan")


    def __repr__(self):
        return f"<Product(id={self.id}, name={self.name}, base_price={self.base_price})>"


class ProductVariant(Base, TimeStampMixin):
    __tablename__ = "product_variants"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    additional_price = Column(Numeric(10, 2), nullable=False, default=0)

    # Relationships
    product = relationship("Product", back_populates="variants")


    def __repr__(self):
        return f"<ProductVariant(id={self.id}, product_id={self.product_id}, additional_price={self.additional_price})>"
