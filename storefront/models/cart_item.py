from sqlalchemy import Column, Integer, ForeignKey, CheckConstraint, Index, UniqueConstraint, text
from sqlalchemy.orm import relationship

from ..db.base import Base
from ..models.base import TimeStampMixin

class CartItem(Base, TimeStampMixin):
    __tablename__ = "cart_items"
    __table_args__ = (
        # (product, variant) is unique per cart; a missing variant counts as a value
        UniqueConstraint("cart_id", "product_id", "variant_id", name="uq_cart_item_product_variant", postgresql_nulls_not_distinct=True),
        # SQLite treats NULLs as distinct, so variantless items need their own index
        Index(
            "uq_cart_item_product_no_variant",
            "cart_id",
            "product_id",
            unique=True,
            sqlite_where=text("variant_id IS NULL"),
            postgresql_where=text("variant_id IS NULL"),
        ),
        CheckConstraint("quantity >= 1", name="ck_cart_item_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    variant_id = Column(Integer, ForeignKey("product_variants.id"), nullable=True)
    quantity = Column(Integer, default=1, nullable=False)

    # Relationships
    cart = relationship("Cart", back_populates="cart_items")
    product = relationship("Product")
    variant = relationship("ProductVariant")


    def __repr__(self):
        return f'<CartItem(cart_id={self.cart_id}, product_id={self.product_id}, variant_id={self.variant_id}, quantity={self.quantity})>'
