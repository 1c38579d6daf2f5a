"""
Shopping cart models
A user owns at most one active cart; retired carts are kept as history
"""

from sqlalchemy import Column, String, Integer, Boolean, ForeignKey, Index, UniqueConstraint, CheckConstraint, Uuid, text
from sqlalchemy.orm import relationship

from .base import Base, TimestampedModel, UUIDModel


class Cart(Base, TimestampedModel, UUIDModel):
    """Shopping cart"""

    __tablename__ = "carts"

    # Verified identity from the auth provider
    user_id = Column(String(255), nullable=False, index=True)

    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    items = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItem.created_at",
    )
    order = relationship("Order", back_populates="cart", uselist=False)

    __table_args__ = (
        # At most one active cart per user
        Index(
            "uq_carts_user_active",
            "user_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )


class CartItem(Base, TimestampedModel, UUIDModel):
    """Shopping cart line"""

    __tablename__ = "cart_items"

    cart_id = Column(Uuid(as_uuid=True), ForeignKey("carts.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Uuid(as_uuid=True), ForeignKey("products.id"), nullable=False)

    quantity = Column(Integer, nullable=False, default=1)

    # Relationships
    cart = relationship("Cart", back_populates="items")
    product = relationship("Product", back_populates="cart_items")

    # Constraints
    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", name="uq_cart_product"),
        CheckConstraint("quantity > 0", name="check_positive_cart_quantity"),
        Index("idx_cart_items_cart", "cart_id"),
    )
