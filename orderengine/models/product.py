"""Product model

Products belong to the catalog; this service only reads price and
activity and adjusts stock_quantity.
"""

from sqlalchemy import Column, String, Text, Numeric, Integer, Boolean, CheckConstraint, Index
from sqlalchemy.orm import relationship

from .base import Base, TimestampedModel, UUIDModel


class Product(Base, TimestampedModel, UUIDModel):
    """Catalog product with its available stock"""

    __tablename__ = "products"

    title = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)

    # Pricing
    price = Column(Numeric(10, 2), nullable=False)

    # Inventory
    stock_quantity = Column(Integer, default=0, nullable=False)

    # Status
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    cart_items = relationship("CartItem", back_populates="product")

    # Constraints
    __table_args__ = (
        CheckConstraint("price >= 0", name="check_non_negative_price"),
        CheckConstraint("stock_quantity >= 0", name="check_non_negative_stock"),
        Index("idx_products_active_stock", "is_active", "stock_quantity"),
    )

