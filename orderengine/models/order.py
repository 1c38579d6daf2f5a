"""Order models

An order is written once, at placement. Its lines carry the price
that was charged, so later catalog changes never alter history.
"""

from sqlalchemy import Column, String, Numeric, Integer, Enum, ForeignKey, Index, Text, Uuid, CheckConstraint, event, inspect
from sqlalchemy.orm import relationship
import enum

from orderengine.core.exceptions import ImmutableOrderException
from .base import Base, TimestampedModel, UUIDModel


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"


class Order(Base, TimestampedModel, UUIDModel):
    """Committed order"""

    __tablename__ = "orders"

    # Parties
    user_id = Column(String(255), nullable=False, index=True)
    cart_id = Column(Uuid(as_uuid=True), ForeignKey("carts.id"), nullable=False, unique=True)

    # Status
    status = Column(Enum(OrderStatus), default=OrderStatus.PENDING, nullable=False, index=True)

    # Amounts
    total_amount = Column(Numeric(10, 2), nullable=False)

    # Delivery
    shipping_address = Column(Text, nullable=False)

    # Relationships
    cart = relationship("Cart", back_populates="order")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
    )

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="check_non_negative_total"),
        Index("idx_orders_user_created", "user_id", "created_at"),
        Index("idx_orders_created_status", "created_at", "status"),
    )


class OrderItem(Base, TimestampedModel, UUIDModel):
    """Order line frozen from the originating cart at commit time"""

    __tablename__ = "order_items"

    order_id = Column(Uuid(as_uuid=True), ForeignKey("orders.id"), nullable=False)
    product_id = Column(Uuid(as_uuid=True), ForeignKey("products.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    # Item details (snapshot at time of order)
    title = Column(String(255), nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    subtotal = Column(Numeric(10, 2), nullable=False)

    # Relationships
    order = relationship("Order", back_populates="items")
    product = relationship("Product")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="check_positive_order_quantity"),
        Index("idx_order_items_order_product", "order_id", "product_id"),
    )


# Only these order columns may change after the first flush
MUTABLE_ORDER_FIELDS = {"status", "updated_at"}


@event.listens_for(Order, "before_update")
def _guard_order_update(mapper, connection, target):
    state = inspect(target)
    for attr in mapper.column_attrs:
        if attr.key in MUTABLE_ORDER_FIELDS:
            continue
        if state.attrs[attr.key].history.has_changes():
            raise ImmutableOrderException(f"Order field '{attr.key}' cannot be modified")


@event.listens_for(OrderItem, "before_update")
def _guard_order_item_update(mapper, connection, target):
    raise ImmutableOrderException("Order lines cannot be modified")


@event.listens_for(OrderItem, "before_delete")
def _guard_order_item_delete(mapper, connection, target):
    raise ImmutableOrderException("Order lines cannot be deleted")
