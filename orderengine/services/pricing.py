"""Order pricing

Pure functions over cart line snapshots, no session involved.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Tuple
import uuid

from orderengine.core.exceptions import ProductUnavailableException

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CartLine:
    """Cart line joined with the live catalog row (None fields if the product is gone)"""
    product_id: uuid.UUID
    quantity: int
    title: Optional[str] = None
    unit_price: Optional[Decimal] = None
    stock_quantity: int = 0
    is_active: bool = False

    @property
    def is_purchasable(self) -> bool:
        return self.is_active and self.unit_price is not None

    @property
    def subtotal(self) -> Decimal:
        if self.unit_price is None:
            return Decimal("0.00")
        return to_money(self.unit_price * self.quantity)

    @property
    def available(self) -> bool:
        return self.is_active and self.stock_quantity >= self.quantity


@dataclass(frozen=True)
class PricedLine:
    """Price-frozen copy of a cart line, ready to become an order line"""
    product_id: uuid.UUID
    title: str
    unit_price: Decimal
    quantity: int
    subtotal: Decimal


def price_lines(lines: Iterable[CartLine]) -> Tuple[List[PricedLine], Decimal]:
    """
    Price every line at the current catalog price.

    Raises ProductUnavailableException naming every missing or inactive product.
    """
    lines = list(lines)
    unavailable = [line.product_id for line in lines if not line.is_purchasable]
    if unavailable:
        raise ProductUnavailableException(unavailable)

    priced = []
    total = Decimal("0.00")
    for line in lines:
        unit_price = to_money(line.unit_price)
        subtotal = to_money(unit_price * line.quantity)
        priced.append(PricedLine(
            product_id=line.product_id,
            title=line.title,
            unit_price=unit_price,
            quantity=line.quantity,
            subtotal=subtotal,
        ))
        total += subtotal

    return priced, to_money(total)
