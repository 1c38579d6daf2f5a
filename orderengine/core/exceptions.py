"""
Custom exception classes
Provides consistent error responses across the application
"""

from fastapi import HTTPException, status
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, asdict
import uuid


class OrderEngineException(HTTPException):
    """Base exception class for the order engine"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code
        self.details = details


class BadRequestException(OrderEngineException):
    """400 Bad Request"""

    def __init__(self, detail: str, error_code: str = "BAD_REQUEST", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code,
            details=details
        )


class UnauthorizedException(OrderEngineException):
    """401 Unauthorized"""

    def __init__(self, detail: str = "Unauthorized", error_code: str = "UNAUTHORIZED"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code=error_code,
            headers={"WWW-Authenticate": "Bearer"}
        )


class ForbiddenException(OrderEngineException):
    """403 Forbidden"""

    def __init__(self, detail: str = "Forbidden", error_code: str = "FORBIDDEN"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code=error_code
        )


class NotFoundException(OrderEngineException):
    """404 Not Found"""

    def __init__(self, detail: str = "Not found", error_code: str = "NOT_FOUND"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code=error_code
        )


class ConflictException(OrderEngineException):
    """409 Conflict"""

    def __init__(self, detail: str, error_code: str = "CONFLICT"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code=error_code
        )


class InternalServerException(OrderEngineException):
    """500 Internal Server Error"""

    def __init__(
        self,
        detail: str = "Internal server error",
        error_code: str = "INTERNAL_ERROR"
    ):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code=error_code
        )


# Cart and order lifecycle
class CartNotActiveException(ConflictException):
    """Retired carts are historical and cannot be edited"""

    def __init__(self, cart_id: uuid.UUID):
        super().__init__(
            detail=f"Cart {cart_id} is no longer active",
            error_code="CART_NOT_ACTIVE"
        )
        self.cart_id = cart_id


class ImmutableOrderException(ConflictException):
    """Only the status of a committed order may change"""

    def __init__(self, detail: str = "Committed orders are immutable except for status"):
        super().__init__(detail=detail, error_code="ORDER_IMMUTABLE")


# Order placement failures
@dataclass(frozen=True)
class StockShortage:
    """One cart line that could not be covered by current stock"""
    product_id: uuid.UUID
    title: Optional[str]
    requested: int
    available: int

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["product_id"] = str(self.product_id)
        return data


class PlacementException(OrderEngineException):
    """Base for every outcome that stops an order from being placed"""


class MissingShippingAddressException(PlacementException):
    def __init__(self, detail: str = "Shipping address is required"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code="MISSING_SHIPPING_ADDRESS"
        )


class EmptyCartException(PlacementException):
    def __init__(self, detail: str = "Your cart is empty"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code="EMPTY_CART"
        )


class InsufficientStockException(PlacementException):
    """Product stock insufficient for one or more cart lines"""

    def __init__(self, shortages: List[StockShortage]):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Some products are out of stock",
            error_code="INSUFFICIENT_STOCK",
            details={"stock_errors": [shortage.to_dict() for shortage in shortages]}
        )
        self.shortages = list(shortages)


class ProductUnavailableException(PlacementException):
    """Referenced product is missing or has been deactivated"""

    def __init__(self, product_ids: List[uuid.UUID]):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Some products are no longer available",
            error_code="PRODUCT_UNAVAILABLE",
            details={"product_ids": [str(product_id) for product_id in product_ids]}
        )
        self.product_ids = list(product_ids)


class StorageFailureException(PlacementException):
    """Storage fault during placement; internals are never exposed"""

    def __init__(self, detail: str = "Error during order creation"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code="STORAGE_FAILURE"
        )
