"""Order domain types.

Plain value objects shared by the order service, the repositories and the
HTTP layer. Nothing in here touches the database.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Generic, List, TypeVar


class OrderStatus(str, Enum):
    """Stored order status. ``PENDING`` is the only initial state."""

    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class CartStatus(str, Enum):
    ACTIVE = "active"
    CONVERTED = "converted"


class StockAdjustment(str, Enum):
    """Inventory side effect of a status transition."""

    DECREASE = "decrease"
    INCREASE = "increase"


class CartNotActive(Exception):
    """The cart to check out is missing or has already been converted."""


class OrderError(str, Enum):
    """Domain-level failures returned (not raised) by the order service."""

    NOT_FOUND = "not_found"
    NO_ACTIVE_CART = "no_active_cart"
    EMPTY_CART = "empty_cart"


@dataclass(frozen=True)
class CartLine:
    """A cart line snapshot handed to order creation.

    Attributes:
        product_id: Product the line refers to.
        quantity: Positive number of units.
        unit_price: Price per unit at the time the line was added to the cart.
    """

    product_id: int
    quantity: int
    unit_price: Decimal


@dataclass(frozen=True)
class OrderStatusChange:
    order_id: int
    previous_status: OrderStatus
    status: OrderStatus
    adjustment: StockAdjustment | None = None

    @property
    def changed(self) -> bool:
        return self.previous_status != self.status


@dataclass
class CheckoutResult:
    order_id: int
    items: List[dict] = field(default_factory=list)
    totals: dict = field(default_factory=dict)


T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of an order operation: either ``value`` or ``error`` is set."""

    value: T | None = None
    error: OrderError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: OrderError) -> "Result[T]":
        return cls(error=error)


def stock_adjustment_for(previous: OrderStatus, requested: OrderStatus) -> StockAdjustment | None:
    """Return the stock effect of moving an order from ``previous`` to ``requested``.

    Moving into ``paid`` from any other status takes the goods out of stock;
    reversing a paid order puts them back. Every other pair, including
    cancelling an unpaid order, leaves stock alone.
    """
    previous = OrderStatus(previous)
    requested = OrderStatus(requested)

    if requested == OrderStatus.PAID and previous != OrderStatus.PAID:
        return StockAdjustment.DECREASE
    if requested == OrderStatus.CANCELLED and previous == OrderStatus.PAID:
        return StockAdjustment.INCREASE
    return None


def adjusted_stock(current: int, quantity: int, adjustment: StockAdjustment) -> int:
    # decrease floors at zero, increase has no ceiling
    if adjustment == StockAdjustment.DECREASE:
        return max(current - quantity, 0)
    return current + quantity
