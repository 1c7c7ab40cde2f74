from __future__ import annotations

import math
import re
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, List, Optional, Sequence


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class OrderError(Exception):
    """Base class for order lifecycle errors."""


class InvalidInput(OrderError, ValueError):
    """Raised when order creation data violates one or more rules."""

    def __init__(self, errors: Sequence[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class OrderNotFound(OrderError, LookupError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order with ID {order_id} not found")


class InvalidTransition(OrderError):
    """Raised when a status change is not a permitted edge."""

    def __init__(self, current: OrderStatus, target: OrderStatus):
        self.current = current
        self.target = target
        self.allowed = allowed_transitions(current)
        if self.allowed:
            allowed = " or ".join(sorted(s.value for s in self.allowed))
        else:
            allowed = "none"
        super().__init__(
            f"Cannot change from {current.value} to {target.value}. "
            f"Allowed transitions: {allowed}"
        )


class StorageInconsistency(OrderError):
    """Raised when the store loses an order between lookup and write."""


class StaleStatus(OrderError):
    """Raised by a store when a compare-and-swap on status misses."""

    def __init__(self, order_id: str, expected: OrderStatus, actual: OrderStatus):
        self.order_id = order_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Order {order_id} status is {actual.value}, expected {expected.value}"
        )


def allowed_transitions(status: OrderStatus) -> frozenset[OrderStatus]:
    return ALLOWED_TRANSITIONS.get(status, frozenset())


def check_transition(current: OrderStatus, target: OrderStatus) -> None:
    if target not in allowed_transitions(current):
        raise InvalidTransition(current, target)


@dataclass(frozen=True)
class Customer:
    name: str
    email: str


@dataclass(frozen=True)
class Product:
    name: str
    price: float
    quantity: int

    def total(self) -> float:
        return self.price * self.quantity


def _is_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _is_blank(value) -> bool:
    return not isinstance(value, str) or not value.strip()


def _is_integral(value) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def _parse_status(value) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    return OrderStatus(value)


def validate_order_input(
    customer: Optional[Customer],
    products: Optional[Sequence[Product]],
    status=None,
) -> List[str]:
    """Collect every rule violated by the given creation data."""
    errors: List[str] = []

    if customer is None:
        errors.append("Customer information is required")
    else:
        if _is_blank(customer.name):
            errors.append("Customer name is required")
        if _is_blank(customer.email):
            errors.append("Customer email is required")
        elif not EMAIL_PATTERN.match(customer.email):
            errors.append("Invalid email format")

    if not products:
        errors.append("At least one product is required")
    else:
        for index, product in enumerate(products):
            label = product.name or f"at position {index}"
            if _is_blank(product.name):
                errors.append(f"Product at position {index} must have a name")
            if not _is_number(product.price) or not product.price > 0:
                errors.append(f"Product {label} must have a price greater than 0")
            if not _is_integral(product.quantity) or not product.quantity > 0:
                errors.append(
                    f"Product {label} must have a quantity greater than 0 and be an integer"
                )

    if status is not None:
        try:
            _parse_status(status)
        except ValueError:
            errors.append(
                "Invalid status. Must be: pending, processing, completed or cancelled"
            )

    return errors


def as_utc(value: datetime) -> datetime:
    """Naive timestamps are taken to be UTC; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def calculate_total(products: Iterable[Product]) -> float:
    return sum(product.total() for product in products)


@dataclass(frozen=True)
class Order:
    id: str
    date: datetime
    status: OrderStatus
    customer: Customer
    products: tuple[Product, ...]
    total: float

    @classmethod
    def create(
        cls,
        order_id: str,
        customer: Customer,
        products: Sequence[Product],
        date: datetime,
        status=None,
    ) -> "Order":
        errors = validate_order_input(customer, products, status)
        if errors:
            raise InvalidInput(errors)

        lines = tuple(
            Product(name=p.name, price=p.price, quantity=int(p.quantity)) for p in products
        )
        # A caller-supplied initial status is honoured as given.
        initial = _parse_status(status) if status is not None else OrderStatus.PENDING
        return cls(
            id=order_id,
            date=as_utc(date),
            status=initial,
            customer=customer,
            products=lines,
            total=calculate_total(lines),
        )

    def with_status(self, status: OrderStatus) -> "Order":
        return replace(self, status=status)
