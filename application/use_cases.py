from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Protocol

from domain.order import (
    Customer,
    InvalidInput,
    InvalidTransition,
    Order,
    OrderNotFound,
    OrderStatus,
    Product,
    StaleStatus,
    StorageInconsistency,
    check_transition,
)
from infrastructure.logging import get_logger
from infrastructure.metrics import metrics


logger = get_logger("order-lifecycle")


class OrderRepository(Protocol):
    async def save(self, order: Order) -> Order: ...
    async def get(self, order_id: str) -> Order | None: ...
    async def find_by_customer_email(self, email: str) -> List[Order]: ...
    async def find_by_status(self, status: OrderStatus) -> List[Order]: ...
    async def update_status(
        self,
        order_id: str,
        status: OrderStatus,
        expected_status: OrderStatus | None = None,
    ) -> Order | None: ...
    async def get_all(self) -> List[Order]: ...


def new_order_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CreateOrderCommand:
    customer: Customer
    products: List[Product] = field(default_factory=list)
    status: Optional[OrderStatus] = None
    date: Optional[datetime] = None


class CreateOrderUseCase:
    def __init__(
        self,
        orders: OrderRepository,
        id_factory: Callable[[], str] = new_order_id,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.orders = orders
        self.id_factory = id_factory
        self.clock = clock

    async def execute(self, cmd: CreateOrderCommand) -> Order:
        try:
            order = Order.create(
                order_id=self.id_factory(),
                customer=cmd.customer,
                products=cmd.products,
                date=cmd.date or self.clock(),
                status=cmd.status,
            )
        except InvalidInput as exc:
            metrics.increment("order_validation_failures_total")
            logger.warning("Validation failed on order creation", errors=exc.errors)
            raise

        saved = await self.orders.save(order)
        metrics.increment("orders_created_total")
        logger.info(
            "Order created",
            order_id=saved.id,
            status=saved.status.value,
            total=saved.total,
        )
        return saved


@dataclass
class UpdateOrderStatusCommand:
    order_id: str
    status: OrderStatus


class UpdateOrderStatusUseCase:
    def __init__(self, orders: OrderRepository):
        self.orders = orders

    async def execute(self, cmd: UpdateOrderStatusCommand) -> Order:
        order = await self.orders.get(cmd.order_id)
        if not order:
            raise OrderNotFound(cmd.order_id)

        current = order.status
        # The transition table is acyclic, so re-checking after a missed
        # compare-and-swap always ends in a write or a rejection.
        while True:
            try:
                check_transition(current, cmd.status)
            except InvalidTransition as exc:
                metrics.increment("invalid_transitions_total")
                logger.warning(
                    "Rejected order status transition",
                    order_id=cmd.order_id,
                    current=exc.current.value,
                    target=exc.target.value,
                )
                raise

            try:
                updated = await self.orders.update_status(
                    cmd.order_id, cmd.status, expected_status=current
                )
            except StaleStatus as exc:
                current = exc.actual
                continue
            break

        if updated is None:
            logger.error("Order vanished during status update", order_id=cmd.order_id)
            raise StorageInconsistency(f"Could not update order with ID {cmd.order_id}")

        metrics.increment("order_status_transitions_total")
        logger.info(
            "Order status changed",
            order_id=cmd.order_id,
            previous=current.value,
            status=updated.status.value,
        )
        return updated


class OrderQueries:
    """Read side of the order lifecycle."""

    def __init__(self, orders: OrderRepository):
        self.orders = orders

    async def get_order_by_id(self, order_id: str) -> Order:
        order = await self.orders.get(order_id)
        if not order:
            raise OrderNotFound(order_id)
        return order

    async def get_orders_by_customer_email(self, email: str) -> List[Order]:
        return await self.orders.find_by_customer_email(email)

    async def get_orders_by_status(self, status: OrderStatus) -> List[Order]:
        return await self.orders.find_by_status(status)

    async def get_all_orders(self) -> List[Order]:
        return await self.orders.get_all()
