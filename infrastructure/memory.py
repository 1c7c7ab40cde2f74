from __future__ import annotations

import asyncio
from typing import Dict, List

from domain.order import Order, OrderStatus, StaleStatus


class InMemoryOrderRepository:
    """Process-lifetime order store keyed by order id.

    Orders are immutable values, so reads hand out the stored objects
    directly. Writes are serialized by a single lock; reads never take it.
    """

    def __init__(self):
        self._orders: Dict[str, Order] = {}
        self._lock = asyncio.Lock()

    async def save(self, order: Order) -> Order:
        async with self._lock:
            self._orders[order.id] = order
        return order

    async def get(self, order_id: str) -> Order | None:
        return self._orders.get(order_id)

    async def find_by_customer_email(self, email: str) -> List[Order]:
        return [o for o in list(self._orders.values()) if o.customer.email == email]

    async def find_by_status(self, status: OrderStatus) -> List[Order]:
        return [o for o in list(self._orders.values()) if o.status == status]

    async def update_status(
        self,
        order_id: str,
        status: OrderStatus,
        expected_status: OrderStatus | None = None,
    ) -> Order | None:
        async with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                return None
            if expected_status is not None and order.status != expected_status:
                raise StaleStatus(order_id, expected_status, order.status)
            updated = order.with_status(status)
            self._orders[order_id] = updated
            return updated

    async def get_all(self) -> List[Order]:
        return list(self._orders.values())
