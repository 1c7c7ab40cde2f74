from __future__ import annotations

from typing import List, Optional

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Float,
    Integer,
    MetaData,
    String,
    Table,
    insert,
    select,
    update,
)
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from domain.order import Customer, Order, OrderStatus, Product, StaleStatus, as_utc

metadata = MetaData()

orders = Table(
    "orders",
    metadata,
    # Surrogate key keeps listing results in insertion order.
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("order_id", String, nullable=False, unique=True),
    Column("date", DateTime(timezone=True), nullable=False),
    Column("status", String, nullable=False, index=True),
    Column("customer_name", String, nullable=False),
    Column("customer_email", String, nullable=False, index=True),
    Column("products", JSON, nullable=False),
    Column("total", Float, nullable=False),
)


def get_engine(dsn: Optional[str] = None) -> AsyncEngine:
    if not dsn:
        raise RuntimeError("APP__DB_DSN not set")
    return create_async_engine(dsn, future=True)


async def create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)


def _row_values(order: Order) -> dict:
    return {
        "date": as_utc(order.date),
        "status": order.status.value,
        "customer_name": order.customer.name,
        "customer_email": order.customer.email,
        "products": [
            {"name": p.name, "price": p.price, "quantity": p.quantity} for p in order.products
        ],
        "total": order.total,
    }


def _hydrate(row) -> Order:
    data = row._mapping
    return Order(
        id=data["order_id"],
        date=as_utc(data["date"]),
        status=OrderStatus(data["status"]),
        customer=Customer(name=data["customer_name"], email=data["customer_email"]),
        products=tuple(Product(**item) for item in data["products"]),
        total=data["total"],
    )


class SqlAlchemyOrderRepository:
    """Order store over an async SQLAlchemy engine, one transaction per call."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def _fetch(self, conn: AsyncConnection, order_id: str) -> Order | None:
        result = await conn.execute(select(orders).where(orders.c.order_id == order_id))
        row = result.first()
        return _hydrate(row) if row else None

    async def _select(self, *criteria) -> List[Order]:
        stmt = select(orders).order_by(orders.c.seq)
        if criteria:
            stmt = stmt.where(*criteria)
        async with self.engine.connect() as conn:
            result = await conn.execute(stmt)
            return [_hydrate(row) for row in result]

    async def save(self, order: Order) -> Order:
        values = _row_values(order)
        async with self.engine.begin() as conn:
            result = await conn.execute(
                update(orders).where(orders.c.order_id == order.id).values(**values)
            )
            if result.rowcount == 0:
                await conn.execute(insert(orders).values(order_id=order.id, **values))
        return order

    async def get(self, order_id: str) -> Order | None:
        async with self.engine.connect() as conn:
            return await self._fetch(conn, order_id)

    async def find_by_customer_email(self, email: str) -> List[Order]:
        return await self._select(orders.c.customer_email == email)

    async def find_by_status(self, status: OrderStatus) -> List[Order]:
        return await self._select(orders.c.status == status.value)

    async def update_status(
        self,
        order_id: str,
        status: OrderStatus,
        expected_status: OrderStatus | None = None,
    ) -> Order | None:
        stmt = update(orders).where(orders.c.order_id == order_id).values(status=status.value)
        if expected_status is not None:
            stmt = stmt.where(orders.c.status == expected_status.value)

        async with self.engine.begin() as conn:
            result = await conn.execute(stmt)
            current = await self._fetch(conn, order_id)

        if current is None:
            return None
        if result.rowcount == 0 and expected_status is not None:
            raise StaleStatus(order_id, expected_status, current.status)
        return current

    async def get_all(self) -> List[Order]:
        return await self._select()
