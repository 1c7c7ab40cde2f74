import pytest

from application.use_cases import (
    CreateOrderCommand,
    CreateOrderUseCase,
    OrderQueries,
    UpdateOrderStatusCommand,
    UpdateOrderStatusUseCase,
)
from domain.order import Customer, OrderNotFound, OrderStatus, Product
from infrastructure.memory import InMemoryOrderRepository


async def create_for(repo, email, name="Widget"):
    return await CreateOrderUseCase(repo).execute(
        CreateOrderCommand(
            customer=Customer(name="Someone", email=email),
            products=[Product(name=name, price=10.0, quantity=1)],
        )
    )


@pytest.mark.asyncio
async def test_get_order_by_id_is_repeatable():
    repo = InMemoryOrderRepository()
    order = await create_for(repo, "jane@example.com")
    queries = OrderQueries(repo)

    first = await queries.get_order_by_id(order.id)
    second = await queries.get_order_by_id(order.id)

    assert first == second == order


@pytest.mark.asyncio
async def test_get_order_by_id_missing_raises():
    with pytest.raises(OrderNotFound) as exc_info:
        await OrderQueries(InMemoryOrderRepository()).get_order_by_id("nope")

    assert exc_info.value.order_id == "nope"
    assert "not found" in str(exc_info.value)


@pytest.mark.asyncio
async def test_lookup_by_email_returns_exactly_that_customers_orders():
    repo = InMemoryOrderRepository()
    mine = []
    for i in range(3):
        mine.append(await create_for(repo, "jane@example.com", name=f"item-{i}"))
        await create_for(repo, "john@example.com", name=f"other-{i}")

    found = await OrderQueries(repo).get_orders_by_customer_email("jane@example.com")

    assert [o.id for o in found] == [o.id for o in mine]


@pytest.mark.asyncio
async def test_lookup_by_email_is_case_sensitive():
    repo = InMemoryOrderRepository()
    await create_for(repo, "jane@example.com")

    assert await OrderQueries(repo).get_orders_by_customer_email("JANE@example.com") == []


@pytest.mark.asyncio
async def test_lookup_by_status_follows_transitions():
    repo = InMemoryOrderRepository()
    a = await create_for(repo, "a@example.com")
    b = await create_for(repo, "b@example.com")
    await UpdateOrderStatusUseCase(repo).execute(
        UpdateOrderStatusCommand(order_id=b.id, status=OrderStatus.PROCESSING)
    )
    queries = OrderQueries(repo)

    pending = await queries.get_orders_by_status(OrderStatus.PENDING)
    processing = await queries.get_orders_by_status(OrderStatus.PROCESSING)

    assert [o.id for o in pending] == [a.id]
    assert [o.id for o in processing] == [b.id]
    assert await queries.get_orders_by_status(OrderStatus.CANCELLED) == []


@pytest.mark.asyncio
async def test_get_all_orders_in_creation_order():
    repo = InMemoryOrderRepository()
    created = [await create_for(repo, f"c{i}@example.com") for i in range(4)]

    assert [o.id for o in await OrderQueries(repo).get_all_orders()] == [o.id for o in created]
