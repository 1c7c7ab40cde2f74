import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from infrastructure.memory import InMemoryOrderRepository


@pytest_asyncio.fixture
async def initialized_app():
    """App wired to a fresh in-memory store, as the lifespan would do."""
    from app import main

    main.app.state.orders = InMemoryOrderRepository()

    yield main.app

    main.app.state.orders = None


@pytest_asyncio.fixture
async def client(initialized_app):
    async with AsyncClient(transport=ASGITransport(app=initialized_app), base_url="http://test") as client:
        yield client
