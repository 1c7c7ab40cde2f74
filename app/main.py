from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse

from app.schemas import CreateOrderRequest, OrderResponse, UpdateOrderStatusRequest
from app.errors import (
    generic_error_handler,
    invalid_input_handler,
    invalid_transition_handler,
    not_found_handler,
    request_validation_error_handler,
)
from application.use_cases import (
    CreateOrderCommand,
    CreateOrderUseCase,
    OrderQueries,
    OrderRepository,
    UpdateOrderStatusCommand,
    UpdateOrderStatusUseCase,
)
from domain.order import Customer, InvalidInput, InvalidTransition, OrderNotFound, OrderStatus, Product
from infrastructure import db
from infrastructure.config import Settings
from infrastructure.logging import get_logger
from infrastructure.memory import InMemoryOrderRepository
from infrastructure.metrics import metrics


def get_service_name() -> str:
    return Settings.from_env().service_name


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the single order store for this process and release it on shutdown."""
    settings = Settings.from_env()
    settings.validate()
    logger = get_logger("order-lifecycle", settings.log_level)

    engine = None
    if settings.storage_backend == "sql":
        engine = db.get_engine(settings.db_dsn)
        await db.create_schema(engine)
        app.state.orders = db.SqlAlchemyOrderRepository(engine)
    else:
        app.state.orders = InMemoryOrderRepository()

    logger.info(
        "Order service started",
        service=settings.service_name,
        storage=settings.storage_backend,
    )

    yield

    if engine:
        await engine.dispose()


app = FastAPI(title="Order Lifecycle Service", version="0.1.0", lifespan=lifespan)

# Register error handlers
app.add_exception_handler(InvalidInput, invalid_input_handler)
app.add_exception_handler(OrderNotFound, not_found_handler)
app.add_exception_handler(InvalidTransition, invalid_transition_handler)
app.add_exception_handler(RequestValidationError, request_validation_error_handler)
app.add_exception_handler(Exception, generic_error_handler)


def get_repository(request: Request) -> OrderRepository:
    orders = getattr(request.app.state, "orders", None)
    if orders is None:
        raise HTTPException(status_code=500, detail="Storage not initialized")
    return orders


def get_queries(orders: OrderRepository = Depends(get_repository)) -> OrderQueries:
    return OrderQueries(orders)


@app.get("/health")
async def health() -> dict:
    return {"service": get_service_name(), "status": "ok"}


@app.get("/metrics", response_class=PlainTextResponse)
async def get_metrics() -> str:
    return metrics.get_prometheus_text()


@app.post("/orders", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    request: CreateOrderRequest,
    orders: OrderRepository = Depends(get_repository),
) -> OrderResponse:
    customer = None
    if request.customer is not None:
        customer = Customer(name=request.customer.name, email=request.customer.email)

    command = CreateOrderCommand(
        customer=customer,
        products=[
            Product(name=p.name, price=p.price, quantity=p.quantity) for p in request.products
        ],
        status=request.status,
        date=request.date,
    )

    # Domain errors bubble up to the registered handlers
    order = await CreateOrderUseCase(orders).execute(command)
    return OrderResponse.model_validate(order)


@app.get("/orders", response_model=List[OrderResponse])
async def list_orders(queries: OrderQueries = Depends(get_queries)) -> List[OrderResponse]:
    return [OrderResponse.model_validate(o) for o in await queries.get_all_orders()]


@app.get("/orders/search", response_model=List[OrderResponse])
async def search_orders_by_email(
    email: Optional[str] = None,
    queries: OrderQueries = Depends(get_queries),
) -> List[OrderResponse]:
    if not email:
        raise HTTPException(status_code=400, detail="Email is required")
    found = await queries.get_orders_by_customer_email(email)
    return [OrderResponse.model_validate(o) for o in found]


@app.get("/orders/status", response_model=List[OrderResponse])
async def list_orders_by_status(
    order_status: Optional[str] = Query(None, alias="status"),
    queries: OrderQueries = Depends(get_queries),
) -> List[OrderResponse]:
    try:
        wanted = OrderStatus(order_status)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid status")
    found = await queries.get_orders_by_status(wanted)
    return [OrderResponse.model_validate(o) for o in found]


@app.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, queries: OrderQueries = Depends(get_queries)) -> OrderResponse:
    return OrderResponse.model_validate(await queries.get_order_by_id(order_id))


@app.patch("/orders/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    request: UpdateOrderStatusRequest,
    orders: OrderRepository = Depends(get_repository),
) -> OrderResponse:
    command = UpdateOrderStatusCommand(order_id=order_id, status=request.status)
    order = await UpdateOrderStatusUseCase(orders).execute(command)
    return OrderResponse.model_validate(order)
