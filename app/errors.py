"""Error handling and response models."""
from typing import List, Optional

from pydantic import BaseModel
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder

from domain.order import InvalidInput, InvalidTransition, OrderNotFound
from infrastructure.logging import get_logger


logger = get_logger("order-lifecycle")


class ErrorResponse(BaseModel):
    """Standard error response format."""
    status_code: int
    detail: str
    error_type: Optional[str] = None
    errors: Optional[List[str]] = None


async def invalid_input_handler(request: Request, exc: InvalidInput) -> JSONResponse:
    """Order creation rules violated: 400 with every message."""
    logger.warning("Invalid order input", path=request.url.path, errors=exc.errors)

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "errors": exc.errors, "error_type": "InvalidInput"},
    )


async def not_found_handler(request: Request, exc: OrderNotFound) -> JSONResponse:
    logger.warning("Order not found", path=request.url.path, order_id=exc.order_id)

    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc), "error_type": "NotFound"},
    )


async def invalid_transition_handler(request: Request, exc: InvalidTransition) -> JSONResponse:
    logger.warning(
        "Invalid status transition",
        path=request.url.path,
        current=exc.current.value,
        target=exc.target.value,
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": str(exc),
            "error_type": "InvalidTransition",
            "allowed": sorted(s.value for s in exc.allowed),
        },
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle generic exceptions with 500 status without exposing internals."""
    logger.error(
        f"Internal server error: {type(exc).__name__}",
        exc_info=True,
        path=request.url.path,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "error_type": "InternalServerError"},
    )


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed or mistyped request bodies are reported as 400."""
    errors = jsonable_encoder(exc.errors())
    logger.warning("Request validation failed", path=request.url.path, errors=errors)

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": errors, "error_type": "RequestValidationError"},
    )
