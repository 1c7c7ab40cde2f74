"""Pydantic schemas for HTTP API requests and responses.

Request models only check the request structure. Field values, including
their types, are checked by the domain, which reports every violation in
one response.
"""
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from domain.order import OrderStatus


class CustomerRequest(BaseModel):
    name: Any = None
    email: Any = None


class ProductRequest(BaseModel):
    # Values reach the domain checks exactly as sent.
    name: Any = None
    price: Any = None
    quantity: Any = None


class CreateOrderRequest(BaseModel):
    """Request body for creating an order."""
    customer: Optional[CustomerRequest] = None
    products: List[ProductRequest] = Field(default_factory=list)
    status: Optional[OrderStatus] = None
    date: Optional[datetime] = None


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus


class CustomerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    email: str


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    price: float
    quantity: int


class OrderResponse(BaseModel):
    """Response for order endpoints."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    date: datetime
    status: OrderStatus
    customer: CustomerResponse
    products: List[ProductResponse]
    total: float
