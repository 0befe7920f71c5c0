"""Order, OrderItem and dispatch Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from atelier.models.enums import OrderStatus


class OrderItemCreate(BaseModel):
    """Schema for creating an order item."""

    sku: str = Field(..., max_length=50)
    variant_suffix: str | None = Field(None, max_length=20)
    size_info: str | None = Field(None, max_length=50)
    quantity: int = Field(..., gt=0)
    notes: str | None = None


class OrderItemResponse(BaseModel):
    """Schema for order item responses."""

    id: int
    order_id: str
    sku: str
    variant_suffix: str | None
    size_info: str | None
    quantity: int
    notes: str | None

    model_config = {"from_attributes": True}


class OrderCreate(BaseModel):
    """Schema for creating an order."""

    id: str | None = Field(None, max_length=32, description="Generated when omitted")
    customer_name: str = Field(..., max_length=200)
    status: OrderStatus = OrderStatus.PENDING
    notes: str | None = None
    items: list[OrderItemCreate] = Field(default_factory=list)


class OrderResponse(BaseModel):
    """Schema for order responses."""

    id: str
    customer_name: str
    status: OrderStatus
    notes: str | None
    created_at: datetime
    updated_at: datetime
    items: list[OrderItemResponse] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class DispatchItem(BaseModel):
    """One order line the operator wants to send to production."""

    sku: str
    variant_suffix: str | None = None
    size_info: str | None = None
    quantity: int = Field(..., ge=0)
    notes: str | None = None


class DispatchRequest(BaseModel):
    items: list[DispatchItem] = Field(default_factory=list)


class ItemProductionStatus(BaseModel):
    """How much of an order line is already in production, and where."""

    sku: str
    variant_suffix: str | None
    size_info: str | None
    ordered: int
    sent: int
    remaining: int
    stages: dict[str, int] = Field(default_factory=dict)


class DispatchResult(BaseModel):
    order_id: str
    dispatched: bool
    created_batch_ids: list[str] = Field(default_factory=list)
    total_quantity: int = 0
    notice: str = ""
