"""Orders CRUD API endpoints, plus dispatch of order lines to production."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from atelier.api.v1.production import get_batch_store
from atelier.core.database import get_db
from atelier.core.rate_limit import rate_limit_mutation
from atelier.models.enums import OrderStatus
from atelier.models.order import Order, OrderItem
from atelier.schemas.order import (
    DispatchRequest,
    DispatchResult,
    ItemProductionStatus,
    OrderCreate,
    OrderResponse,
)
from atelier.services.batch_store import BatchStore, BatchWriteError
from atelier.services.dispatch import OrderDispatchService

router = APIRouter(prefix="/orders", tags=["orders"])


def generate_order_id() -> str:
    return f"ORD-{uuid.uuid4().hex[:6].upper()}"


async def _get_order(db: AsyncSession, order_id: str) -> Order:
    result = await db.execute(
        select(Order).options(selectinload(Order.items)).where(Order.id == order_id)
    )
    order = result.scalar_one_or_none()
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


def _items_from(payload: OrderCreate) -> list[OrderItem]:
    return [
        OrderItem(
            sku=item.sku,
            variant_suffix=item.variant_suffix,
            size_info=item.size_info,
            quantity=item.quantity,
            notes=item.notes,
        )
        for item in payload.items
    ]


@router.get("", response_model=list[OrderResponse])
async def list_orders(
    status_filter: OrderStatus | None = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> list[Order]:
    """List orders with optional status filter and pagination."""
    query = select(Order).options(selectinload(Order.items))

    if status_filter is not None:
        query = query.where(Order.status == status_filter)

    query = query.order_by(Order.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreate,
    db: AsyncSession = Depends(get_db),
) -> Order:
    """Create a new order with its line items."""
    order_id = payload.id or generate_order_id()
    if await db.get(Order, order_id) is not None:
        raise HTTPException(status_code=409, detail=f"Order {order_id} already exists")

    order = Order(
        id=order_id,
        customer_name=payload.customer_name,
        status=payload.status,
        notes=payload.notes,
    )
    order.items.extend(_items_from(payload))
    db.add(order)
    await db.flush()
    await db.refresh(order, attribute_names=["items"])
    return order


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    db: AsyncSession = Depends(get_db),
) -> Order:
    """Get a single order by ID."""
    return await _get_order(db, order_id)


@router.put("/{order_id}", response_model=OrderResponse)
async def update_order(
    order_id: str,
    payload: OrderCreate,
    db: AsyncSession = Depends(get_db),
) -> Order:
    """Update an existing order, replacing its items."""
    order = await _get_order(db, order_id)

    order.customer_name = payload.customer_name
    order.status = payload.status
    order.notes = payload.notes

    order.items.clear()
    order.items.extend(_items_from(payload))

    await db.flush()
    await db.refresh(order, attribute_names=["items"])
    return order


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_order(
    order_id: str,
    db: AsyncSession = Depends(get_db),
) -> None:
    """Delete an order and its items. Its batches stay on the board, unlinked."""
    result = await db.execute(select(Order).where(Order.id == order_id))
    order = result.scalar_one_or_none()
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    await db.delete(order)


@router.get("/{order_id}/production", response_model=list[ItemProductionStatus])
async def get_production_status(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    store: BatchStore = Depends(get_batch_store),
) -> list[ItemProductionStatus]:
    """Per line: ordered, already sent to production, remaining, stage breakdown."""
    order = await _get_order(db, order_id)
    return await OrderDispatchService(store).status(order)


@router.post(
    "/{order_id}/send-to-production",
    response_model=DispatchResult,
    dependencies=[Depends(rate_limit_mutation)],
)
async def send_to_production(
    order_id: str,
    payload: DispatchRequest,
    db: AsyncSession = Depends(get_db),
    store: BatchStore = Depends(get_batch_store),
) -> DispatchResult:
    """Create production batches for the selected outstanding quantities."""
    order = await _get_order(db, order_id)
    try:
        result = await OrderDispatchService(store).send_to_production(order, payload.items)
        await store.commit()
    except BatchWriteError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return result
