"""Tests for Orders CRUD, validation and dispatch endpoints."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException

from atelier.api.v1.orders import (
    create_order,
    delete_order,
    generate_order_id,
    get_order,
    get_production_status,
    list_orders,
    send_to_production,
    update_order,
)
from atelier.models.enums import OrderStatus, ProductionStage
from atelier.models.order import Order
from atelier.schemas.order import DispatchItem, DispatchRequest, OrderCreate, OrderItemCreate
from atelier.services.batch_store import BatchWriteError


def _returning(mock_db, value):
    mock_result = MagicMock()
    mock_result.scalar_one_or_none.return_value = value
    mock_db.execute = AsyncMock(return_value=mock_result)


# ---------------------------------------------------------------------------
# Schema Validation Tests
# ---------------------------------------------------------------------------


class TestOrderSchemaValidation:
    """Test OrderCreate schema validation rules."""

    def test_valid_order_create(self):
        order = OrderCreate(
            id="ORD-001",
            customer_name="Kalliste Boutique",
            items=[OrderItemCreate(sku="RN-101", variant_suffix="X", size_info="54", quantity=3)],
        )
        assert order.id == "ORD-001"
        assert order.status == OrderStatus.PENDING
        assert order.items[0].size_info == "54"

    def test_id_optional(self):
        assert OrderCreate(customer_name="Customer").id is None

    def test_order_item_quantity_must_be_positive(self):
        with pytest.raises(Exception):
            OrderItemCreate(sku="RN-101", quantity=0)

    def test_order_customer_name_max_length(self):
        with pytest.raises(Exception):
            OrderCreate(customer_name="X" * 201)

    def test_order_items_default_empty(self):
        assert OrderCreate(customer_name="Customer").items == []

    def test_dispatch_item_allows_zero(self):
        assert DispatchItem(sku="RN-101", quantity=0).quantity == 0

    def test_dispatch_item_rejects_negative(self):
        with pytest.raises(Exception):
            DispatchItem(sku="RN-101", quantity=-1)


class TestGenerateOrderId:
    def test_format(self):
        order_id = generate_order_id()
        assert order_id.startswith("ORD-")
        assert len(order_id) == 10


# ---------------------------------------------------------------------------
# CRUD Endpoint Tests
# ---------------------------------------------------------------------------


class TestListOrders:
    @pytest.mark.asyncio
    async def test_list_returns_orders(self, mock_db, order_factory):
        orders = [order_factory.create(), order_factory.create()]
        mock_result = MagicMock()
        mock_result.scalars.return_value.all.return_value = orders
        mock_db.execute = AsyncMock(return_value=mock_result)

        result = await list_orders(status_filter=OrderStatus.PENDING, skip=0, limit=50, db=mock_db)
        assert len(result) == 2


class TestCreateOrder:
    @pytest.mark.asyncio
    async def test_create_generates_id(self, mock_db):
        mock_db.get = AsyncMock(return_value=None)
        payload = OrderCreate(
            customer_name="Meltemi Gifts",
            items=[OrderItemCreate(sku="BR-40", quantity=30)],
        )

        order = await create_order(payload=payload, db=mock_db)

        assert isinstance(order, Order)
        assert order.id.startswith("ORD-")
        assert [i.sku for i in order.items] == ["BR-40"]
        mock_db.add.assert_called_once_with(order)
        mock_db.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_duplicate_id_conflicts(self, mock_db, order_factory):
        mock_db.get = AsyncMock(return_value=order_factory.create(id="ORD-1"))

        with pytest.raises(HTTPException) as exc_info:
            await create_order(payload=OrderCreate(id="ORD-1", customer_name="x"), db=mock_db)
        assert exc_info.value.status_code == 409


class TestGetOrder:
    @pytest.mark.asyncio
    async def test_get_found(self, mock_db, order_factory):
        order = order_factory.create()
        _returning(mock_db, order)
        assert await get_order(order_id=order.id, db=mock_db) == order

    @pytest.mark.asyncio
    async def test_get_not_found(self, mock_db):
        _returning(mock_db, None)
        with pytest.raises(HTTPException) as exc_info:
            await get_order(order_id="ORD-NOPE", db=mock_db)
        assert exc_info.value.status_code == 404


class TestUpdateOrder:
    @pytest.mark.asyncio
    async def test_update_replaces_items(self, mock_db, order_factory, order_item_factory):
        order = order_factory.create(items=[order_item_factory.create()])
        _returning(mock_db, order)
        payload = OrderCreate(
            customer_name="Renamed",
            status=OrderStatus.READY,
            items=[OrderItemCreate(sku="PD-9", quantity=2), OrderItemCreate(sku="PD-12", quantity=1)],
        )

        result = await update_order(order_id=order.id, payload=payload, db=mock_db)

        assert result.customer_name == "Renamed"
        assert result.status == OrderStatus.READY
        assert [i.sku for i in result.items] == ["PD-9", "PD-12"]
        mock_db.flush.assert_awaited_once()


class TestDeleteOrder:
    @pytest.mark.asyncio
    async def test_delete(self, mock_db, order_factory):
        order = order_factory.create()
        _returning(mock_db, order)
        await delete_order(order_id=order.id, db=mock_db)
        mock_db.delete.assert_awaited_once_with(order)

    @pytest.mark.asyncio
    async def test_delete_not_found(self, mock_db):
        _returning(mock_db, None)
        with pytest.raises(HTTPException) as exc_info:
            await delete_order(order_id="ORD-NOPE", db=mock_db)
        assert exc_info.value.status_code == 404


# ---------------------------------------------------------------------------
# Production Dispatch Endpoint Tests
# ---------------------------------------------------------------------------


@pytest.fixture
def ordered(order_factory, order_item_factory):
    return order_factory.create(
        id="ORD-2601",
        items=[order_item_factory.create(order_id="ORD-2601", sku="RN-101", quantity=12)],
    )


class TestProductionEndpoints:
    @pytest.mark.asyncio
    async def test_production_status(self, mock_db, ordered, store_factory, batch_factory):
        _returning(mock_db, ordered)
        store = store_factory(
            batches=[batch_factory.create(order_id="ORD-2601", sku="RN-101", quantity=5, current_stage=ProductionStage.CASTING)]
        )

        status = await get_production_status(order_id="ORD-2601", db=mock_db, store=store)

        assert (status[0].sent, status[0].remaining) == (5, 7)

    @pytest.mark.asyncio
    async def test_send_to_production(self, mock_db, ordered, store_factory, stone_ring):
        _returning(mock_db, ordered)
        store = store_factory(products=[stone_ring], orders=[ordered])

        result = await send_to_production(
            order_id="ORD-2601",
            payload=DispatchRequest(items=[DispatchItem(sku="RN-101", quantity=12)]),
            db=mock_db,
            store=store,
        )

        assert result.dispatched is True
        assert store.batches[0].current_stage == ProductionStage.WAXING
        assert ordered.status == OrderStatus.IN_PRODUCTION

    @pytest.mark.asyncio
    async def test_send_unknown_order(self, mock_db, store_factory):
        _returning(mock_db, None)
        with pytest.raises(HTTPException) as exc_info:
            await send_to_production(
                order_id="ORD-NOPE", payload=DispatchRequest(), db=mock_db, store=store_factory()
            )
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_write_failure_503(self, mock_db, ordered, store_factory):
        _returning(mock_db, ordered)
        store = store_factory(orders=[ordered])
        store.create_batches = AsyncMock(side_effect=BatchWriteError("db down"))

        with pytest.raises(HTTPException) as exc_info:
            await send_to_production(
                order_id="ORD-2601",
                payload=DispatchRequest(items=[DispatchItem(sku="RN-101", quantity=1)]),
                db=mock_db,
                store=store,
            )
        assert exc_info.value.status_code == 503
