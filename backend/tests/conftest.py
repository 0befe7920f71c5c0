"""Pytest configuration with fixtures for async testing."""

from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from atelier.models.enums import OrderStatus, ProductionStage
from atelier.schemas.production import NewBatchRecord
from atelier.services.batch_store import BatchChangedError, BatchNotFoundError

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Test Data Factories (using MagicMock for SQLAlchemy 2.0 compatibility)
# ---------------------------------------------------------------------------


def _make_mock(defaults: dict[str, Any], overrides: dict[str, Any]) -> MagicMock:
    """Create a MagicMock with given attributes."""
    merged = {**defaults, **overrides}
    mock = MagicMock()
    for k, v in merged.items():
        setattr(mock, k, v)
    return mock


class BatchFactory:
    """Factory for creating ProductionBatch instances for testing."""

    _counter = 0

    @classmethod
    def create(cls, hours_in_stage: float = 1, **overrides: Any) -> MagicMock:
        cls._counter += 1
        defaults = {
            "id": f"BAT-{cls._counter:08d}",
            "sku": "RN-101",
            "variant_suffix": None,
            "size_info": None,
            "quantity": 10,
            "current_stage": ProductionStage.WAXING,
            "order_id": None,
            "type": "New",
            "notes": None,
            "on_hold": False,
            "on_hold_reason": None,
            "created_at": NOW - timedelta(days=3),
            "updated_at": NOW - timedelta(hours=hours_in_stage),
        }
        return _make_mock(defaults, overrides)


class ProductFactory:
    """Factory for creating Product instances for testing."""

    _counter = 0

    @classmethod
    def create(cls, **overrides: Any) -> MagicMock:
        cls._counter += 1
        defaults = {
            "sku": f"SKU-{cls._counter}",
            "category": "Ring",
            "description": None,
            "gender": "Women",
            "production_type": "InHouse",
            "weight_g": 3.0,
            "image_url": None,
            "is_component": False,
            "recipe": [],
            "collections": [],
            "variants": [],
            "created_at": NOW,
            "updated_at": NOW,
        }
        return _make_mock(defaults, overrides)


class MaterialFactory:
    """Factory for creating Material instances for testing."""

    @classmethod
    def create(cls, **overrides: Any) -> MagicMock:
        defaults = {
            "id": "MAT-ZIR",
            "name": "Zircon 2mm",
            "type": "Stone",
            "cost_per_unit": 0.1,
            "unit": "pcs",
        }
        return _make_mock(defaults, overrides)


class CollectionFactory:
    """Factory for creating Collection instances for testing."""

    _counter = 0

    @classmethod
    def create(cls, **overrides: Any) -> MagicMock:
        cls._counter += 1
        defaults = {"id": cls._counter, "name": f"Collection {cls._counter}"}
        return _make_mock(defaults, overrides)


class OrderFactory:
    """Factory for creating Order instances for testing."""

    _counter = 0

    @classmethod
    def create(
        cls,
        items: list | None = None,
        **overrides: Any,
    ) -> MagicMock:
        cls._counter += 1
        defaults = {
            "id": f"ORD-{cls._counter:04d}",
            "customer_name": f"Customer {cls._counter}",
            "status": OrderStatus.PENDING,
            "notes": None,
            "created_at": NOW,
            "updated_at": NOW,
            "items": items or [],
        }
        return _make_mock(defaults, overrides)


class OrderItemFactory:
    """Factory for creating OrderItem instances for testing."""

    _counter = 0

    @classmethod
    def create(cls, order_id: str = "ORD-0001", **overrides: Any) -> MagicMock:
        cls._counter += 1
        defaults = {
            "id": cls._counter,
            "order_id": order_id,
            "sku": "RN-101",
            "variant_suffix": None,
            "size_info": None,
            "quantity": 10,
            "notes": None,
        }
        return _make_mock(defaults, overrides)


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------


class InMemoryBatchStore:
    """BatchStore over plain lists; records every write for assertions."""

    def __init__(
        self,
        batches: Sequence[Any] = (),
        products: Sequence[Any] = (),
        materials: Sequence[Any] = (),
        orders: Sequence[Any] = (),
        collections: Sequence[Any] = (),
    ) -> None:
        self.batches = list(batches)
        self.products = list(products)
        self.materials = list(materials)
        self.orders = list(orders)
        self.collections = list(collections)
        self.writes: list[tuple[str, Any]] = []
        self.commits = 0

    def _find(self, batch_id: str) -> Any:
        for batch in self.batches:
            if batch.id == batch_id:
                return batch
        raise BatchNotFoundError(batch_id)

    async def list_batches(self, stage: ProductionStage | None = None) -> list[Any]:
        return [b for b in self.batches if stage is None or b.current_stage == stage]

    async def get_batch(self, batch_id: str) -> Any | None:
        return next((b for b in self.batches if b.id == batch_id), None)

    async def list_products(self) -> list[Any]:
        return list(self.products)

    async def list_materials(self) -> list[Any]:
        return list(self.materials)

    async def list_orders(self) -> list[Any]:
        return list(self.orders)

    async def list_collections(self) -> list[Any]:
        return list(self.collections)

    async def update_batch_stage(
        self, batch_id: str, new_stage: ProductionStage, updated_at: datetime | None = None
    ) -> None:
        batch = self._find(batch_id)
        batch.current_stage = new_stage
        batch.updated_at = updated_at or NOW
        self.writes.append(("update_batch_stage", batch_id))

    async def split_batch(
        self,
        original_batch_id: str,
        remaining_quantity: int,
        new_record: NewBatchRecord,
        updated_at: datetime | None = None,
    ) -> None:
        batch = self._find(original_batch_id)
        if batch.quantity != remaining_quantity + new_record.quantity:
            raise BatchChangedError(original_batch_id)
        batch.quantity = remaining_quantity
        batch.updated_at = updated_at or NOW
        self.batches.append(_make_mock({"on_hold": False, "on_hold_reason": None}, new_record.model_dump()))
        self.writes.append(("split_batch", original_batch_id))

    async def update_batch_notes(self, batch_id: str, notes: str | None) -> None:
        self._find(batch_id).notes = notes
        self.writes.append(("update_batch_notes", batch_id))

    async def set_batch_hold(self, batch_id: str, on_hold: bool, reason: str | None) -> None:
        batch = self._find(batch_id)
        batch.on_hold = on_hold
        batch.on_hold_reason = reason if on_hold else None
        self.writes.append(("set_batch_hold", batch_id))

    async def create_batches(self, records: Sequence[NewBatchRecord]) -> None:
        for record in records:
            self.batches.append(_make_mock({"on_hold": False, "on_hold_reason": None}, record.model_dump()))
        self.writes.append(("create_batches", len(records)))

    async def update_order_status(self, order_id: str, status: OrderStatus) -> None:
        for order in self.orders:
            if order.id == order_id:
                order.status = status
        self.writes.append(("update_order_status", order_id))

    async def commit(self) -> None:
        self.commits += 1


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def batch_factory():
    """Provide BatchFactory for tests."""
    BatchFactory._counter = 0
    return BatchFactory


@pytest.fixture
def product_factory():
    """Provide ProductFactory for tests."""
    ProductFactory._counter = 0
    return ProductFactory


@pytest.fixture
def material_factory():
    return MaterialFactory


@pytest.fixture
def collection_factory():
    CollectionFactory._counter = 0
    return CollectionFactory


@pytest.fixture
def order_factory():
    """Provide OrderFactory for tests."""
    OrderFactory._counter = 0
    return OrderFactory


@pytest.fixture
def order_item_factory():
    """Provide OrderItemFactory for tests."""
    OrderItemFactory._counter = 0
    return OrderItemFactory


@pytest.fixture
def store_factory():
    """Provide the in-memory BatchStore class."""
    return InMemoryBatchStore


@pytest.fixture
def mock_db():
    """Provide a mock AsyncSession for unit tests."""
    session = AsyncMock(spec=AsyncSession)
    session.add = MagicMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.refresh = AsyncMock()
    session.delete = AsyncMock()
    return session


@pytest.fixture
def stone(material_factory):
    """A stone material; recipes using it require setting."""
    return material_factory.create(id="MAT-ZIR", type="Stone")


@pytest.fixture
def stone_ring(product_factory):
    return product_factory.create(
        sku="RN-101",
        gender="Women",
        recipe=[{"type": "raw", "id": "MAT-ZIR", "quantity": 7}],
    )


@pytest.fixture
def plain_band(product_factory):
    return product_factory.create(sku="RN-110", gender="Men", recipe=[])


@pytest.fixture
def imported_hoops(product_factory):
    return product_factory.create(sku="ER-7", production_type="Imported")
