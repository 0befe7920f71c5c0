"""Record-store operations the production core depends on.

``BatchStore`` is the seam between the transition engine and persistence.
``SqlBatchStore`` implements it on the request's ``AsyncSession``; all writes
of one request share that session's transaction, so a split's shrink and
insert commit together or roll back together. Guarded endpoints call
``commit()`` while they still hold the batch; anything else is committed by
``get_db`` when the request ends.
"""

import logging
import uuid
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any, Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from atelier.models.enums import OrderStatus, ProductionStage
from atelier.models.material import Collection, Material
from atelier.models.order import Order
from atelier.models.product import Product
from atelier.models.production_batch import ProductionBatch
from atelier.schemas.production import NewBatchRecord

logger = logging.getLogger(__name__)


class BatchWriteError(Exception):
    """Raised when the store rejects or fails a batch write."""


class BatchNotFoundError(LookupError):
    """Raised when a write targets a batch id that does not exist."""


class BatchChangedError(Exception):
    """Raised when a split finds the batch quantity changed since it was read."""

    def __init__(self, batch_id: str) -> None:
        super().__init__(f"Batch {batch_id} was changed by another request, reload and retry")
        self.batch_id = batch_id


def generate_batch_id() -> str:
    return f"BAT-{uuid.uuid4().hex[:8].upper()}"


class BatchStore(Protocol):
    """Operations consumed by the transition engine and board projections."""

    async def list_batches(self, stage: ProductionStage | None = None) -> Sequence[ProductionBatch]: ...

    async def get_batch(self, batch_id: str) -> ProductionBatch | None: ...

    async def list_products(self) -> Sequence[Product]: ...

    async def list_materials(self) -> Sequence[Material]: ...

    async def list_orders(self) -> Sequence[Order]: ...

    async def list_collections(self) -> Sequence[Collection]: ...

    async def update_batch_stage(
        self, batch_id: str, new_stage: ProductionStage, updated_at: datetime | None = None
    ) -> None: ...

    async def split_batch(
        self,
        original_batch_id: str,
        remaining_quantity: int,
        new_record: NewBatchRecord,
        updated_at: datetime | None = None,
    ) -> None: ...

    async def update_batch_notes(self, batch_id: str, notes: str | None) -> None: ...

    async def set_batch_hold(self, batch_id: str, on_hold: bool, reason: str | None) -> None: ...

    async def create_batches(self, records: Sequence[NewBatchRecord]) -> None: ...

    async def update_order_status(self, order_id: str, status: OrderStatus) -> None: ...

    async def commit(self) -> None: ...


class SqlBatchStore:
    """BatchStore backed by PostgreSQL through SQLAlchemy."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ---------------------------------------------------------------
    # Reads
    # ---------------------------------------------------------------

    async def list_batches(self, stage: ProductionStage | None = None) -> list[ProductionBatch]:
        query = select(ProductionBatch)
        if stage is not None:
            query = query.where(ProductionBatch.current_stage == stage)
        query = query.order_by(ProductionBatch.created_at)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_batch(self, batch_id: str) -> ProductionBatch | None:
        result = await self.db.execute(select(ProductionBatch).where(ProductionBatch.id == batch_id))
        return result.scalar_one_or_none()

    async def list_products(self) -> list[Product]:
        result = await self.db.execute(select(Product))
        return list(result.scalars().all())

    async def list_materials(self) -> list[Material]:
        result = await self.db.execute(select(Material))
        return list(result.scalars().all())

    async def list_orders(self) -> list[Order]:
        result = await self.db.execute(select(Order).options(selectinload(Order.items)))
        return list(result.scalars().all())

    async def list_collections(self) -> list[Collection]:
        result = await self.db.execute(select(Collection).order_by(Collection.name))
        return list(result.scalars().all())

    # ---------------------------------------------------------------
    # Writes
    # ---------------------------------------------------------------

    async def _update(self, batch_id: str, *criteria: Any, **values: object) -> int:
        try:
            result = await self.db.execute(
                update(ProductionBatch)
                .where(ProductionBatch.id == batch_id, *criteria)
                .values(**values)
            )
        except SQLAlchemyError as exc:
            logger.exception("Write to batch %s failed", batch_id)
            raise BatchWriteError(f"Could not update batch {batch_id}") from exc
        if result.rowcount == 0 and not criteria:
            raise BatchNotFoundError(batch_id)
        return result.rowcount

    async def _exists(self, batch_id: str) -> bool:
        result = await self.db.execute(select(ProductionBatch.id).where(ProductionBatch.id == batch_id))
        return result.scalar_one_or_none() is not None

    async def update_batch_stage(
        self, batch_id: str, new_stage: ProductionStage, updated_at: datetime | None = None
    ) -> None:
        """Move the whole batch and restart its stage clock."""
        await self._update(
            batch_id,
            current_stage=new_stage,
            updated_at=updated_at or datetime.now(timezone.utc),
        )

    async def split_batch(
        self,
        original_batch_id: str,
        remaining_quantity: int,
        new_record: NewBatchRecord,
        updated_at: datetime | None = None,
    ) -> None:
        """Shrink the original batch and insert the split-off part.

        The shrink only applies while the row still holds the quantity the
        split was computed from, so a concurrent split of the same batch
        cannot create pieces out of nothing.
        """
        moved = new_record.quantity
        shrunk = await self._update(
            original_batch_id,
            ProductionBatch.quantity == remaining_quantity + moved,
            quantity=ProductionBatch.quantity - moved,
            updated_at=updated_at or datetime.now(timezone.utc),
        )
        if shrunk == 0:
            if not await self._exists(original_batch_id):
                raise BatchNotFoundError(original_batch_id)
            logger.warning("Batch %s changed before split of %d could apply", original_batch_id, moved)
            raise BatchChangedError(original_batch_id)
        self.db.add(ProductionBatch(**new_record.model_dump()))
        try:
            await self.db.flush()
        except SQLAlchemyError as exc:
            logger.exception("Inserting split batch %s failed", new_record.id)
            raise BatchWriteError(f"Could not split batch {original_batch_id}") from exc

    async def update_batch_notes(self, batch_id: str, notes: str | None) -> None:
        await self._update(batch_id, notes=notes)

    async def set_batch_hold(self, batch_id: str, on_hold: bool, reason: str | None) -> None:
        await self._update(batch_id, on_hold=on_hold, on_hold_reason=reason if on_hold else None)

    async def create_batches(self, records: Sequence[NewBatchRecord]) -> None:
        for record in records:
            self.db.add(ProductionBatch(**record.model_dump()))
        try:
            await self.db.flush()
        except SQLAlchemyError as exc:
            logger.exception("Creating %d batches failed", len(records))
            raise BatchWriteError("Could not create production batches") from exc

    async def update_order_status(self, order_id: str, status: OrderStatus) -> None:
        try:
            await self.db.execute(update(Order).where(Order.id == order_id).values(status=status))
        except SQLAlchemyError as exc:
            logger.exception("Updating status of order %s failed", order_id)
            raise BatchWriteError(f"Could not update order {order_id}") from exc

    async def commit(self) -> None:
        """Commit the request's writes now rather than when the session closes."""
        try:
            await self.db.commit()
        except SQLAlchemyError as exc:
            logger.exception("Commit of batch writes failed")
            raise BatchWriteError("Could not save production changes") from exc
