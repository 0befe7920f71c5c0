"""Production board read service: fetch, enrich, project."""

from collections.abc import Callable
from datetime import datetime, timezone

from atelier.models.enums import ProductionStage
from atelier.schemas.production import EnrichedBatch, StageColumn, StageGroups
from atelier.services.batch_store import BatchStore
from atelier.services.enrichment import enrich_batches
from atelier.services.grouping import build_board, find_batches, group_stage


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProductionBoardService:
    """Builds enriched views from one consistent snapshot of store data."""

    def __init__(self, store: BatchStore, clock: Callable[[], datetime] = _utcnow) -> None:
        self.store = store
        self.clock = clock

    async def _enrich(self, batches: list) -> list[EnrichedBatch]:
        if not batches:
            return []
        products = await self.store.list_products()
        materials = await self.store.list_materials()
        orders = await self.store.list_orders()
        return enrich_batches(batches, products, materials, orders, now=self.clock())

    async def enriched_batches(self, stage: ProductionStage | None = None) -> list[EnrichedBatch]:
        return await self._enrich(list(await self.store.list_batches(stage)))

    async def enriched_batch(self, batch_id: str) -> EnrichedBatch | None:
        batch = await self.store.get_batch(batch_id)
        if batch is None:
            return None
        return (await self._enrich([batch]))[0]

    async def board(self) -> list[StageColumn]:
        return build_board(await self.enriched_batches())

    async def stage_groups(self, stage: ProductionStage) -> StageGroups:
        batches = await self.enriched_batches(stage)
        collections = await self.store.list_collections()
        return group_stage(batches, stage, collections)

    async def search(self, term: str) -> list[EnrichedBatch]:
        return find_batches(await self.enriched_batches(), term)
