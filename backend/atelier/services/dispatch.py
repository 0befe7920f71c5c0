"""Sending order lines to production.

An order line may be dispatched in several rounds; each round can only send
what is not already covered by batches of the same order, SKU, variant and
size. New batches start at AwaitingDelivery for imported products and at
Waxing for everything cast in-house.
"""

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Any

from atelier.models.enums import BatchType, OrderStatus, ProductionStage, ProductionType
from atelier.schemas.order import DispatchItem, DispatchResult, ItemProductionStatus
from atelier.schemas.production import NewBatchRecord
from atelier.services.batch_store import BatchStore, generate_batch_id

logger = logging.getLogger(__name__)

LineKey = tuple[str, str, str]


def line_key(sku: str, variant_suffix: str | None, size_info: str | None) -> LineKey:
    """Identity of an order line for matching against batches."""
    return sku, variant_suffix or "", size_info or ""


def initial_stage(product: Any | None) -> ProductionStage:
    if product is not None and product.production_type == ProductionType.IMPORTED:
        return ProductionStage.AWAITING_DELIVERY
    return ProductionStage.WAXING


def production_status(order: Any, batches: Iterable[Any]) -> list[ItemProductionStatus]:
    """Per order line: ordered, already sent, remaining, and where it sits."""
    ordered: dict[LineKey, int] = {}
    for item in order.items:
        key = line_key(item.sku, item.variant_suffix, item.size_info)
        ordered[key] = ordered.get(key, 0) + item.quantity

    sent: dict[LineKey, int] = defaultdict(int)
    stages: dict[LineKey, dict[str, int]] = defaultdict(lambda: defaultdict(int))
    for batch in batches:
        if batch.order_id != order.id:
            continue
        key = line_key(batch.sku, batch.variant_suffix, batch.size_info)
        sent[key] += batch.quantity
        stages[key][ProductionStage(batch.current_stage).value] += batch.quantity

    return [
        ItemProductionStatus(
            sku=key[0],
            variant_suffix=key[1] or None,
            size_info=key[2] or None,
            ordered=qty,
            sent=sent[key],
            remaining=max(0, qty - sent[key]),
            stages=dict(stages[key]),
        )
        for key, qty in ordered.items()
    ]


class OrderDispatchService:
    """Creates production batches for an order's outstanding quantities."""

    def __init__(
        self,
        store: BatchStore,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        id_factory: Callable[[], str] = generate_batch_id,
    ) -> None:
        self.store = store
        self.clock = clock
        self.id_factory = id_factory

    async def status(self, order: Any) -> list[ItemProductionStatus]:
        return production_status(order, await self.store.list_batches())

    async def send_to_production(self, order: Any, items: list[DispatchItem]) -> DispatchResult:
        """Dispatch the requested quantities, clamped to what is still outstanding."""
        remaining = {
            line_key(s.sku, s.variant_suffix, s.size_info): s.remaining
            for s in await self.status(order)
        }
        notes_by_line = {
            line_key(i.sku, i.variant_suffix, i.size_info): i.notes for i in order.items
        }
        products = {p.sku: p for p in await self.store.list_products()}
        now = self.clock()

        records: list[NewBatchRecord] = []
        for item in items:
            key = line_key(item.sku, item.variant_suffix, item.size_info)
            quantity = min(item.quantity, remaining.get(key, 0))
            if quantity <= 0:
                continue
            remaining[key] -= quantity
            records.append(
                NewBatchRecord(
                    id=self.id_factory(),
                    sku=item.sku,
                    variant_suffix=item.variant_suffix,
                    size_info=item.size_info,
                    quantity=quantity,
                    current_stage=initial_stage(products.get(item.sku)),
                    order_id=order.id,
                    type=BatchType.NEW,
                    notes=item.notes if item.notes is not None else notes_by_line.get(key),
                    created_at=now,
                    updated_at=now,
                )
            )

        if not records:
            logger.info("Nothing to dispatch for order %s", order.id)
            return DispatchResult(
                order_id=order.id,
                dispatched=False,
                notice="No outstanding quantities selected for production",
            )

        await self.store.create_batches(records)
        await self.store.update_order_status(order.id, OrderStatus.IN_PRODUCTION)
        total = sum(r.quantity for r in records)
        logger.info("Order %s: dispatched %d batches (%d pcs)", order.id, len(records), total)
        return DispatchResult(
            order_id=order.id,
            dispatched=True,
            created_batch_ids=[r.id for r in records],
            total_quantity=total,
            notice=f"Sent {len(records)} lines to production",
        )
