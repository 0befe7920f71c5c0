"""Batch enrichment: per-read attributes derived from reference data.

Nothing computed here is persisted. The board recomputes it on every fetch,
so a missing product or material degrades the affected batch to defaults
instead of failing the whole list.
"""

import math
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from atelier.models.enums import MaterialType, ProductionStage, ProductionType
from atelier.schemas.catalog import ProductResponse
from atelier.schemas.production import BatchResponse, EnrichedBatch
from atelier.services.stages import sla_hours


def _aware(dt: datetime) -> datetime:
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


def hours_since(updated_at: datetime, now: datetime) -> int:
    """Whole hours elapsed since ``updated_at`` (never negative)."""
    elapsed = (_aware(now) - _aware(updated_at)).total_seconds()
    return max(0, math.floor(elapsed / 3600))


def is_delayed(stage: ProductionStage, diff_hours: int) -> bool:
    """A batch is late once it exceeds its stage SLA; Ready is never late."""
    return stage != ProductionStage.READY and diff_hours > sla_hours(stage)


def format_time_in_stage(diff_hours: int) -> str:
    """Render elapsed time as ``5h`` or ``2d 3h``."""
    days, hours = divmod(diff_hours, 24)
    if days > 0:
        return f"{days}d {hours}h"
    return f"{hours}h"


def requires_setting(product: Any | None, materials_by_id: Mapping[str, Any]) -> bool:
    """True when the product's recipe uses a gemstone.

    A recipe line counts only if it references a raw material that resolves
    in the catalog to type Stone. Components are not inspected.
    """
    if product is None:
        return False
    for entry in product.recipe or []:
        if entry.get("type") != "raw":
            continue
        material = materials_by_id.get(str(entry.get("id")))
        if material is not None and material.type == MaterialType.STONE:
            return True
    return False


def enrich_batch(
    batch: Any,
    products_by_sku: Mapping[str, Any],
    materials_by_id: Mapping[str, Any],
    orders_by_id: Mapping[str, Any],
    now: datetime | None = None,
) -> EnrichedBatch:
    """Project one raw batch into its enriched board view."""
    now = now or datetime.now(timezone.utc)
    product = products_by_sku.get(batch.sku)
    order = orders_by_id.get(batch.order_id) if batch.order_id else None
    diff_hours = hours_since(batch.updated_at, now)
    stage = ProductionStage(batch.current_stage)

    return EnrichedBatch(
        **BatchResponse.model_validate(batch).model_dump(),
        product_details=ProductResponse.model_validate(product) if product is not None else None,
        diff_hours=diff_hours,
        is_delayed=is_delayed(stage, diff_hours),
        requires_setting=requires_setting(product, materials_by_id),
        is_imported=product is not None and product.production_type == ProductionType.IMPORTED,
        customer_name=order.customer_name if order is not None else "",
        time_in_stage=format_time_in_stage(diff_hours),
    )


def enrich_batches(
    batches: Iterable[Any],
    products: Iterable[Any],
    materials: Iterable[Any],
    orders: Iterable[Any],
    now: datetime | None = None,
) -> list[EnrichedBatch]:
    """Enrich a whole batch list against one snapshot of reference data."""
    now = now or datetime.now(timezone.utc)
    products_by_sku = {p.sku: p for p in products}
    materials_by_id = {str(m.id): m for m in materials}
    orders_by_id = {o.id: o for o in orders}
    return [
        enrich_batch(b, products_by_sku, materials_by_id, orders_by_id, now=now)
        for b in batches
    ]
