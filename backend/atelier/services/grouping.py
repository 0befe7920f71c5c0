"""Read-only projections that drive the production board layout."""

import re
from collections import defaultdict
from collections.abc import Iterable, Mapping
from typing import Any

from atelier.models.enums import Gender, ProductionStage
from atelier.schemas.production import (
    CollectionGroup,
    EnrichedBatch,
    GenderGroup,
    StageColumn,
    StageGroups,
)
from atelier.services.stages import STAGE_ORDER, STAGE_SLA_HOURS, stage_color, stage_label

UNKNOWN_GENDER = "Unknown"
GENDER_ORDER: tuple[str, ...] = (
    Gender.WOMEN.value,
    Gender.MEN.value,
    Gender.UNISEX.value,
    UNKNOWN_GENDER,
)
GENERAL_COLLECTION = "General"
MIN_SEARCH_LENGTH = 2

_DIGITS = re.compile(r"(\d+)")


def natural_key(text: str) -> list[Any]:
    """Sort key ordering ``RG-9`` before ``RG-10``."""
    return [int(part) if part.isdigit() else part.casefold() for part in _DIGITS.split(text)]


def _batch_sort_key(batch: EnrichedBatch) -> tuple[list[Any], str]:
    return natural_key(batch.full_sku), batch.id


def _gender_of(batch: EnrichedBatch) -> str:
    product = batch.product_details
    if product is None or product.gender is None:
        return UNKNOWN_GENDER
    return Gender(product.gender).value


def _collection_of(batch: EnrichedBatch, collection_names: Mapping[int, str]) -> str:
    product = batch.product_details
    if product is None or not product.collections:
        return GENERAL_COLLECTION
    return collection_names.get(product.collections[0], GENERAL_COLLECTION)


def _collection_sort_key(name: str) -> tuple[bool, str]:
    return name == GENERAL_COLLECTION, name.casefold()


def group_stage(
    batches: Iterable[EnrichedBatch],
    stage: ProductionStage,
    collections: Iterable[Any],
) -> StageGroups:
    """Partition one stage's batches by gender, then by primary collection."""
    collection_names = {c.id: c.name for c in collections}
    buckets: dict[str, dict[str, list[EnrichedBatch]]] = defaultdict(lambda: defaultdict(list))
    total = 0

    for batch in batches:
        if batch.current_stage != stage:
            continue
        buckets[_gender_of(batch)][_collection_of(batch, collection_names)].append(batch)
        total += 1

    genders = [
        GenderGroup(
            gender=gender,
            collections=[
                CollectionGroup(
                    collection=name,
                    batches=sorted(buckets[gender][name], key=_batch_sort_key),
                )
                for name in sorted(buckets[gender], key=_collection_sort_key)
            ],
        )
        for gender in GENDER_ORDER
        if gender in buckets
    ]
    return StageGroups(stage=stage, total_batches=total, genders=genders)


def build_board(batches: Iterable[EnrichedBatch]) -> list[StageColumn]:
    """One summary column per stage, in pipeline order."""
    by_stage: dict[ProductionStage, list[EnrichedBatch]] = defaultdict(list)
    for batch in batches:
        by_stage[batch.current_stage].append(batch)

    columns = []
    for stage in STAGE_ORDER:
        stage_batches = by_stage.get(stage, [])
        columns.append(
            StageColumn(
                stage=stage,
                label=stage_label(stage),
                color=stage_color(stage),
                sla_hours=STAGE_SLA_HOURS.get(stage),
                batch_count=len(stage_batches),
                total_quantity=sum(b.quantity for b in stage_batches),
                delayed_count=sum(1 for b in stage_batches if b.is_delayed),
                on_hold_count=sum(1 for b in stage_batches if b.on_hold),
            )
        )
    return columns


def find_batches(batches: Iterable[EnrichedBatch], term: str) -> list[EnrichedBatch]:
    """Match a finder term against full SKU, order id and customer name."""
    term = term.strip().upper()
    if len(term) < MIN_SEARCH_LENGTH:
        return []

    found = [
        b
        for b in batches
        if term in b.full_sku.upper()
        or (b.order_id and term in b.order_id.upper())
        or (b.customer_name and term in b.customer_name.upper())
    ]
    return sorted(found, key=_batch_sort_key)
