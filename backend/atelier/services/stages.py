"""Production stage topology.

The pipeline is a fixed ordered list with two conditional deviations:
- Setting is skipped for pieces without stones.
- Imported pieces go straight from AwaitingDelivery to Labeling.
"""

import math

from atelier.models.enums import ProductionStage

STAGE_ORDER: tuple[ProductionStage, ...] = (
    ProductionStage.AWAITING_DELIVERY,
    ProductionStage.WAXING,
    ProductionStage.CASTING,
    ProductionStage.SETTING,
    ProductionStage.POLISHING,
    ProductionStage.LABELING,
    ProductionStage.READY,
)

# Hours a batch may sit in a stage before it counts as delayed
STAGE_SLA_HOURS: dict[ProductionStage, int] = {
    ProductionStage.WAXING: 48,
    ProductionStage.CASTING: 24,
    ProductionStage.SETTING: 72,
    ProductionStage.POLISHING: 48,
    ProductionStage.LABELING: 24,
}


def stage_index(stage: ProductionStage) -> int:
    """Pipeline position of a stage, -1 if unknown."""
    try:
        return STAGE_ORDER.index(stage)
    except ValueError:
        return -1


def sla_hours(stage: ProductionStage) -> float:
    """SLA threshold in hours; infinite for AwaitingDelivery and Ready."""
    return STAGE_SLA_HOURS.get(stage, math.inf)


def next_stage(
    current: ProductionStage,
    requires_setting: bool,
    is_imported: bool = False,
) -> ProductionStage | None:
    """Resolve the stage a batch advances to, or None at the end of the line."""
    if current == ProductionStage.AWAITING_DELIVERY and is_imported:
        return ProductionStage.LABELING

    idx = stage_index(current)
    if idx == -1 or idx == len(STAGE_ORDER) - 1:
        return None

    candidate = STAGE_ORDER[idx + 1]
    if candidate == ProductionStage.SETTING and not requires_setting:
        return STAGE_ORDER[idx + 2]
    return candidate


def stage_label(stage: ProductionStage) -> str:
    """Shop-floor column title."""
    match stage:
        case ProductionStage.AWAITING_DELIVERY:
            return "Awaiting delivery"
        case ProductionStage.WAXING:
            return "Molds / Wax"
        case ProductionStage.CASTING:
            return "Casting"
        case ProductionStage.SETTING:
            return "Stone setting"
        case ProductionStage.POLISHING:
            return "Polishing"
        case ProductionStage.LABELING:
            return "Packaging"
        case ProductionStage.READY:
            return "Ready"
    raise ValueError(f"Unknown stage: {stage!r}")


def stage_color(stage: ProductionStage) -> str:
    """Color token used by board clients."""
    match stage:
        case ProductionStage.AWAITING_DELIVERY:
            return "indigo"
        case ProductionStage.WAXING:
            return "slate"
        case ProductionStage.CASTING:
            return "orange"
        case ProductionStage.SETTING:
            return "purple"
        case ProductionStage.POLISHING:
            return "blue"
        case ProductionStage.LABELING:
            return "yellow"
        case ProductionStage.READY:
            return "emerald"
    raise ValueError(f"Unknown stage: {stage!r}")
