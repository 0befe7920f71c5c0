"""Production batch and board Pydantic schemas."""

import enum
from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from atelier.models.enums import BatchType, ProductionStage
from atelier.schemas.catalog import ProductResponse


class BatchResponse(BaseModel):
    """Schema for raw batch responses."""

    id: str
    sku: str
    variant_suffix: str | None
    size_info: str | None
    quantity: int
    current_stage: ProductionStage
    order_id: str | None
    type: BatchType
    notes: str | None
    on_hold: bool = False
    on_hold_reason: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @property
    def full_sku(self) -> str:
        return f"{self.sku}{self.variant_suffix or ''}"


class EnrichedBatch(BatchResponse):
    """Batch plus the per-read attributes derived from reference data."""

    product_details: ProductResponse | None = None
    diff_hours: int
    is_delayed: bool
    requires_setting: bool
    is_imported: bool = False
    customer_name: str = ""
    time_in_stage: str = ""


class NewBatchRecord(BaseModel):
    """A batch row about to be inserted (split-off part or dispatched item)."""

    id: str
    sku: str
    variant_suffix: str | None = None
    size_info: str | None = None
    quantity: int = Field(..., ge=1)
    current_stage: ProductionStage
    order_id: str | None = None
    type: BatchType = BatchType.NEW
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class StageMoveRequest(BaseModel):
    """Operator request to move a batch, or part of it, to another stage."""

    target_stage: ProductionStage
    quantity: int | None = Field(None, ge=1, description="Pieces to move; omit for the whole batch")
    confirm: bool = Field(False, description="Required to receive an AwaitingDelivery batch")


class QuickNextRequest(BaseModel):
    confirm: bool = False


class NotesUpdate(BaseModel):
    notes: str | None = Field(None, max_length=2000)


class HoldUpdate(BaseModel):
    """Put a batch on hold (reason required) or resume it."""

    on_hold: bool
    reason: str | None = Field(None, max_length=500)

    @model_validator(mode="after")
    def _reason_required_when_holding(self) -> "HoldUpdate":
        if self.on_hold and not (self.reason and self.reason.strip()):
            raise ValueError("A reason is required to put a batch on hold")
        return self


class MoveOutcome(str, enum.Enum):
    NOOP = "noop"
    MOVED = "moved"
    SPLIT = "split"
    REJECTED = "rejected"
    CONFIRMATION_REQUIRED = "confirmation_required"


class StageMoveResult(BaseModel):
    """What a move request did. Non-mutating outcomes carry an operator notice."""

    outcome: MoveOutcome
    batch_id: str
    from_stage: ProductionStage
    target_stage: ProductionStage | None = None
    moved_quantity: int = 0
    remaining_quantity: int = 0
    new_batch_id: str | None = None
    notice: str = ""

    @property
    def wrote(self) -> bool:
        return self.outcome in (MoveOutcome.MOVED, MoveOutcome.SPLIT)


class StageColumn(BaseModel):
    """Summary of one board column."""

    stage: ProductionStage
    label: str
    color: str
    sla_hours: int | None
    batch_count: int
    total_quantity: int
    delayed_count: int
    on_hold_count: int


class CollectionGroup(BaseModel):
    collection: str
    batches: list[EnrichedBatch]


class GenderGroup(BaseModel):
    gender: str
    collections: list[CollectionGroup]


class StageGroups(BaseModel):
    """Stage → gender → collection hierarchy for one board column."""

    stage: ProductionStage
    total_batches: int
    genders: list[GenderGroup]
