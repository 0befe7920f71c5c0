"""Pydantic v2 schemas for request/response validation."""

from atelier.schemas.catalog import (
    CollectionCreate,
    CollectionResponse,
    MaterialCreate,
    MaterialResponse,
    ProductCreate,
    ProductResponse,
)
from atelier.schemas.order import (
    DispatchRequest,
    DispatchResult,
    ItemProductionStatus,
    OrderCreate,
    OrderItemCreate,
    OrderItemResponse,
    OrderResponse,
)
from atelier.schemas.production import (
    BatchResponse,
    EnrichedBatch,
    HoldUpdate,
    MoveOutcome,
    NewBatchRecord,
    NotesUpdate,
    QuickNextRequest,
    StageColumn,
    StageGroups,
    StageMoveRequest,
    StageMoveResult,
)

__all__ = [
    "BatchResponse",
    "CollectionCreate",
    "CollectionResponse",
    "DispatchRequest",
    "DispatchResult",
    "EnrichedBatch",
    "HoldUpdate",
    "ItemProductionStatus",
    "MaterialCreate",
    "MaterialResponse",
    "MoveOutcome",
    "NewBatchRecord",
    "NotesUpdate",
    "OrderCreate",
    "OrderItemCreate",
    "OrderItemResponse",
    "OrderResponse",
    "ProductCreate",
    "ProductResponse",
    "QuickNextRequest",
    "StageColumn",
    "StageGroups",
    "StageMoveRequest",
    "StageMoveResult",
]
