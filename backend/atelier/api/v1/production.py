"""Production board API endpoints: enriched reads, stage moves, splits, holds."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from atelier.core.database import get_db
from atelier.core.rate_limit import rate_limit_mutation
from atelier.models.enums import ProductionStage
from atelier.schemas.production import (
    EnrichedBatch,
    HoldUpdate,
    NotesUpdate,
    QuickNextRequest,
    StageColumn,
    StageGroups,
    StageMoveRequest,
    StageMoveResult,
)
from atelier.services.batch_store import (
    BatchChangedError,
    BatchNotFoundError,
    BatchStore,
    BatchWriteError,
    SqlBatchStore,
)
from atelier.services.board import ProductionBoardService
from atelier.services.grouping import MIN_SEARCH_LENGTH
from atelier.services.processing_guard import (
    BatchBusyError,
    BatchProcessingGuard,
    get_processing_guard,
)
from atelier.services.transitions import StageTransitionEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/production", tags=["production"])


def get_batch_store(db: AsyncSession = Depends(get_db)) -> BatchStore:
    """FastAPI dependency binding the store to the request's session."""
    return SqlBatchStore(db)


@asynccontextmanager
async def _guarded(
    guard: BatchProcessingGuard, store: BatchStore, batch_id: str
) -> AsyncIterator[None]:
    """Hold the batch until its writes are committed and map store errors to HTTP."""
    try:
        async with guard.hold(batch_id):
            yield
            await store.commit()
    except (BatchBusyError, BatchChangedError) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except BatchNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Batch not found") from exc
    except BatchWriteError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc


async def _load_batch(board: ProductionBoardService, batch_id: str) -> EnrichedBatch:
    batch = await board.enriched_batch(batch_id)
    if batch is None:
        raise HTTPException(status_code=404, detail="Batch not found")
    return batch


@router.get("/batches", response_model=list[EnrichedBatch])
async def list_batches(
    stage: ProductionStage | None = Query(None),
    store: BatchStore = Depends(get_batch_store),
) -> list[EnrichedBatch]:
    """List enriched batches, optionally restricted to one stage."""
    return await ProductionBoardService(store).enriched_batches(stage)


@router.get("/board", response_model=list[StageColumn])
async def get_board(store: BatchStore = Depends(get_batch_store)) -> list[StageColumn]:
    """Per-stage summary columns in pipeline order."""
    return await ProductionBoardService(store).board()


@router.get("/stages/{stage}/groups", response_model=StageGroups)
async def get_stage_groups(
    stage: ProductionStage,
    store: BatchStore = Depends(get_batch_store),
) -> StageGroups:
    """Batches of one stage grouped by gender, then by collection."""
    return await ProductionBoardService(store).stage_groups(stage)


@router.get("/search", response_model=list[EnrichedBatch])
async def search_batches(
    q: str = Query(..., min_length=MIN_SEARCH_LENGTH, max_length=100),
    store: BatchStore = Depends(get_batch_store),
) -> list[EnrichedBatch]:
    """Find batches by SKU, order id or customer name."""
    return await ProductionBoardService(store).search(q)


@router.get("/batches/{batch_id}", response_model=EnrichedBatch)
async def get_batch(
    batch_id: str,
    store: BatchStore = Depends(get_batch_store),
) -> EnrichedBatch:
    """Get a single enriched batch."""
    return await _load_batch(ProductionBoardService(store), batch_id)


@router.post(
    "/batches/{batch_id}/move",
    response_model=StageMoveResult,
    dependencies=[Depends(rate_limit_mutation)],
)
async def move_batch(
    batch_id: str,
    payload: StageMoveRequest,
    store: BatchStore = Depends(get_batch_store),
    guard: BatchProcessingGuard = Depends(get_processing_guard),
) -> StageMoveResult:
    """Move a batch, or split part of it, to another stage."""
    async with _guarded(guard, store, batch_id):
        batch = await _load_batch(ProductionBoardService(store), batch_id)
        return await StageTransitionEngine(store).attempt_move(
            batch, payload.target_stage, quantity=payload.quantity, confirm=payload.confirm
        )


@router.post(
    "/batches/{batch_id}/next",
    response_model=StageMoveResult,
    dependencies=[Depends(rate_limit_mutation)],
)
async def advance_batch(
    batch_id: str,
    payload: QuickNextRequest,
    store: BatchStore = Depends(get_batch_store),
    guard: BatchProcessingGuard = Depends(get_processing_guard),
) -> StageMoveResult:
    """Advance the whole batch to the next stage on its route."""
    async with _guarded(guard, store, batch_id):
        batch = await _load_batch(ProductionBoardService(store), batch_id)
        return await StageTransitionEngine(store).quick_next(batch, confirm=payload.confirm)


@router.patch(
    "/batches/{batch_id}/notes",
    response_model=EnrichedBatch,
    dependencies=[Depends(rate_limit_mutation)],
)
async def update_notes(
    batch_id: str,
    payload: NotesUpdate,
    store: BatchStore = Depends(get_batch_store),
) -> EnrichedBatch:
    """Replace the batch's free-text notes. Does not restart the stage clock."""
    try:
        await store.update_batch_notes(batch_id, payload.notes)
        await store.commit()
    except BatchNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Batch not found") from exc
    except BatchWriteError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return await _load_batch(ProductionBoardService(store), batch_id)


@router.post(
    "/batches/{batch_id}/hold",
    response_model=EnrichedBatch,
    dependencies=[Depends(rate_limit_mutation)],
)
async def hold_batch(
    batch_id: str,
    payload: HoldUpdate,
    store: BatchStore = Depends(get_batch_store),
    guard: BatchProcessingGuard = Depends(get_processing_guard),
) -> EnrichedBatch:
    """Put a batch on hold with a reason, or resume it."""
    async with _guarded(guard, store, batch_id):
        await store.set_batch_hold(batch_id, payload.on_hold, payload.reason)
    if payload.on_hold:
        logger.info("Batch %s put on hold: %s", batch_id, payload.reason)
    else:
        logger.info("Batch %s resumed", batch_id)
    return await _load_batch(ProductionBoardService(store), batch_id)
