"""Stage transition engine.

Validates an operator's move request against the stage topology and turns it
into store writes:

1. Same stage: no-op.
2. Held batch: rejected.
3. Casting -> Setting for a piece without stones: rejected (skip-guard).
4. AwaitingDelivery: confirmation-gated move of the whole batch.
5. Anything else: split off the requested quantity (whole batch by default).

The engine never mutates the batch it was given; callers re-fetch after a
successful write. Store failures propagate as ``BatchWriteError``.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from atelier.models.enums import ProductionStage
from atelier.schemas.production import EnrichedBatch, MoveOutcome, NewBatchRecord, StageMoveResult
from atelier.services.batch_store import BatchStore, generate_batch_id
from atelier.services.stages import next_stage, stage_label

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StageTransitionEngine:
    """Moves and splits production batches."""

    def __init__(
        self,
        store: BatchStore,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = generate_batch_id,
    ) -> None:
        self.store = store
        self.clock = clock
        self.id_factory = id_factory

    async def attempt_move(
        self,
        batch: EnrichedBatch,
        target_stage: ProductionStage,
        quantity: int | None = None,
        confirm: bool = False,
    ) -> StageMoveResult:
        """Move ``quantity`` pieces (default: all) of ``batch`` to ``target_stage``."""
        current = batch.current_stage

        if target_stage == current:
            return self._result(batch, MoveOutcome.NOOP, target_stage)

        if batch.on_hold:
            reason = f": {batch.on_hold_reason}" if batch.on_hold_reason else ""
            return self._reject(batch, target_stage, f"{batch.full_sku} is on hold{reason}")

        if (
            current == ProductionStage.CASTING
            and target_stage == ProductionStage.SETTING
            and not batch.requires_setting
        ):
            instead = next_stage(current, requires_setting=False, is_imported=batch.is_imported)
            return self._reject(
                batch,
                target_stage,
                f"{batch.full_sku} has no stones to set; send it to {stage_label(instead)} instead",
            )

        if current == ProductionStage.AWAITING_DELIVERY:
            return await self._receive(batch, target_stage, confirm)

        return await self.split(batch, batch.quantity if quantity is None else quantity, target_stage)

    async def quick_next(self, batch: EnrichedBatch, confirm: bool = False) -> StageMoveResult:
        """Advance the whole batch one step along its route."""
        target = next_stage(batch.current_stage, batch.requires_setting, batch.is_imported)
        if target is None:
            return self._reject(batch, None, f"{batch.full_sku} is already at the final stage")
        return await self.attempt_move(batch, target, confirm=confirm)

    async def split(
        self,
        batch: EnrichedBatch,
        quantity_to_move: int,
        target_stage: ProductionStage,
    ) -> StageMoveResult:
        """Move part of a batch, leaving the remainder at its current stage.

        The remainder's stage clock is reset as well: splitting a batch counts
        as handling it.
        """
        if target_stage == batch.current_stage:
            return self._result(batch, MoveOutcome.NOOP, target_stage)

        if not 1 <= quantity_to_move <= batch.quantity:
            return self._reject(
                batch,
                target_stage,
                f"Quantity must be between 1 and {batch.quantity}, got {quantity_to_move}",
            )

        now = self.clock()

        if quantity_to_move == batch.quantity:
            await self.store.update_batch_stage(batch.id, target_stage, updated_at=now)
            logger.info(
                "Batch %s (%s x%d) moved %s -> %s",
                batch.id, batch.full_sku, batch.quantity, batch.current_stage.value, target_stage.value,
            )
            return self._result(batch, MoveOutcome.MOVED, target_stage, moved=batch.quantity)

        remaining = batch.quantity - quantity_to_move
        record = NewBatchRecord(
            id=self.id_factory(),
            sku=batch.sku,
            variant_suffix=batch.variant_suffix,
            size_info=batch.size_info,
            quantity=quantity_to_move,
            current_stage=target_stage,
            order_id=batch.order_id,
            type=batch.type,
            notes=batch.notes,
            created_at=batch.created_at,
            updated_at=now,
        )
        await self.store.split_batch(batch.id, remaining, record, updated_at=now)
        logger.info(
            "Batch %s split: %d -> %s as %s, %d remain at %s",
            batch.id, quantity_to_move, target_stage.value, record.id, remaining, batch.current_stage.value,
        )
        return self._result(
            batch,
            MoveOutcome.SPLIT,
            target_stage,
            moved=quantity_to_move,
            remaining=remaining,
            new_batch_id=record.id,
        )

    async def _receive(
        self, batch: EnrichedBatch, target_stage: ProductionStage, confirm: bool
    ) -> StageMoveResult:
        """Receive an imported/awaited delivery: always the whole batch."""
        if not confirm:
            return self._result(
                batch,
                MoveOutcome.CONFIRMATION_REQUIRED,
                target_stage,
                notice=f"Confirm receipt of {batch.quantity} pcs of {batch.full_sku}",
            )
        await self.store.update_batch_stage(batch.id, target_stage, updated_at=self.clock())
        logger.info("Batch %s received into %s", batch.id, target_stage.value)
        return self._result(batch, MoveOutcome.MOVED, target_stage, moved=batch.quantity)

    def _reject(
        self, batch: EnrichedBatch, target_stage: ProductionStage | None, notice: str
    ) -> StageMoveResult:
        logger.info("Move of batch %s rejected: %s", batch.id, notice)
        return self._result(batch, MoveOutcome.REJECTED, target_stage, notice=notice)

    @staticmethod
    def _result(
        batch: EnrichedBatch,
        outcome: MoveOutcome,
        target_stage: ProductionStage | None,
        moved: int = 0,
        remaining: int = 0,
        new_batch_id: str | None = None,
        notice: str = "",
    ) -> StageMoveResult:
        return StageMoveResult(
            outcome=outcome,
            batch_id=batch.id,
            from_stage=batch.current_stage,
            target_stage=target_stage,
            moved_quantity=moved,
            remaining_quantity=remaining,
            new_batch_id=new_batch_id,
            notice=notice,
        )
