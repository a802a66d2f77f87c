"""SAL checkpoint registry.

Checkpoints are numbered densely from 1. Only the last one can be deleted,
and a locked checkpoint keeps its cut-off date. Violations are refused
before anything is changed.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, Sequence

import structlog

from salcalc.ledger.entries import LedgerEntry
from salcalc.ledger.snapshot import compute_snapshot
from salcalc.models import Checkpoint, ContractConfig, ProjectDocument, describe_checkpoint

logger = structlog.get_logger(__name__)


class CheckpointSequenceError(ValueError):
    """Raised when a change would break the SAL sequence or a locked SAL."""


class CheckpointRegistry:
    """Ordered set of SAL checkpoints."""

    def __init__(self, checkpoints: Iterable[Checkpoint] = ()):
        self._checkpoints: list[Checkpoint] = list(checkpoints)

    def __len__(self) -> int:
        return len(self._checkpoints)

    def __iter__(self):
        return iter(self.ordered())

    def ordered(self) -> list[Checkpoint]:
        return sorted(self._checkpoints, key=lambda c: c.number)

    def latest(self) -> Checkpoint | None:
        """The highest-numbered checkpoint (default active one), if any."""
        ordered = self.ordered()
        return ordered[-1] if ordered else None

    def get(self, checkpoint_id: str) -> Checkpoint:
        for checkpoint in self._checkpoints:
            if checkpoint.id == checkpoint_id:
                return checkpoint
        raise KeyError(f"Unknown SAL: {checkpoint_id}")

    def get_by_number(self, number: int) -> Checkpoint:
        for checkpoint in self._checkpoints:
            if checkpoint.number == number:
                return checkpoint
        raise KeyError(f"Unknown SAL number: {number}")

    def predecessor(self, checkpoint_id: str) -> Checkpoint | None:
        """The checkpoint immediately before ``checkpoint_id`` in number order."""
        ordered = self.ordered()
        for position, checkpoint in enumerate(ordered):
            if checkpoint.id == checkpoint_id:
                return ordered[position - 1] if position > 0 else None
        raise KeyError(f"Unknown SAL: {checkpoint_id}")

    def create(self, today: date | None = None) -> Checkpoint:
        """Append the next SAL with today's date as cut-off."""
        latest = self.latest()
        number = latest.number + 1 if latest else 1
        checkpoint = Checkpoint(number=number, date=today or date.today())
        self._checkpoints.append(checkpoint)
        logger.info("sal_created", number=number, cutoff=checkpoint.date.isoformat())
        return checkpoint

    def delete(self, checkpoint_id: str) -> Checkpoint:
        checkpoint = self.get(checkpoint_id)
        latest = self.latest()
        if latest is None or latest.id != checkpoint.id:
            raise CheckpointSequenceError(
                f"Only the last SAL can be deleted (SAL N. {checkpoint.number} "
                f"is followed by SAL N. {latest.number})"
            )
        if checkpoint.locked:
            raise CheckpointSequenceError(
                f"SAL N. {checkpoint.number} is locked and cannot be deleted"
            )
        self._checkpoints.remove(checkpoint)
        logger.info("sal_deleted", number=checkpoint.number)
        return checkpoint

    def set_date(self, checkpoint_id: str, new_date: date) -> Checkpoint:
        checkpoint = self.get(checkpoint_id)
        if checkpoint.locked:
            raise CheckpointSequenceError(
                f"SAL N. {checkpoint.number} is locked; its date cannot change"
            )
        updated = checkpoint.model_copy(
            update={
                "date": new_date,
                "description": describe_checkpoint(checkpoint.number, new_date),
            }
        )
        self._replace(checkpoint, updated)
        logger.info("sal_date_changed", number=checkpoint.number, cutoff=new_date.isoformat())
        return updated

    def toggle_lock(self, checkpoint_id: str) -> Checkpoint:
        checkpoint = self.get(checkpoint_id)
        updated = checkpoint.model_copy(update={"locked": not checkpoint.locked})
        self._replace(checkpoint, updated)
        logger.info("sal_lock_toggled", number=checkpoint.number, locked=updated.locked)
        return updated

    def cumulative_values(
        self,
        ledger: Sequence[LedgerEntry],
        contract: ContractConfig,
        documents: Iterable[ProjectDocument] = (),
    ) -> dict[str, Decimal]:
        """Net cumulative value of works at each checkpoint, keyed by id.

        Each value is a full snapshot over the ledger up to that SAL's date,
        so the cost is O(checkpoints x entries).
        """
        documents = list(documents)
        return {
            checkpoint.id: compute_snapshot(
                ledger, checkpoint.date, contract, documents
            ).total_net
            for checkpoint in self.ordered()
        }

    def _replace(self, old: Checkpoint, new: Checkpoint) -> None:
        for position, checkpoint in enumerate(self._checkpoints):
            if checkpoint is old:
                self._checkpoints[position] = new
                return
