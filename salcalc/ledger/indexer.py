"""Chronological indexing of ledger entries."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from salcalc.core.money import ZERO
from salcalc.ledger.entries import LedgerEntry, build_entries
from salcalc.models import ProjectDocument


def index_entries(entries: Iterable[LedgerEntry]) -> list[LedgerEntry]:
    """Sort by date and assign progressive numbers and running totals.

    The sort is stable: entries sharing a date keep their build order.
    Returns new entries; the input is left untouched.
    """
    running_total = ZERO
    indexed = []
    for position, entry in enumerate(sorted(entries, key=lambda e: e.date), start=1):
        running_total += entry.debit
        indexed.append(
            replace(entry, progressive_index=position, running_total=running_total)
        )
    return indexed


def build_ledger(documents: Iterable[ProjectDocument]) -> list[LedgerEntry]:
    """Replay the full indexed ledger from the source documents."""
    return index_entries(build_entries(documents))


def progressive_index_map(entries: Iterable[LedgerEntry]) -> dict[str, int]:
    """Map entry ids and their measurement ids to the register number."""
    mapping: dict[str, int] = {}
    for entry in entries:
        mapping[entry.id] = entry.progressive_index
        for measurement_id in entry.measurement_ids:
            mapping[measurement_id] = entry.progressive_index
    return mapping
