"""Roll-ups of the indexed ledger by catalogue code.

Feeds the progress summary (sommario del registro) and the measurement
book (libretto delle misure) views.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from salcalc.core.money import HUNDRED, ZERO, round2, safe_ratio
from salcalc.ledger.entries import LedgerEntry
from salcalc.models import BillingModel, ProjectDocument

# Lump-sum quantities are fractions of the group value, so the whole group is 1
LUMP_SUM_ESTIMATE = Decimal("1")


@dataclass(frozen=True, slots=True)
class AggregatedRow:
    article_code: str
    wbs_name: str
    description: str
    unit: str
    unit_price: Decimal
    estimated_quantity: Decimal
    total_quantity: Decimal
    total_amount: Decimal
    progress_percent: Decimal
    billing_model: BillingModel


@dataclass(frozen=True, slots=True)
class LibrettoRow:
    entry: LedgerEntry
    cumulative_quantity: Decimal
    cumulative_percentage: Decimal


def contract_quantities(documents: Iterable[ProjectDocument]) -> dict[str, Decimal]:
    """Contract quantity per article code, summed over every document."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for document in documents:
        for group in document.work_groups:
            for item in group.items:
                totals[item.article_code] += item.quantity
    return dict(totals)


def _estimate(entry: LedgerEntry, quantities: dict[str, Decimal]) -> Decimal:
    if entry.is_lump_sum:
        return LUMP_SUM_ESTIMATE
    return quantities.get(entry.article_code, ZERO)


def aggregate_by_code(
    entries: Iterable[LedgerEntry], documents: Iterable[ProjectDocument] = ()
) -> list[AggregatedRow]:
    """Progress per article code, sorted by code."""
    quantities = contract_quantities(documents)
    first_seen: dict[str, LedgerEntry] = {}
    total_quantity: dict[str, Decimal] = defaultdict(lambda: ZERO)
    total_amount: dict[str, Decimal] = defaultdict(lambda: ZERO)

    for entry in entries:
        first_seen.setdefault(entry.article_code, entry)
        total_quantity[entry.article_code] += entry.quantity
        total_amount[entry.article_code] += entry.debit

    rows = []
    for code, entry in first_seen.items():
        estimated = _estimate(entry, quantities)
        quantity = total_quantity[code]
        if entry.is_lump_sum:
            progress = quantity * HUNDRED
        else:
            progress = safe_ratio(quantity, estimated) * HUNDRED
        rows.append(
            AggregatedRow(
                article_code=code,
                wbs_name=entry.group_name,
                description=entry.group_name if entry.is_lump_sum else entry.description,
                unit=entry.unit,
                unit_price=entry.reference_price,
                estimated_quantity=estimated,
                total_quantity=quantity,
                total_amount=round2(total_amount[code]),
                progress_percent=progress,
                billing_model=entry.billing_model,
            )
        )
    return sorted(rows, key=lambda row: row.article_code)


def libretto_progress(
    entries: Iterable[LedgerEntry], documents: Iterable[ProjectDocument] = ()
) -> list[LibrettoRow]:
    """Each entry with the running quantity and completion of its article code."""
    quantities = contract_quantities(documents)
    running: dict[str, Decimal] = defaultdict(lambda: ZERO)
    rows = []
    for entry in entries:
        running[entry.article_code] += entry.quantity
        cumulative = running[entry.article_code]
        rows.append(
            LibrettoRow(
                entry=entry,
                cumulative_quantity=cumulative,
                cumulative_percentage=safe_ratio(cumulative, _estimate(entry, quantities))
                * HUNDRED,
            )
        )
    return rows
