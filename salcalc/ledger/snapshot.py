"""Point-in-time totals of the works ledger (riepilogo tecnico contabile).

``compute_snapshot`` is the single source of truth for both the live view
and every historical SAL: it only reads its arguments, so the snapshot at a
given date does not depend on which other snapshots were computed before.

Each reported figure is quantised to cents before it is used by the next
step, reproducing the register's round-then-accumulate arithmetic.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Sequence

import structlog

from salcalc.core.money import HUNDRED, ZERO, percent_of, round2, safe_ratio, sum2
from salcalc.ledger.entries import LedgerEntry
from salcalc.models import BillingModel, ContractConfig, ProjectDocument

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Snapshot:
    cutoff: date

    security: Decimal  # Oneri sicurezza, never discounted

    measure_gross: Decimal
    measure_labor: Decimal
    measure_net: Decimal

    body_gross: Decimal
    body_labor: Decimal
    body_net: Decimal
    body_percentage: Decimal  # 0-100 of the lump-sum contract value

    total_gross: Decimal
    total_labor: Decimal
    labor_excluded: Decimal
    discount_base: Decimal
    discount: Decimal
    net_after_discount: Decimal
    total_net: Decimal

    entries: tuple[LedgerEntry, ...] = ()


def entries_until(ledger: Iterable[LedgerEntry], cutoff: date) -> list[LedgerEntry]:
    """Entries dated on or before ``cutoff`` (inclusive)."""
    return [entry for entry in ledger if entry.date <= cutoff]


def lump_sum_contract_value(documents: Iterable[ProjectDocument]) -> Decimal:
    """Total value of the discountable lump-sum groups across all documents."""
    return sum(
        (
            group.value
            for document in documents
            for group in document.work_groups
            if group.billing_model is BillingModel.LUMP_SUM and not group.is_security_cost
        ),
        ZERO,
    )


def compute_snapshot(
    ledger: Sequence[LedgerEntry],
    cutoff: date,
    contract: ContractConfig,
    documents: Iterable[ProjectDocument] = (),
) -> Snapshot:
    """Compute the financial breakdown of the ledger up to ``cutoff``."""
    relevant = entries_until(ledger, cutoff)

    security_entries = [e for e in relevant if e.is_security_cost]
    measure_entries = [
        e
        for e in relevant
        if e.billing_model is BillingModel.MEASURED and not e.is_security_cost
    ]
    body_entries = [
        e
        for e in relevant
        if e.billing_model is BillingModel.LUMP_SUM and not e.is_security_cost
    ]

    security = sum2(e.debit for e in security_entries)
    measure_gross = sum2(e.debit for e in measure_entries)
    body_gross = sum2(e.debit for e in body_entries)
    total_gross = round2(measure_gross + body_gross + security)

    measure_labor = sum2(e.labor_amount for e in measure_entries)
    body_labor = sum2(e.labor_amount for e in body_entries)
    total_labor = round2(measure_labor + body_labor)

    exclude_labor = contract.exclude_labor_from_discount
    labor_excluded = total_labor if exclude_labor else ZERO

    discount_base = round2(round2(measure_gross + body_gross) - labor_excluded)
    discount = percent_of(discount_base, contract.discount_percent)
    net_after_discount = round2(discount_base - discount)
    total_net = round2(net_after_discount + labor_excluded + security)

    measure_net = round2(measure_gross - (measure_labor if exclude_labor else ZERO))
    body_net = round2(body_gross - (body_labor if exclude_labor else ZERO))

    body_percentage = safe_ratio(body_gross, lump_sum_contract_value(documents)) * HUNDRED

    logger.debug(
        "snapshot_computed",
        cutoff=cutoff.isoformat(),
        entries=len(relevant),
        total_net=str(total_net),
    )

    return Snapshot(
        cutoff=cutoff,
        security=security,
        measure_gross=measure_gross,
        measure_labor=measure_labor,
        measure_net=measure_net,
        body_gross=body_gross,
        body_labor=body_labor,
        body_net=body_net,
        body_percentage=body_percentage,
        total_gross=total_gross,
        total_labor=total_labor,
        labor_excluded=labor_excluded,
        discount_base=discount_base,
        discount=discount,
        net_after_discount=net_after_discount,
        total_net=total_net,
        entries=tuple(relevant),
    )
