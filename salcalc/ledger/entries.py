"""Ledger entry construction.

Replays the measurement records of every non-frozen document into a flat,
unindexed list of ``LedgerEntry``. Measured groups yield one entry per
measurement; lump-sum groups yield one entry per (group, date) carrying the
day's progress as a fraction of the group value.

The ledger is never stored: callers rebuild it from the current catalogue
whenever they need it, so the cost is O(measurements) per read.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable

import structlog

from salcalc.core.money import HUNDRED, ZERO, safe_ratio
from salcalc.models import BillingModel, ProjectDocument, WorkGroup

logger = structlog.get_logger(__name__)

LUMP_SUM_UNIT = "%"
LUMP_SUM_NOTE = "Avanzamento a corpo calcolato su percentuale"


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """One row of the accounting register.

    For lump-sum entries ``quantity`` is a fraction of ``reference_price``
    (the group value), not a physical quantity.
    """

    id: str
    date: date
    billing_model: BillingModel
    group_id: str
    group_name: str
    document_name: str
    article_code: str
    description: str
    note: str
    unit: str
    quantity: Decimal
    reference_price: Decimal
    debit: Decimal
    labor_amount: Decimal
    is_security_cost: bool
    progressive_index: int = 0
    running_total: Decimal = ZERO
    measurement_ids: tuple[str, ...] = ()
    factor: Decimal | None = None
    length: Decimal | None = None
    width: Decimal | None = None
    height: Decimal | None = None

    @property
    def is_lump_sum(self) -> bool:
        return self.billing_model is BillingModel.LUMP_SUM


@dataclass(slots=True)
class _DayBucket:
    debit: Decimal = ZERO
    labor: Decimal = ZERO
    measurement_ids: list[str] = field(default_factory=list)


def lump_sum_code(group: WorkGroup) -> str:
    return f"A.CORPO.{group.id[:5]}".upper()


def build_entries(documents: Iterable[ProjectDocument]) -> list[LedgerEntry]:
    """Build unindexed ledger entries from every non-frozen document."""
    entries: list[LedgerEntry] = []
    for document in documents:
        if document.is_frozen:
            logger.debug("frozen_document_skipped", document=document.file_name)
            continue
        for group in document.work_groups:
            entries.extend(build_group_entries(group, document.file_name))

    logger.debug("ledger_entries_built", count=len(entries))
    return entries


def build_group_entries(group: WorkGroup, document_name: str = "") -> list[LedgerEntry]:
    match group.billing_model:
        case BillingModel.MEASURED:
            return _measured_entries(group, document_name)
        case BillingModel.LUMP_SUM:
            return _lump_sum_entries(group, document_name)
        case _:
            raise ValueError(f"Unsupported billing model: {group.billing_model!r}")


def _measured_entries(group: WorkGroup, document_name: str) -> list[LedgerEntry]:
    entries = []
    for item in group.items:
        for m in item.measurements:
            debit = m.quantity * item.unit_price
            entries.append(
                LedgerEntry(
                    id=m.id,
                    date=m.date,
                    billing_model=BillingModel.MEASURED,
                    group_id=group.id,
                    group_name=group.name,
                    document_name=document_name,
                    article_code=item.article_code,
                    description=item.description,
                    note=m.note,
                    unit=item.unit,
                    quantity=m.quantity,
                    reference_price=item.unit_price,
                    debit=debit,
                    labor_amount=debit * item.labor_rate / HUNDRED,
                    is_security_cost=group.is_security_cost,
                    measurement_ids=(m.id,),
                    factor=m.factor,
                    length=m.length,
                    width=m.width,
                    height=m.height,
                )
            )
    return entries


def _lump_sum_entries(group: WorkGroup, document_name: str) -> list[LedgerEntry]:
    # dict keeps first-seen date order, which is the emission order
    buckets: dict[date, _DayBucket] = {}
    for item in group.items:
        for m in item.measurements:
            bucket = buckets.setdefault(m.date, _DayBucket())
            value = m.quantity * item.unit_price
            bucket.debit += value
            bucket.labor += value * item.labor_rate / HUNDRED
            bucket.measurement_ids.append(m.id)

    code = lump_sum_code(group)
    return [
        LedgerEntry(
            id=f"{group.id}-{day.isoformat()}",
            date=day,
            billing_model=BillingModel.LUMP_SUM,
            group_id=group.id,
            group_name=group.name,
            document_name=document_name,
            article_code=code,
            description=group.name,
            note=LUMP_SUM_NOTE,
            unit=LUMP_SUM_UNIT,
            quantity=safe_ratio(bucket.debit, group.value),
            reference_price=group.value,
            debit=bucket.debit,
            labor_amount=bucket.labor,
            is_security_cost=group.is_security_cost,
            measurement_ids=tuple(bucket.measurement_ids),
        )
        for day, bucket in buckets.items()
    ]
