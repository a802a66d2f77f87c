"""Contract quantities after variations, and what is left to measure.

Display-only figures for operators; the ledger never reads them.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from salcalc.core.money import ZERO, round2
from salcalc.models import ProjectDocument, WorkGroup, WorkItem


@dataclass(frozen=True, slots=True)
class ResidualRow:
    group_name: str
    article_code: str
    description: str
    unit: str
    contract_quantity: Decimal
    variation_quantity: Decimal
    effective_quantity: Decimal
    measured_quantity: Decimal
    residual_quantity: Decimal


def variation_quantity(item: WorkItem) -> Decimal:
    return sum((v.signed_quantity for v in item.variations), ZERO)


def effective_quantity(item: WorkItem) -> Decimal:
    """Contract quantity adjusted by every increase/decrease variation."""
    return item.quantity + variation_quantity(item)


def measured_quantity(item: WorkItem) -> Decimal:
    """Net measured quantity; reversals subtract."""
    return sum((m.quantity for m in item.measurements), ZERO)


def residual_quantity(item: WorkItem) -> Decimal:
    return effective_quantity(item) - measured_quantity(item)


def effective_value(group: WorkGroup) -> Decimal:
    return round2(
        sum((effective_quantity(item) * item.unit_price for item in group.items), ZERO)
    )


def residual_rows(documents: Iterable[ProjectDocument]) -> list[ResidualRow]:
    rows = []
    for document in documents:
        if document.is_frozen:
            continue
        for group in document.work_groups:
            for item in group.items:
                rows.append(
                    ResidualRow(
                        group_name=group.name,
                        article_code=item.article_code,
                        description=item.description,
                        unit=item.unit,
                        contract_quantity=item.quantity,
                        variation_quantity=variation_quantity(item),
                        effective_quantity=effective_quantity(item),
                        measured_quantity=measured_quantity(item),
                        residual_quantity=residual_quantity(item),
                    )
                )
    return rows
