"""Project-level accounting queries.

Every query replays the ledger from the project's current records and takes
the SAL it reports on as an explicit argument (defaulting to the latest).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

import structlog

from salcalc.config import get_config
from salcalc.core.money import ZERO
from salcalc.ledger.certificate import CertificateResult, derive_certificate, derive_installment
from salcalc.ledger.checkpoints import CheckpointRegistry
from salcalc.ledger.entries import LedgerEntry
from salcalc.ledger.indexer import build_ledger
from salcalc.ledger.snapshot import Snapshot, compute_snapshot
from salcalc.models import Checkpoint, ContractConfig, Project

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CheckpointValue:
    checkpoint: Checkpoint
    total_net: Decimal
    installment_gross: Decimal


def project_contract(project: Project) -> ContractConfig:
    """The project's contract, or one built from the configured defaults."""
    if project.contract is not None:
        return project.contract
    return ContractConfig.from_defaults(get_config().contract)


def project_ledger(project: Project) -> list[LedgerEntry]:
    return build_ledger(project.documents)


def resolve_checkpoint(project: Project, checkpoint_id: str | None = None) -> Checkpoint | None:
    registry = CheckpointRegistry(project.checkpoints)
    if checkpoint_id is not None:
        return registry.get(checkpoint_id)
    return registry.latest()


def snapshot_at(
    project: Project,
    cutoff: date | None = None,
    checkpoint_id: str | None = None,
) -> Snapshot:
    """Snapshot at an explicit date, else at the given/latest SAL, else today."""
    if cutoff is None:
        checkpoint = resolve_checkpoint(project, checkpoint_id)
        cutoff = checkpoint.date if checkpoint else date.today()
    return compute_snapshot(
        project_ledger(project), cutoff, project_contract(project), project.documents
    )


def certificate_for(
    project: Project,
    checkpoint_id: str | None = None,
    today: date | None = None,
) -> CertificateResult:
    """Payment certificate for the given SAL (latest by default).

    Without any SAL a draft certificate is produced at ``today``.
    """
    contract = project_contract(project)
    ledger = project_ledger(project)
    registry = CheckpointRegistry(project.checkpoints)
    checkpoint = resolve_checkpoint(project, checkpoint_id)

    if checkpoint is None:
        cutoff = today or date.today()
        logger.info("draft_certificate", cutoff=cutoff.isoformat())
        current_net = compute_snapshot(ledger, cutoff, contract, project.documents).total_net
        return derive_installment(current_net, ZERO, contract, cutoff=cutoff)

    return derive_certificate(
        ledger,
        checkpoint,
        registry.predecessor(checkpoint.id),
        contract,
        project.documents,
    )


def checkpoint_series(project: Project) -> list[CheckpointValue]:
    """Cumulative net value and installment for every SAL, in number order."""
    registry = CheckpointRegistry(project.checkpoints)
    values = registry.cumulative_values(
        project_ledger(project), project_contract(project), project.documents
    )
    series = []
    previous = ZERO
    for checkpoint in registry.ordered():
        total_net = values[checkpoint.id]
        series.append(
            CheckpointValue(
                checkpoint=checkpoint,
                total_net=total_net,
                installment_gross=total_net - previous,
            )
        )
        previous = total_net
    return series
