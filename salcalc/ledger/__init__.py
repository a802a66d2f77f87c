"""Works accounting ledger: entries, snapshots, SAL checkpoints, certificates."""

from salcalc.ledger.aggregator import (
    AggregatedRow,
    LibrettoRow,
    aggregate_by_code,
    libretto_progress,
)
from salcalc.ledger.certificate import (
    CertificateResult,
    derive_certificate,
    derive_installment,
)
from salcalc.ledger.checkpoints import CheckpointRegistry, CheckpointSequenceError
from salcalc.ledger.entries import LedgerEntry, build_entries
from salcalc.ledger.indexer import build_ledger, index_entries, progressive_index_map
from salcalc.ledger.snapshot import Snapshot, compute_snapshot

__all__ = [
    "AggregatedRow",
    "CertificateResult",
    "CheckpointRegistry",
    "CheckpointSequenceError",
    "LedgerEntry",
    "LibrettoRow",
    "Snapshot",
    "aggregate_by_code",
    "build_entries",
    "build_ledger",
    "compute_snapshot",
    "derive_certificate",
    "derive_installment",
    "index_entries",
    "libretto_progress",
    "progressive_index_map",
]
