"""Payment certificate (certificato di pagamento) for a SAL.

The installment is the difference between the net cumulative value at the
SAL and at its predecessor; retention, advance recovery and VAT are then
applied to that difference. Nothing here raises: missing inputs are 0 and a
negative installment (a corrected over-statement) is reported as is.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Sequence

from salcalc.core.money import ZERO, percent_of, round2
from salcalc.ledger.entries import LedgerEntry
from salcalc.ledger.snapshot import compute_snapshot
from salcalc.models import Checkpoint, ContractConfig, ProjectDocument


@dataclass(frozen=True, slots=True)
class CertificateResult:
    checkpoint_number: int | None
    cutoff: date
    current_net: Decimal
    previous_net: Decimal
    installment_gross: Decimal  # Rata di acconto
    retention: Decimal  # Ritenuta di garanzia
    advance_recovery: Decimal  # Recupero anticipazione
    taxable: Decimal
    vat: Decimal
    payable: Decimal


def derive_installment(
    current_net: Decimal,
    previous_net: Decimal,
    contract: ContractConfig,
    cutoff: date,
    checkpoint_number: int | None = None,
) -> CertificateResult:
    installment = round2(current_net - previous_net)
    retention = percent_of(installment, contract.withholding_tax_percent)
    advance_recovery = percent_of(installment, contract.advance_payment_percent)
    taxable = round2(installment - retention - advance_recovery)
    vat = percent_of(taxable, contract.vat_percent)
    payable = round2(taxable + vat)

    return CertificateResult(
        checkpoint_number=checkpoint_number,
        cutoff=cutoff,
        current_net=current_net,
        previous_net=previous_net,
        installment_gross=installment,
        retention=retention,
        advance_recovery=advance_recovery,
        taxable=taxable,
        vat=vat,
        payable=payable,
    )


def derive_certificate(
    ledger: Sequence[LedgerEntry],
    checkpoint: Checkpoint,
    predecessor: Checkpoint | None,
    contract: ContractConfig,
    documents: Iterable[ProjectDocument] = (),
) -> CertificateResult:
    """Certificate for ``checkpoint`` given its immediate numeric predecessor."""
    documents = list(documents)
    current_net = compute_snapshot(ledger, checkpoint.date, contract, documents).total_net
    previous_net = ZERO
    if predecessor is not None:
        previous_net = compute_snapshot(
            ledger, predecessor.date, contract, documents
        ).total_net

    return derive_installment(
        current_net,
        previous_net,
        contract,
        cutoff=checkpoint.date,
        checkpoint_number=checkpoint.number,
    )
