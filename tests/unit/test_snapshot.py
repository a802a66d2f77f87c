"""Unit tests for point-in-time snapshots."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from salcalc.core.money import round2
from salcalc.ledger.indexer import build_ledger
from salcalc.ledger.snapshot import compute_snapshot, entries_until, lump_sum_contract_value
from salcalc.models import ContractConfig, Measurement, ProjectDocument


class TestMeasuredScenario:
    """Quantity 10 @ 100, labor 20%, measured 4 + 6, labor excluded, 10% discount."""

    def test_breakdown(self, measured_project):
        ledger = build_ledger(measured_project.documents)

        snap = compute_snapshot(
            ledger, date(2024, 1, 5), measured_project.contract, measured_project.documents
        )

        assert snap.measure_gross == Decimal("1000.00")
        assert snap.measure_labor == Decimal("200.00")
        assert snap.labor_excluded == Decimal("200.00")
        assert snap.discount_base == Decimal("800.00")
        assert snap.discount == Decimal("80.00")
        assert snap.net_after_discount == Decimal("720.00")
        assert snap.total_net == Decimal("920.00")
        assert snap.measure_net == Decimal("800.00")
        assert snap.security == Decimal("0.00")

    def test_cutoff_is_inclusive(self, measured_project):
        ledger = build_ledger(measured_project.documents)

        snap = compute_snapshot(ledger, date(2024, 1, 1), measured_project.contract)

        assert snap.measure_gross == Decimal("400.00")
        assert [e.id for e in snap.entries] == ["m-1"]

    def test_before_first_measurement_is_empty(self, measured_project):
        ledger = build_ledger(measured_project.documents)

        snap = compute_snapshot(ledger, date(2023, 12, 31), measured_project.contract)

        assert snap.total_net == Decimal("0.00")
        assert snap.entries == ()

    def test_labor_not_excluded(self, measured_project):
        ledger = build_ledger(measured_project.documents)
        contract = ContractConfig(discount_percent=Decimal("10"))

        snap = compute_snapshot(ledger, date(2024, 1, 5), contract)

        assert snap.labor_excluded == Decimal("0")
        assert snap.discount_base == Decimal("1000.00")
        assert snap.discount == Decimal("100.00")
        assert snap.total_net == Decimal("900.00")


class TestMixedProject:
    def test_security_is_never_discounted(self, mixed_project):
        ledger = build_ledger(mixed_project.documents)

        snap = compute_snapshot(
            ledger, date(2024, 1, 3), mixed_project.contract, mixed_project.documents
        )

        assert snap.security == Decimal("150.00")
        assert snap.measure_gross == Decimal("400.00")
        assert snap.discount_base == Decimal("320.00")
        assert snap.discount == Decimal("32.00")
        assert snap.total_net == Decimal("518.00")

    def test_full_breakdown(self, mixed_project):
        ledger = build_ledger(mixed_project.documents)

        snap = compute_snapshot(
            ledger, date(2024, 2, 1), mixed_project.contract, mixed_project.documents
        )

        assert snap.body_gross == Decimal("750.00")
        assert snap.body_labor == Decimal("50.00")
        assert snap.body_net == Decimal("700.00")
        assert snap.body_percentage == Decimal("15")
        assert snap.total_gross == Decimal("1900.00")
        assert snap.total_labor == Decimal("250.00")
        assert snap.discount_base == Decimal("1500.00")
        assert snap.net_after_discount == Decimal("1350.00")
        assert snap.total_net == Decimal("1750.00")

    def test_idempotent_and_independent(self, mixed_project):
        ledger = build_ledger(mixed_project.documents)
        contract = mixed_project.contract
        documents = mixed_project.documents

        first = compute_snapshot(ledger, date(2024, 2, 1), contract, documents)
        compute_snapshot(ledger, date(2024, 1, 3), contract, documents)
        second = compute_snapshot(ledger, date(2024, 2, 1), contract, documents)

        assert first == second

    def test_conservation_over_full_ledger(self, mixed_project):
        ledger = build_ledger(mixed_project.documents)
        contract = mixed_project.contract
        last = max(e.date for e in ledger)

        snap = compute_snapshot(ledger, last, contract, mixed_project.documents)

        works = round2(sum(e.debit for e in ledger if not e.is_security_cost))
        labor = round2(sum(e.labor_amount for e in ledger if not e.is_security_cost))
        security = round2(sum(e.debit for e in ledger if e.is_security_cost))
        base = round2(works - labor)
        net = round2(base - round2(base * contract.discount_percent / 100))
        assert snap.total_net == round2(net + labor + security)


class TestRounding:
    def test_each_step_is_quantised(self, measured_item, measured_project):
        measured_item.unit_price = Decimal("33.333")
        ledger = build_ledger(measured_project.documents)

        snap = compute_snapshot(ledger, date(2024, 1, 5), measured_project.contract)

        assert snap.measure_gross == Decimal("333.33")
        assert snap.measure_labor == Decimal("66.67")
        assert snap.discount_base == Decimal("266.66")
        assert snap.discount == Decimal("26.67")
        assert snap.net_after_discount == Decimal("239.99")
        assert snap.total_net == Decimal("306.66")


class TestReversal:
    @pytest.mark.parametrize("reversal_day", [date(2024, 1, 2), date(2024, 1, 5)])
    def test_measurement_and_storno_cancel_out(
        self, measured_item, measured_project, reversal_day
    ):
        ledger = build_ledger(measured_project.documents)
        contract = measured_project.contract
        baseline = compute_snapshot(ledger, date(2024, 1, 31), contract)

        measured_item.measurements.extend(
            [
                Measurement(date=date(2024, 1, 2), quantity=Decimal("3.7")),
                Measurement(date=reversal_day, quantity=Decimal("-3.7"), note="Storno"),
            ]
        )
        with_storno = compute_snapshot(build_ledger(measured_project.documents), date(2024, 1, 31), contract)

        assert len(with_storno.entries) == len(baseline.entries) + 2
        assert with_storno.total_net == baseline.total_net
        assert with_storno.measure_gross == baseline.measure_gross
        assert with_storno.discount == baseline.discount


def test_entries_until(mixed_project):
    ledger = build_ledger(mixed_project.documents)
    assert [e.id for e in entries_until(ledger, date(2024, 1, 4))] == ["m-1", "s-1"]


def test_lump_sum_contract_value_skips_security_and_measured(
    lump_sum_group, measured_group, security_group
):
    security_group.billing_model = lump_sum_group.billing_model
    documents = [
        ProjectDocument(
            file_name="x", work_groups=[lump_sum_group, measured_group, security_group]
        )
    ]
    assert lump_sum_contract_value(documents) == Decimal("5000")


def test_body_percentage_without_lump_sum_value(measured_project):
    ledger = build_ledger(measured_project.documents)
    snap = compute_snapshot(ledger, date(2024, 1, 5), measured_project.contract, [])
    assert snap.body_percentage == Decimal("0")
