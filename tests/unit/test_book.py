"""Unit tests for project-level accounting queries."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from salcalc.ledger.book import (
    certificate_for,
    checkpoint_series,
    project_contract,
    resolve_checkpoint,
    snapshot_at,
)
from salcalc.models import Project


class TestSnapshotAt:
    def test_defaults_to_latest_checkpoint(self, mixed_project):
        snap = snapshot_at(mixed_project)
        assert snap.cutoff == date(2024, 2, 1)
        assert snap.total_net == Decimal("1750.00")

    def test_explicit_checkpoint(self, mixed_project):
        assert snapshot_at(mixed_project, checkpoint_id="sal-1").total_net == Decimal("518.00")

    def test_explicit_date_wins(self, mixed_project):
        snap = snapshot_at(mixed_project, cutoff=date(2024, 1, 1), checkpoint_id="sal-2")
        assert snap.cutoff == date(2024, 1, 1)

    def test_reflects_current_records(self, mixed_project, measured_item):
        before = snapshot_at(mixed_project, checkpoint_id="sal-1").total_net
        measured_item.unit_price = Decimal("200")
        after = snapshot_at(mixed_project, checkpoint_id="sal-1").total_net
        assert after != before


class TestCertificateFor:
    def test_latest_by_default(self, mixed_project):
        cert = certificate_for(mixed_project)
        assert cert.checkpoint_number == 2
        assert cert.payable == Decimal("1194.92")

    def test_first_checkpoint_has_no_predecessor(self, mixed_project):
        cert = certificate_for(mixed_project, checkpoint_id="sal-1")
        assert cert.previous_net == Decimal("0")
        assert cert.installment_gross == Decimal("518.00")

    def test_draft_without_checkpoints(self, measured_project):
        cert = certificate_for(measured_project, today=date(2024, 1, 5))

        assert cert.checkpoint_number is None
        assert cert.cutoff == date(2024, 1, 5)
        assert cert.payable == Decimal("892.31")

    def test_unknown_checkpoint(self, mixed_project):
        with pytest.raises(KeyError):
            certificate_for(mixed_project, checkpoint_id="nope")


def test_checkpoint_series(mixed_project):
    series = checkpoint_series(mixed_project)

    assert [v.checkpoint.number for v in series] == [1, 2]
    assert [v.total_net for v in series] == [Decimal("518.00"), Decimal("1750.00")]
    assert [v.installment_gross for v in series] == [Decimal("518.00"), Decimal("1232.00")]


def test_project_contract_falls_back_to_config_defaults(monkeypatch):
    monkeypatch.setenv("DEFAULT_VAT_PERCENT", "10")
    contract = project_contract(Project(name="Senza contratto"))
    assert contract.vat_percent == Decimal("10")


def test_resolve_checkpoint_without_any():
    assert resolve_checkpoint(Project()) is None
