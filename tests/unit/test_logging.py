"""Unit tests for logging configuration."""

from __future__ import annotations

import json
import logging
from datetime import date

import pytest
import structlog

from salcalc.core.logging import configure_logging
from salcalc.ledger.checkpoints import CheckpointRegistry


@pytest.fixture(autouse=True)
def _restore_logging():
    yield
    structlog.reset_defaults()
    logging.basicConfig(handlers=[logging.NullHandler()], force=True)


def test_json_format_renders_events(capsys):
    configure_logging(level="INFO", log_format="json")

    structlog.get_logger("salcalc.test").info("sal_created", number=1)

    record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert record["event"] == "sal_created"
    assert record["number"] == 1
    assert record["level"] == "info"


def test_ledger_events_reach_configured_handlers(capsys):
    configure_logging(level="INFO", log_format="json")

    CheckpointRegistry().create(today=date(2024, 1, 31))

    assert "sal_created" in capsys.readouterr().err
