"""Reporting module for SALCalc.

Tabular exports of the registers, progress summary and SAL series.
"""

from salcalc.reporting.export import (
    checkpoint_frame,
    export_csv,
    export_workbook,
    ledger_frame,
    libretto_frame,
    residual_frame,
    summary_frame,
)

__all__ = [
    "checkpoint_frame",
    "export_csv",
    "export_workbook",
    "ledger_frame",
    "libretto_frame",
    "residual_frame",
    "summary_frame",
]
