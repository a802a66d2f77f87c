"""Tabular exports of the accounting registers.

Builds pandas DataFrames from ledger entries, progress rows and the SAL
series, and writes them to CSV or to a multi-sheet Excel workbook.
"""

from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Iterable

import pandas as pd

from salcalc.ledger.aggregator import AggregatedRow, LibrettoRow
from salcalc.ledger.book import CheckpointValue
from salcalc.ledger.catalogue import ResidualRow
from salcalc.ledger.entries import LedgerEntry


def ledger_frame(entries: Iterable[LedgerEntry]) -> pd.DataFrame:
    """Registro di contabilità: one row per indexed entry."""
    return pd.DataFrame(
        [
            {
                "N.": e.progressive_index,
                "Date": e.date.isoformat(),
                "Document": e.document_name,
                "WBS": e.group_name,
                "Code": e.article_code,
                "Description": e.description,
                "Note": e.note,
                "Unit": e.unit,
                "Quantity": float(e.quantity),
                "Price": float(e.reference_price),
                "Debit": float(e.debit),
                "Progressive": float(e.running_total),
                "Labor": float(e.labor_amount),
                "Security": e.is_security_cost,
                "Billing": e.billing_model.value,
            }
            for e in entries
        ]
    )


def libretto_frame(rows: Iterable[LibrettoRow]) -> pd.DataFrame:
    """Libretto delle misure: entries with cumulative completion per code."""
    return pd.DataFrame(
        [
            {
                "N.": row.entry.progressive_index,
                "Date": row.entry.date.isoformat(),
                "Code": row.entry.article_code,
                "Description": row.entry.description,
                "Note": row.entry.note,
                "Factor": _optional(row.entry.factor),
                "Length": _optional(row.entry.length),
                "Width": _optional(row.entry.width),
                "Height": _optional(row.entry.height),
                "Quantity": float(row.entry.quantity),
                "Cumulative": float(row.cumulative_quantity),
                "Progress %": round(float(row.cumulative_percentage), 2),
            }
            for row in rows
        ]
    )


def summary_frame(rows: Iterable[AggregatedRow]) -> pd.DataFrame:
    """Sommario del registro: progress per article code."""
    return pd.DataFrame(
        [
            {
                "Code": row.article_code,
                "WBS": row.wbs_name,
                "Description": row.description,
                "Unit": row.unit,
                "Price": float(row.unit_price),
                "Estimated": float(row.estimated_quantity),
                "Quantity": float(row.total_quantity),
                "Amount": float(row.total_amount),
                "Progress %": round(float(row.progress_percent), 2),
                "Billing": row.billing_model.value,
            }
            for row in rows
        ]
    )


def checkpoint_frame(series: Iterable[CheckpointValue]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "SAL": value.checkpoint.number,
                "Date": value.checkpoint.date.isoformat(),
                "Description": value.checkpoint.description,
                "Locked": value.checkpoint.locked,
                "Cumulative Net": float(value.total_net),
                "Installment": float(value.installment_gross),
            }
            for value in series
        ]
    )


def residual_frame(rows: Iterable[ResidualRow]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "WBS": row.group_name,
                "Code": row.article_code,
                "Description": row.description,
                "Unit": row.unit,
                "Contract": float(row.contract_quantity),
                "Variations": float(row.variation_quantity),
                "Effective": float(row.effective_quantity),
                "Measured": float(row.measured_quantity),
                "Residual": float(row.residual_quantity),
            }
            for row in rows
        ]
    )


def export_csv(frame: pd.DataFrame, file_path: Path) -> Path:
    frame.to_csv(file_path, index=False)
    return file_path


def export_workbook(frames: dict[str, pd.DataFrame]) -> BytesIO:
    """Write each frame to its own sheet of an in-memory Excel workbook."""
    output = BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        for sheet_name, frame in frames.items():
            frame.to_excel(writer, sheet_name=sheet_name[:30], index=False)  # Excel sheet name limit
    output.seek(0)
    return output


def _optional(value):
    return float(value) if value is not None else None
