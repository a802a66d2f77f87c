"""SALCalc CLI.

Commands:
- ledger: Show the indexed accounting register (registro di contabilità)
- snapshot: Technical SAL summary at a date or SAL
- certificate: Payment certificate for a SAL
- summary: Progress per article code (sommario del registro)
- residuals: Contract vs measured quantities per catalogue line
- export: Write registers to CSV or an Excel workbook
- sal list/add/delete/set-date/lock: Manage SAL checkpoints
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from salcalc.config import get_config
from salcalc.core.logging import configure_logging
from salcalc.ingestion.project_file import ProjectFile, open_project_file
from salcalc.ledger.aggregator import aggregate_by_code, libretto_progress
from salcalc.ledger.book import (
    certificate_for,
    checkpoint_series,
    project_ledger,
    snapshot_at,
)
from salcalc.ledger.catalogue import residual_rows
from salcalc.ledger.checkpoints import CheckpointRegistry, CheckpointSequenceError
from salcalc.ledger.snapshot import entries_until
from salcalc.models import Project
from salcalc.reporting.export import (
    checkpoint_frame,
    export_csv,
    export_workbook,
    ledger_frame,
    libretto_frame,
    residual_frame,
    summary_frame,
)

app = typer.Typer(
    name="salcalc",
    help="SALCalc - Works accounting ledger and SAL payment certificates",
    no_args_is_help=True,
)
sal_cli = typer.Typer(help="SAL checkpoint management")
app.add_typer(sal_cli, name="sal")

console = Console()

ProjectArg = typer.Argument(..., help="Project file (JSON/YAML)")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    config = get_config()
    configure_logging(
        level="DEBUG" if verbose else config.log_level, log_format=config.log_format
    )


def _money(value: Decimal) -> str:
    return f"{value:,.2f} {get_config().currency}"


def _date(value: date) -> str:
    return value.strftime(get_config().date_format)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise typer.BadParameter(f"Expected a YYYY-MM-DD date, got {value!r}") from exc


def _open(project_file: Path) -> ProjectFile:
    try:
        return open_project_file(project_file)
    except (FileNotFoundError, ValueError, ValidationError, yaml.YAMLError) as e:
        console.print(f"[bold red]✗ Cannot load project:[/bold red] {e}")
        raise typer.Exit(code=1)


def _checkpoint_id(project: Project, sal_number: int | None) -> str | None:
    if sal_number is None:
        return None
    try:
        return CheckpointRegistry(project.checkpoints).get_by_number(sal_number).id
    except KeyError:
        console.print(f"[bold red]✗ SAL N. {sal_number} does not exist[/bold red]")
        raise typer.Exit(code=1)


@app.command()
def ledger(
    project_file: Path = ProjectArg,
    until: str | None = typer.Option(None, "--date", help="Cut-off date (YYYY-MM-DD)"),
):
    """Show the indexed accounting register."""
    project = _open(project_file).project
    entries = project_ledger(project)
    if until:
        entries = entries_until(entries, _parse_date(until))

    if not entries:
        console.print("[yellow]No measurements recorded[/yellow]")
        return

    table = Table(title=f"Registro di contabilità - {project.name}")
    table.add_column("N.", justify="right")
    table.add_column("Date")
    table.add_column("Code", style="cyan")
    table.add_column("Description")
    table.add_column("Quantity", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Debit", justify="right", style="green")
    table.add_column("Progressive", justify="right")

    for entry in entries:
        quantity = (
            f"{entry.quantity * 100:.3f}%" if entry.is_lump_sum else f"{entry.quantity:,.2f} {entry.unit}"
        )
        table.add_row(
            str(entry.progressive_index),
            _date(entry.date),
            entry.article_code,
            entry.description,
            quantity,
            _money(entry.reference_price),
            _money(entry.debit),
            _money(entry.running_total),
        )

    console.print(table)


@app.command()
def snapshot(
    project_file: Path = ProjectArg,
    at: str | None = typer.Option(None, "--date", help="Cut-off date (YYYY-MM-DD)"),
    sal_number: int | None = typer.Option(None, "--sal", help="SAL number (default: latest)"),
):
    """Technical SAL summary (riepilogo tecnico contabile)."""
    project = _open(project_file).project
    cutoff = _parse_date(at) if at else None
    snap = snapshot_at(project, cutoff=cutoff, checkpoint_id=_checkpoint_id(project, sal_number))

    table = Table(title=f"Riepilogo al {_date(snap.cutoff)}")
    table.add_column("Voce", style="cyan")
    table.add_column("Importo", justify="right", style="green")

    table.add_row("Lavori a misura", _money(snap.measure_gross))
    table.add_row("  di cui manodopera", _money(snap.measure_labor))
    table.add_row("Lavori a corpo", _money(snap.body_gross))
    table.add_row("  di cui manodopera", _money(snap.body_labor))
    table.add_row("  avanzamento a corpo", f"{snap.body_percentage:.2f}%")
    table.add_row("Oneri sicurezza", _money(snap.security))
    table.add_row("Totale lordo", _money(snap.total_gross))
    table.add_row("Manodopera scorporata", _money(snap.labor_excluded))
    table.add_row("Base soggetta a ribasso", _money(snap.discount_base))
    table.add_row("Ribasso", f"-{_money(snap.discount)}")
    table.add_row("Netto dopo ribasso", _money(snap.net_after_discount))
    table.add_row("[bold]Totale netto[/bold]", f"[bold]{_money(snap.total_net)}[/bold]")

    console.print(table)


@app.command()
def certificate(
    project_file: Path = ProjectArg,
    sal_number: int | None = typer.Option(None, "--sal", help="SAL number (default: latest)"),
):
    """Payment certificate (certificato di pagamento)."""
    project = _open(project_file).project
    cert = certificate_for(project, checkpoint_id=_checkpoint_id(project, sal_number))

    title = (
        f"Rata di acconto N. {cert.checkpoint_number}"
        if cert.checkpoint_number is not None
        else "Rata di acconto (bozza)"
    )
    table = Table(title=f"{title} al {_date(cert.cutoff)}")
    table.add_column("Voce", style="cyan")
    table.add_column("Importo", justify="right", style="green")

    table.add_row("Lavori a tutto il SAL", _money(cert.current_net))
    table.add_row("A dedurre SAL precedenti", _money(cert.previous_net))
    table.add_row("Importo rata", _money(cert.installment_gross))
    table.add_row("Ritenuta di garanzia", f"-{_money(cert.retention)}")
    table.add_row("Recupero anticipazione", f"-{_money(cert.advance_recovery)}")
    table.add_row("Imponibile", _money(cert.taxable))
    table.add_row("IVA", _money(cert.vat))
    table.add_row("[bold]Totale da pagare[/bold]", f"[bold]{_money(cert.payable)}[/bold]")

    console.print(table)
    if cert.installment_gross < 0:
        console.print("[yellow]⚠ Negative installment: prior SAL over-stated works[/yellow]")


@app.command()
def summary(
    project_file: Path = ProjectArg,
    at: str | None = typer.Option(None, "--date", help="Cut-off date (YYYY-MM-DD)"),
    sal_number: int | None = typer.Option(None, "--sal", help="SAL number (default: latest)"),
):
    """Progress per article code."""
    project = _open(project_file).project
    cutoff = _parse_date(at) if at else None
    snap = snapshot_at(project, cutoff=cutoff, checkpoint_id=_checkpoint_id(project, sal_number))
    rows = aggregate_by_code(snap.entries, project.documents)

    table = Table(title=f"Sommario al {_date(snap.cutoff)}")
    table.add_column("Code", style="cyan")
    table.add_column("Description")
    table.add_column("Estimated", justify="right")
    table.add_column("Quantity", justify="right")
    table.add_column("Amount", justify="right", style="green")
    table.add_column("Progress", justify="right")

    for row in rows:
        table.add_row(
            row.article_code,
            row.description,
            f"{row.estimated_quantity:,.2f}",
            f"{row.total_quantity:,.3f}",
            _money(row.total_amount),
            f"{row.progress_percent:.2f}%",
        )

    console.print(table)


@app.command()
def residuals(project_file: Path = ProjectArg):
    """Contract, variation, measured and residual quantities."""
    project = _open(project_file).project

    table = Table(title="Quantità residue")
    table.add_column("Code", style="cyan")
    table.add_column("Description")
    table.add_column("Contract", justify="right")
    table.add_column("Variations", justify="right")
    table.add_column("Measured", justify="right")
    table.add_column("Residual", justify="right", style="green")

    for row in residual_rows(project.documents):
        residual_style = "red" if row.residual_quantity < 0 else "green"
        table.add_row(
            row.article_code,
            row.description,
            f"{row.contract_quantity:,.2f}",
            f"{row.variation_quantity:+,.2f}",
            f"{row.measured_quantity:,.2f}",
            f"[{residual_style}]{row.residual_quantity:,.2f}[/{residual_style}]",
        )

    console.print(table)


@app.command()
def export(
    project_file: Path = ProjectArg,
    output: Path = typer.Option(..., "--out", "-o", help="Output file (.csv or .xlsx)"),
    what: str = typer.Option(
        "ledger", "--what", help="CSV only: ledger, libretto, summary, sals or residuals"
    ),
    sal_number: int | None = typer.Option(None, "--sal", help="SAL number (default: latest)"),
):
    """Export registers to CSV or to an Excel workbook."""
    project = _open(project_file).project
    snap = snapshot_at(project, checkpoint_id=_checkpoint_id(project, sal_number))

    frames = {
        "ledger": ledger_frame(snap.entries),
        "libretto": libretto_frame(libretto_progress(snap.entries, project.documents)),
        "summary": summary_frame(aggregate_by_code(snap.entries, project.documents)),
        "sals": checkpoint_frame(checkpoint_series(project)),
        "residuals": residual_frame(residual_rows(project.documents)),
    }

    if output.suffix.lower() == ".xlsx":
        output.write_bytes(export_workbook(frames).getvalue())
    else:
        if what not in frames:
            raise typer.BadParameter(f"Unknown export {what!r}; choose from {', '.join(frames)}")
        export_csv(frames[what], output)

    console.print(f"[green]✓[/green] Exported to: {output}")


@sal_cli.command("list")
def sal_list(project_file: Path = ProjectArg):
    """List SAL checkpoints with their cumulative net value."""
    project = _open(project_file).project
    series = checkpoint_series(project)
    if not series:
        console.print("[yellow]No SAL defined[/yellow]")
        return

    table = Table(title="SAL")
    table.add_column("N.", justify="right")
    table.add_column("Date")
    table.add_column("Description")
    table.add_column("Locked")
    table.add_column("Cumulative net", justify="right", style="green")
    table.add_column("Installment", justify="right")

    for value in series:
        table.add_row(
            str(value.checkpoint.number),
            _date(value.checkpoint.date),
            value.checkpoint.description or "",
            "🔒" if value.checkpoint.locked else "",
            _money(value.total_net),
            _money(value.installment_gross),
        )

    console.print(table)


def _mutate_sal(project_file: Path, action) -> None:
    loaded = _open(project_file)
    registry = CheckpointRegistry(loaded.project.checkpoints)
    try:
        message = action(registry)
    except (CheckpointSequenceError, KeyError) as e:
        console.print(f"[bold red]✗ Refused:[/bold red] {e}")
        raise typer.Exit(code=1)
    loaded.replace_checkpoints(registry.ordered())
    loaded.save()
    console.print(f"[bold green]✓[/bold green] {message}")


@sal_cli.command("add")
def sal_add(
    project_file: Path = ProjectArg,
    at: str | None = typer.Option(None, "--date", help="Cut-off date (default: today)"),
):
    """Append the next SAL."""
    cutoff = _parse_date(at) if at else None

    def _add(registry: CheckpointRegistry) -> str:
        checkpoint = registry.create(today=cutoff)
        return f"Created {checkpoint.description}"

    _mutate_sal(project_file, _add)


@sal_cli.command("delete")
def sal_delete(
    project_file: Path = ProjectArg,
    number: int = typer.Argument(..., help="SAL number (must be the last one)"),
):
    """Delete the last SAL."""

    def _delete(registry: CheckpointRegistry) -> str:
        checkpoint = registry.delete(registry.get_by_number(number).id)
        return f"Deleted SAL N. {checkpoint.number}"

    _mutate_sal(project_file, _delete)


@sal_cli.command("set-date")
def sal_set_date(
    project_file: Path = ProjectArg,
    number: int = typer.Argument(..., help="SAL number"),
    new_date: str = typer.Argument(..., help="New cut-off date (YYYY-MM-DD)"),
):
    """Change the cut-off date of an unlocked SAL."""
    cutoff = _parse_date(new_date)

    def _set_date(registry: CheckpointRegistry) -> str:
        checkpoint = registry.set_date(registry.get_by_number(number).id, cutoff)
        return f"Updated {checkpoint.description}"

    _mutate_sal(project_file, _set_date)


@sal_cli.command("lock")
def sal_lock(
    project_file: Path = ProjectArg,
    number: int = typer.Argument(..., help="SAL number"),
):
    """Toggle the lock on a SAL."""

    def _lock(registry: CheckpointRegistry) -> str:
        checkpoint = registry.toggle_lock(registry.get_by_number(number).id)
        state = "locked" if checkpoint.locked else "unlocked"
        return f"SAL N. {checkpoint.number} {state}"

    _mutate_sal(project_file, _lock)


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
