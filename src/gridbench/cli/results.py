# Copyright (c) Syntropy Systems
"""gridbench results command."""
from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from gridbench.cli.common import format_duration, load_project, open_ledger
from gridbench.errors import LedgerError
from gridbench.models.grid import Dataset

console = Console()


def results(
    dataset: Optional[str] = typer.Option(
        None,
        "--dataset", "-d",
        help="Only show rows for this dataset",
    ),
) -> None:
    """List recorded benchmark results."""
    project_dir, config = load_project()
    ledger = open_ledger(project_dir, config)

    wanted: Dataset | None = None
    if dataset is not None:
        try:
            wanted = Dataset(dataset)
        except ValueError as e:
            console.print(f"[red]Unknown dataset:[/red] {dataset}")
            raise typer.Exit(1) from e

    try:
        records = ledger.read_records()
    except LedgerError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    if wanted is not None:
        records = [r for r in records if r.dataset is wanted]

    if not records:
        console.print("[dim]No results recorded[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Dataset")
    table.add_column("Algo")
    table.add_column("Block KB", justify="right")
    table.add_column("Docs", justify="right")
    table.add_column("Splits", justify="right")
    table.add_column("Size MB", justify="right")
    table.add_column("Store B", justify="right")
    table.add_column("Runtime", justify="right")

    for record in records:
        table.add_row(
            record.dataset.value,
            record.algorithm.value,
            str(record.block_size_kb),
            str(record.num_docs),
            str(record.num_splits),
            str(record.total_size),
            str(record.store_size),
            format_duration(record.runtime_seconds),
        )

    console.print(table)
    console.print(f"\n[dim]{len(records)} row(s) in {ledger.path}[/dim]")
