# Copyright (c) Syntropy Systems
"""Export command - export the ledger to CSV/JSON."""
from __future__ import annotations

import csv
from pathlib import Path

import typer
from pydantic import TypeAdapter
from rich.console import Console

from gridbench.cli.common import load_project, open_ledger
from gridbench.errors import LedgerError
from gridbench.models.grid import RunRecord

console = Console()
_EXPORT_ADAPTER = TypeAdapter(list[RunRecord])

CSV_FIELDS = [
    "dataset",
    "total_size",
    "num_docs",
    "num_splits",
    "algorithm",
    "block_size_kb",
    "store_size",
    "runtime_seconds",
]


def export(
    output: Path = typer.Argument(..., help="Output file path (.csv or .json)"),
) -> None:
    """Export recorded results to CSV (with header) or JSON.

    Examples:
        gridbench export results.csv
        gridbench export results.json

    """
    suffix = output.suffix.lower()
    if suffix not in [".csv", ".json"]:
        console.print("[red]Output must be .csv or .json[/red]")
        raise typer.Exit(1)

    project_dir, config = load_project()
    ledger = open_ledger(project_dir, config)

    try:
        records = ledger.read_records()
    except LedgerError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    if not records:
        console.print("[yellow]No results to export[/yellow]")
        raise typer.Exit(0)

    if suffix == ".json":
        _ = output.write_bytes(_EXPORT_ADAPTER.dump_json(records, indent=2))
    else:
        with output.open("w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
            writer.writeheader()
            for record in records:
                writer.writerow(record.model_dump(mode="json"))

    console.print(f"[green]Exported {len(records)} row(s) to {output}[/green]")
