# Copyright (c) Syntropy Systems
"""gridbench plan and sweep commands."""
from __future__ import annotations

from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.table import Table

from gridbench.cli.common import format_duration, load_project, open_ledger
from gridbench.config import get_cache_dir, get_schema_dir
from gridbench.datasets import DatasetProvisioner
from gridbench.driver import SweepDriver
from gridbench.errors import LedgerError
from gridbench.service import IndexLifecycle, QuickwitCli

if TYPE_CHECKING:
    from gridbench.errors import CleanupError, GridBenchError
    from gridbench.models.grid import GridPoint, RunRecord

console = Console()


def plan() -> None:
    """Preview the sweep grid and which points are already recorded."""
    project_dir, config = load_project()
    ledger = open_ledger(project_dir, config)

    try:
        done = ledger.completed_points()
    except LedgerError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    table = Table(title="Sweep plan")
    table.add_column("#", style="dim")
    table.add_column("Index ID")
    table.add_column("Block (KB)", justify="right")
    table.add_column("Status")

    pending = 0
    for i, point in enumerate(config.plan):
        if point in done:
            status = "[green]done[/green]"
        else:
            status = "[yellow]pending[/yellow]"
            pending += 1
        table.add_row(
            str(i),
            point.index_id,
            str(point.block_size_kb),
            status,
        )

    console.print(table)
    console.print(
        f"\n[bold]{len(config.plan)} points[/bold], {pending} pending"
    )


def sweep() -> None:
    """Run every pending grid point against quickwit.

    Points already in the ledger are skipped, so an interrupted sweep picks up
    where it stopped. A failing point is reported and retried on the next run.
    A point recorded before its index delete failed is not retried; its index
    has to be deleted by hand.
    """
    project_dir, config = load_project()
    ledger = open_ledger(project_dir, config)
    service = QuickwitCli(
        binary=config.quickwit_binary,
        config_uri=config.quickwit_config,
        timeout=config.command_timeout,
    )

    def on_skip(point: GridPoint) -> None:
        console.print(f"[dim]Skipping {point.index_id}[/dim]")

    def on_start(point: GridPoint) -> None:
        console.print(f"[bold]{point.index_id}[/bold]")

    def on_complete(record: RunRecord) -> None:
        console.print(
            f"  [green]✓[/green] {record.num_docs} docs, "
            f"{record.num_splits} split(s), store {record.store_size} bytes, "
            f"{format_duration(record.runtime_seconds)}"
        )

    def on_failure(point: GridPoint, error: GridBenchError) -> None:
        console.print(
            f"  [red]✗[/red] {point.index_id} [red]{error.kind} error:[/red] "
            f"{error}"
        )

    def on_cleanup_failure(error: CleanupError) -> None:
        console.print(
            f"  [yellow]![/yellow] {error} "
            "[yellow](delete the index by hand)[/yellow]"
        )

    with DatasetProvisioner(get_cache_dir(project_dir, config)) as provisioner:
        driver = SweepDriver(
            plan=config.plan,
            ledger=ledger,
            provisioner=provisioner,
            lifecycle=IndexLifecycle(service),
            schema_dir=get_schema_dir(project_dir, config),
            on_skip=on_skip,
            on_start=on_start,
            on_complete=on_complete,
            on_failure=on_failure,
            on_cleanup_failure=on_cleanup_failure,
        )
        try:
            report = driver.run()
        except LedgerError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from e

    console.print()
    console.print(
        f"[green]{len(report.completed)} completed[/green], "
        f"[dim]{len(report.skipped)} skipped[/dim], "
        f"[red]{len(report.failed)} failed[/red]"
    )
    if report.uncleaned:
        console.print(
            f"[yellow]{len(report.uncleaned)} index(es) left on the service[/yellow]"
        )
