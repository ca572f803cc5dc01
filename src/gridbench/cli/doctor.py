# Copyright (c) Syntropy Systems
"""gridbench doctor command."""

import shutil

from rich.console import Console

from gridbench.config import (
    find_project_dir,
    get_cache_dir,
    get_ledger_path,
    get_schema_dir,
    load_config,
)
from gridbench.datasets import DatasetProvisioner
from gridbench.errors import LedgerError
from gridbench.ledger import RunLedger

console = Console()


def doctor() -> None:
    """Check gridbench setup and diagnose issues.

    Verifies:
    - gridbench directory and config
    - ledger readability
    - quickwit binary on PATH
    - index config per planned dataset
    - dataset cache
    """
    issues: list[str] = []
    warnings: list[str] = []

    project_dir = find_project_dir()
    if project_dir is None:
        console.print("[red]✗[/red] No .gridbench directory found")
        console.print("  Run [bold]gridbench init[/bold] to initialize a project")
        return

    console.print(f"[green]✓[/green] gridbench directory: {project_dir}")

    try:
        config = load_config(project_dir)
    except (OSError, ValueError) as e:
        console.print(f"[red]✗[/red] Config error: {e}")
        console.print(f"\n[red]Found 1 issue(s)[/red]\n  - Config error: {e}")
        return

    console.print(f"[green]✓[/green] Plan: {len(config.plan)} grid points")

    # Check ledger
    ledger = RunLedger(get_ledger_path(project_dir, config))
    try:
        done = ledger.completed_points()
    except LedgerError as e:
        console.print(f"[red]✗[/red] Ledger error: {e}")
        issues.append(f"Ledger error: {e}")
    else:
        pending = sum(1 for point in config.plan if point not in done)
        console.print(
            f"[green]✓[/green] Ledger: {len(done)} recorded, {pending} pending"
        )

    # Check quickwit binary
    quickwit = shutil.which(config.quickwit_binary)
    if quickwit:
        console.print(f"[green]✓[/green] quickwit: {quickwit}")
    else:
        console.print(
            f"[red]✗[/red] quickwit binary not found: {config.quickwit_binary}"
        )
        issues.append("quickwit binary missing")

    # Check index configs
    schema_dir = get_schema_dir(project_dir, config)
    for dataset in config.plan.datasets:
        schema_path = schema_dir / dataset.value / "index-config.yaml"
        if schema_path.exists():
            console.print(f"[green]✓[/green] Index config: {schema_path}")
        else:
            console.print(f"[red]✗[/red] Index config missing: {schema_path}")
            issues.append(f"Index config missing for {dataset.value}")

    # Check dataset cache
    provisioner = DatasetProvisioner(get_cache_dir(project_dir, config))
    for dataset in config.plan.datasets:
        if provisioner.is_cached(dataset):
            console.print(f"[green]✓[/green] Cached: {dataset.value}")
        else:
            console.print(
                f"[yellow]⚠[/yellow] Not cached: {dataset.value} "
                "(downloaded on first sweep)"
            )
            warnings.append(f"{dataset.value} not cached")

    # Summary
    console.print()
    if issues:
        console.print(f"[red]Found {len(issues)} issue(s)[/red]")
        for issue in issues:
            console.print(f"  - {issue}")
    elif warnings:
        console.print(f"[yellow]Found {len(warnings)} warning(s)[/yellow]")
        for warning in warnings:
            console.print(f"  - {warning}")
    else:
        console.print("[green]All checks passed[/green]")
