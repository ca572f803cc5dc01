# Copyright (c) Syntropy Systems
"""Helpers shared by gridbench commands."""
from __future__ import annotations

from typing import TYPE_CHECKING

import typer
from rich.console import Console

from gridbench.config import (
    GridBenchConfig,
    get_ledger_path,
    load_config,
    require_project_dir,
)
from gridbench.ledger import RunLedger

if TYPE_CHECKING:
    from pathlib import Path

console = Console()


def load_project() -> tuple[Path, GridBenchConfig]:
    """Locate the project and load its config, exiting with 1 on failure."""
    try:
        project_dir = require_project_dir()
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    try:
        config = load_config(project_dir)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        raise typer.Exit(1) from e

    return project_dir, config


def open_ledger(project_dir: Path, config: GridBenchConfig) -> RunLedger:
    return RunLedger(get_ledger_path(project_dir, config))


def format_duration(seconds: float | None) -> str:
    """Format duration in seconds to human readable."""
    if seconds is None:
        return "-"

    total = int(seconds)
    if total < 60:
        return f"{total}s"
    if total < 3600:
        m, s = divmod(total, 60)
        return f"{m}m {s}s"
    h, rem = divmod(total, 3600)
    m, s = divmod(rem, 60)
    return f"{h}h {m}m"
