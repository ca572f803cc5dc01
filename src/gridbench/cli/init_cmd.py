# Copyright (c) Syntropy Systems
"""gridbench init command."""

from pathlib import Path

import typer
import yaml
from rich.console import Console

from gridbench.config import CONFIG_FILE_NAME, PROJECT_DIR_NAME, GridBenchConfig

console = Console()


def init(
    path: Path = typer.Argument(
        Path(),
        help="Directory to initialize (default: current directory)",
    ),
) -> None:
    """Initialize a new gridbench project.

    Creates a .gridbench directory with configuration and an empty ledger.
    """
    target = path.resolve()
    project_dir = target / PROJECT_DIR_NAME

    if project_dir.exists():
        console.print(f"[yellow]Already initialized:[/yellow] {project_dir}")
        return

    project_dir.mkdir(parents=True)

    # Create default config
    defaults = GridBenchConfig()
    config = {
        "quickwit_binary": defaults.quickwit_binary,
        "schema_dir": defaults.schema_dir,
        "cache_dir": defaults.cache_dir,
        "ledger_file": defaults.ledger_file,
        "datasets": [d.value for d in defaults.plan.datasets],
        "algorithms": [a.value for a in defaults.plan.algorithms],
        "block_sizes_kb": list(defaults.plan.block_sizes_kb),
    }

    config_path = project_dir / CONFIG_FILE_NAME
    with config_path.open("w") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)

    ledger_path = project_dir / defaults.ledger_file
    ledger_path.touch()

    console.print(f"[green]Initialized gridbench project:[/green] {project_dir}")
    console.print(f"  [dim]config:[/dim] {config_path}")
    console.print(f"  [dim]ledger:[/dim] {ledger_path}")
