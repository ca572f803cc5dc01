# Copyright (c) Syntropy Systems
"""Configuration management for gridbench."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, cast

import yaml

from gridbench.sweep import SweepPlan

PROJECT_DIR_NAME = ".gridbench"
CONFIG_FILE_NAME = "config.yaml"


@dataclass
class GridBenchConfig:
    """Configuration for gridbench."""

    # Executable used to drive the indexing service
    quickwit_binary: str = "quickwit"

    # Node config passed as --config to every quickwit command
    quickwit_config: Optional[str] = None

    # Directory holding <dataset>/index-config.yaml
    schema_dir: str = "config/tutorials"

    # Downloaded corpora, relative to the project root unless absolute
    cache_dir: str = ".gridbench/cache"

    # Ledger file name inside the .gridbench directory
    ledger_file: str = "grid.csv"

    # Seconds before a quickwit command is abandoned (None = no limit)
    command_timeout: Optional[float] = None

    plan: SweepPlan = field(default_factory=SweepPlan)


def find_project_dir(start_path: Path | None = None) -> Path | None:
    """Find the nearest .gridbench directory by walking up from start_path.

    Returns None if no .gridbench directory is found.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()

    while current != current.parent:
        project_dir = current / PROJECT_DIR_NAME
        if project_dir.is_dir():
            return project_dir
        current = current.parent

    # Check root
    project_dir = current / PROJECT_DIR_NAME
    if project_dir.is_dir():
        return project_dir

    return None


def require_project_dir() -> Path:
    """Get the .gridbench directory or raise an error if not found."""
    project_dir = find_project_dir()
    if project_dir is None:
        msg = "No .gridbench directory found. Run 'gridbench init' first."
        raise RuntimeError(msg)
    return project_dir


def _optional_list(data: dict[str, object], key: str) -> list[object] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        msg = f"'{key}' must be a list"
        raise ValueError(msg)
    return cast("list[object]", value)


def load_config(project_dir: Path) -> GridBenchConfig:
    """Load configuration from .gridbench/config.yaml or defaults.

    Scalar keys with the wrong type keep their defaults.

    Raises:
        ValueError: If a plan axis is malformed or names an unknown value.

    """
    config = GridBenchConfig()
    config_path = project_dir / CONFIG_FILE_NAME
    if not config_path.exists():
        return config

    with config_path.open() as f:
        data = cast("dict[str, object]", yaml.safe_load(f) or {})

    quickwit_binary = data.get("quickwit_binary")
    if isinstance(quickwit_binary, str):
        config.quickwit_binary = quickwit_binary
    quickwit_config = data.get("quickwit_config")
    if isinstance(quickwit_config, str):
        config.quickwit_config = quickwit_config
    schema_dir = data.get("schema_dir")
    if isinstance(schema_dir, str):
        config.schema_dir = schema_dir
    cache_dir = data.get("cache_dir")
    if isinstance(cache_dir, str):
        config.cache_dir = cache_dir
    ledger_file = data.get("ledger_file")
    if isinstance(ledger_file, str):
        config.ledger_file = ledger_file
    command_timeout = data.get("command_timeout")
    if isinstance(command_timeout, (int, float)) and not isinstance(
        command_timeout, bool
    ):
        config.command_timeout = float(command_timeout)

    config.plan = SweepPlan.from_values(
        datasets=cast("Optional[list[str]]", _optional_list(data, "datasets")),
        algorithms=cast("Optional[list[str]]", _optional_list(data, "algorithms")),
        block_sizes_kb=cast(
            "Optional[list[int]]", _optional_list(data, "block_sizes_kb")
        ),
    )

    return config


def _resolve(project_dir: Path, value: str) -> Path:
    path = Path(value).expanduser()
    if path.is_absolute():
        return path
    return project_dir.parent / path


def get_ledger_path(project_dir: Path, config: GridBenchConfig) -> Path:
    """Get the path to the run ledger."""
    return project_dir / config.ledger_file


def get_cache_dir(project_dir: Path, config: GridBenchConfig) -> Path:
    """Get the dataset cache directory."""
    return _resolve(project_dir, config.cache_dir)


def get_schema_dir(project_dir: Path, config: GridBenchConfig) -> Path:
    """Get the directory of per-dataset index configs."""
    return _resolve(project_dir, config.schema_dir)
