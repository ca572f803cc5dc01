# Copyright (c) Syntropy Systems
"""Sweep plan and grid point generation."""
from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from gridbench.models.grid import Algorithm, Dataset, GridPoint

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

DEFAULT_DATASETS: tuple[Dataset, ...] = (
    Dataset.HDFS_LOGS,
    Dataset.GH_ARCHIVE,
    Dataset.WIKIPEDIA,
    Dataset.NGINX_LOGS,
)
DEFAULT_ALGORITHMS: tuple[Algorithm, ...] = (Algorithm.LZ4, Algorithm.ZSTD)
DEFAULT_BLOCK_SIZES_KB: tuple[int, ...] = (
    16, 32, 64, 96, 128, 192, 256, 512, 1024, 2048,
)


def _parse_datasets(values: Iterable[str | Dataset]) -> list[Dataset]:
    datasets: list[Dataset] = []
    for value in values:
        try:
            datasets.append(Dataset(value))
        except ValueError as e:
            msg = f"Unknown dataset: {value}"
            raise ValueError(msg) from e
    return datasets


def _parse_algorithms(values: Iterable[str | Algorithm]) -> list[Algorithm]:
    algorithms: list[Algorithm] = []
    for value in values:
        try:
            algorithms.append(Algorithm(value))
        except ValueError as e:
            msg = f"Unknown compression algorithm: {value}"
            raise ValueError(msg) from e
    return algorithms


def _parse_block_sizes(values: Iterable[int]) -> list[int]:
    sizes: list[int] = []
    for value in values:
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            msg = f"Block size must be a positive integer (KB), got {value!r}"
            raise ValueError(msg)
        sizes.append(value)
    return sizes


def generate_grid_points(
    datasets: Sequence[Dataset],
    algorithms: Sequence[Algorithm],
    block_sizes_kb: Sequence[int],
) -> Iterator[GridPoint]:
    """Generate every grid point.

    Dataset varies slowest and block size fastest, so the order is the same
    on every invocation for the same inputs.
    """
    for dataset, algorithm, block_size_kb in itertools.product(
        datasets, algorithms, block_sizes_kb
    ):
        yield GridPoint(
            dataset=dataset,
            algorithm=algorithm,
            block_size_kb=block_size_kb,
        )


@dataclass
class SweepPlan:
    """The three axes of a benchmark sweep."""

    datasets: list[Dataset] = field(default_factory=lambda: list(DEFAULT_DATASETS))
    algorithms: list[Algorithm] = field(
        default_factory=lambda: list(DEFAULT_ALGORITHMS)
    )
    block_sizes_kb: list[int] = field(
        default_factory=lambda: list(DEFAULT_BLOCK_SIZES_KB)
    )

    @classmethod
    def from_values(
        cls,
        datasets: Iterable[str | Dataset] | None = None,
        algorithms: Iterable[str | Algorithm] | None = None,
        block_sizes_kb: Iterable[int] | None = None,
    ) -> SweepPlan:
        """Build a plan from raw config values, validating each axis.

        Axes left as None keep their defaults.
        """
        plan = cls()
        if datasets is not None:
            plan.datasets = _parse_datasets(datasets)
        if algorithms is not None:
            plan.algorithms = _parse_algorithms(algorithms)
        if block_sizes_kb is not None:
            plan.block_sizes_kb = _parse_block_sizes(block_sizes_kb)
        return plan

    def points(self) -> Iterator[GridPoint]:
        return generate_grid_points(
            self.datasets, self.algorithms, self.block_sizes_kb
        )

    def __iter__(self) -> Iterator[GridPoint]:
        return self.points()

    def __len__(self) -> int:
        return len(self.datasets) * len(self.algorithms) * len(self.block_sizes_kb)
