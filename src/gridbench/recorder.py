# Copyright (c) Syntropy Systems
"""Assemble ledger rows from a grid point and its measured metrics."""
from __future__ import annotations

import math
from typing import TYPE_CHECKING

from gridbench.models.grid import RunRecord

if TYPE_CHECKING:
    from gridbench.ledger import RunLedger
    from gridbench.models.grid import GridPoint, IndexStats, SplitInfo


def build_record(
    point: GridPoint,
    runtime_seconds: float,
    stats: IndexStats,
    split: SplitInfo,
    store_size: int,
) -> RunRecord:
    """Combine a point with its metrics. Runtime is kept in whole seconds."""
    return RunRecord(
        dataset=point.dataset,
        total_size=split.size,
        num_docs=stats.num_docs,
        num_splits=stats.num_splits,
        algorithm=point.algorithm,
        block_size_kb=point.block_size_kb,
        store_size=store_size,
        runtime_seconds=max(0, math.floor(runtime_seconds)),
    )


def record_result(
    ledger: RunLedger,
    point: GridPoint,
    runtime_seconds: float,
    stats: IndexStats,
    split: SplitInfo,
    store_size: int,
) -> RunRecord:
    """Build the row for a completed point and append it to the ledger."""
    record = build_record(point, runtime_seconds, stats, split, store_size)
    ledger.record(record)
    return record
