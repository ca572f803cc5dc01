# Copyright (c) Syntropy Systems
"""Tests for the result recorder."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from gridbench.ledger import RunLedger
from gridbench.models.grid import GridPoint, IndexStats, SplitInfo
from gridbench.recorder import build_record, record_result

POINT = GridPoint(dataset="gh-archive", algorithm="lz4", block_size_kb=256)


def test_build_record_combines_point_and_metrics() -> None:
    """Test field mapping from metrics to the row."""
    record = build_record(
        POINT,
        runtime_seconds=73.9,
        stats=IndexStats(num_docs=500, num_splits=2),
        split=SplitInfo(split_id="abc", size=31),
        store_size=123456,
    )

    assert record.point == POINT
    assert record.total_size == 31
    assert record.num_docs == 500
    assert record.num_splits == 2
    assert record.store_size == 123456
    assert record.runtime_seconds == 73


def test_record_result_appends(temp_dir: Path) -> None:
    """Test that the row lands in the ledger."""
    ledger = RunLedger(temp_dir / "grid.csv")

    record = record_result(
        ledger,
        POINT,
        0.4,
        IndexStats(num_docs=1, num_splits=1),
        SplitInfo(split_id="abc", size=0),
        10,
    )

    assert ledger.read_records() == [record]
    assert (temp_dir / "grid.csv").read_text() == "gh-archive,0,1,1,lz4,256,10,0\n"


def test_metrics_models_are_frozen_and_non_negative() -> None:
    """Test that parsed metrics cannot change or go below zero."""
    stats = IndexStats(num_docs=1, num_splits=1)

    with pytest.raises(ValidationError):
        stats.num_docs = 2  # type: ignore[misc]
    with pytest.raises(ValidationError):
        _ = IndexStats(num_docs=-1, num_splits=1)
    with pytest.raises(ValidationError):
        _ = SplitInfo(split_id="abc", size=-3)
