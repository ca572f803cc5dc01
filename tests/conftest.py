# Copyright (c) Syntropy Systems
"""Pytest fixtures for gridbench tests."""

from __future__ import annotations

import gzip
import json
import os
import tempfile
from collections.abc import Generator, Iterable
from pathlib import Path

import pytest

from gridbench.errors import IngestError, ServiceError
from gridbench.models.grid import IndexConfig

# Store original cwd at module load time
_original_cwd = Path.cwd()

NGINX_RECORDS = [
    {"datetime": "2021-07-06T10:00:00Z", "status": 200, "path": "/"},
    {"datetime": "2021-07-06T10:00:01Z", "status": 404, "path": "/missing"},
    {"datetime": "2021-07-06T10:00:02Z", "status": 200, "path": "/index.html"},
]


class FakeIndexingService:
    """In-memory indexing service recording every call."""

    def __init__(self) -> None:
        self.catalog: dict[str, IndexConfig] = {}
        self.documents: dict[str, list[dict[str, object]]] = {}
        self.calls: list[tuple[str, str]] = []
        self.failing: set[str] = set()
        self.split_size = 12
        self.store_size = 4096

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.failing:
            msg = f"{operation} rejected"
            if operation in ("create", "ingest"):
                raise IngestError(msg)
            raise ServiceError(msg)

    def create(self, config: IndexConfig) -> None:
        self.calls.append(("create", config.index_id))
        self._maybe_fail("create")
        if config.index_id in self.catalog:
            msg = f"index {config.index_id} already exists"
            raise IngestError(msg)
        self.catalog[config.index_id] = config
        self.documents[config.index_id] = []

    def ingest(self, index_id: str, records: Iterable[dict[str, object]]) -> None:
        self.calls.append(("ingest", index_id))
        self._maybe_fail("ingest")
        self.documents[index_id].extend(records)

    def describe(self, index_id: str) -> str:
        self.calls.append(("describe", index_id))
        self._maybe_fail("describe")
        num_docs = len(self.documents[index_id])
        return (
            "\n1. General information\n"
            "=============================================\n"
            f"{'Index ID:':<35} {index_id}\n"
            f"{'Number of published splits:':<35} 1\n"
            f"{'Number of published documents:':<35} {num_docs}\n"
            f"{'Size of published splits:':<35} {self.split_size} MB\n"
        )

    def list_splits(self, index_id: str) -> str:
        self.calls.append(("list_splits", index_id))
        self._maybe_fail("list_splits")
        num_docs = len(self.documents[index_id])
        return (
            "+------------+-----------+----------+-----------+\n"
            "| Split ID   | Status    | Num docs | Size (MB) |\n"
            "+------------+-----------+----------+-----------+\n"
            f"| {index_id}-split | Published | {num_docs} | {self.split_size} |\n"
            "+------------+-----------+----------+-----------+\n"
        )

    def describe_split(self, index_id: str, split_id: str) -> str:
        self.calls.append(("describe_split", index_id))
        self._maybe_fail("describe_split")
        return (
            f"{split_id}.idx 1024\n"
            f"{split_id}.store {self.store_size}\n"
            f"{split_id}.term 2048\n"
        )

    def delete(self, index_id: str) -> None:
        self.calls.append(("delete", index_id))
        self._maybe_fail("delete")
        del self.catalog[index_id]
        del self.documents[index_id]

    def operations(self) -> list[str]:
        return [operation for operation, _ in self.calls]


def write_gzip_ndjson(path: Path, records: list[dict[str, object]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with gzip.open(path, "wt", encoding="utf-8") as f:
        for record in records:
            _ = f.write(json.dumps(record) + "\n")


def write_corrupt_gzip(path: Path, records: list[dict[str, object]]) -> None:
    """Write a gzip file whose first deflate block has the reserved type."""
    data = bytearray(gzip.compress(
        "".join(json.dumps(record) + "\n" for record in records).encode()
    ))
    # BFINAL=1, BTYPE=11
    data[10] = 0x07
    path.parent.mkdir(parents=True, exist_ok=True)
    _ = path.write_bytes(bytes(data))


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_service() -> FakeIndexingService:
    return FakeIndexingService()


@pytest.fixture
def nginx_cache(temp_dir: Path) -> Path:
    """A cache directory already holding the nginx-logs corpus."""
    cache_dir = temp_dir / "cache"
    write_gzip_ndjson(cache_dir / "nginx-logs.json.gz", NGINX_RECORDS)
    return cache_dir


@pytest.fixture
def gridbench_project(temp_dir: Path) -> Generator[Path, None, None]:
    """Create a temporary gridbench project limited to nginx-logs."""
    project_dir = temp_dir / ".gridbench"
    project_dir.mkdir()
    _ = (project_dir / "grid.csv").write_text("")
    _ = (project_dir / "config.yaml").write_text(
        "quickwit_binary: gridbench-missing-quickwit\n"
        "datasets: [nginx-logs]\n"
        "algorithms: [zstd]\n"
        "block_sizes_kb: [64, 128]\n"
    )
    write_gzip_ndjson(project_dir / "cache" / "nginx-logs.json.gz", NGINX_RECORDS)

    schema = temp_dir / "config" / "tutorials" / "nginx-logs" / "index-config.yaml"
    schema.parent.mkdir(parents=True)
    _ = schema.write_text("version: 0\nindex_id: nginx-logs\n")

    # Change to temp directory
    os.chdir(temp_dir)

    yield temp_dir

    # Always return to original cwd
    os.chdir(_original_cwd)
