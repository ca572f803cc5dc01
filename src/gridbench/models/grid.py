# Copyright (c) Syntropy Systems
"""Pydantic models for grid points, ledger rows and index configuration."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import Field, ValidationError

from .base import FrozenModel

if TYPE_CHECKING:
    from pathlib import Path

LEDGER_FIELD_COUNT = 8


class Dataset(str, Enum):
    """Benchmark corpora."""

    HDFS_LOGS = "hdfs-logs"
    GH_ARCHIVE = "gh-archive"
    WIKIPEDIA = "wikipedia"
    NGINX_LOGS = "nginx-logs"


class Algorithm(str, Enum):
    """Docstore compression algorithms."""

    LZ4 = "lz4"
    ZSTD = "zstd"


class ArchiveFormat(str, Enum):
    """On-disk layout of a cached corpus."""

    GZIP = "gzip"
    TAR_GZIP = "tar-gzip"
    SHARDED_GZIP = "sharded-gzip"


class Normalization(str, Enum):
    """Record transform applied before ingestion, one per dataset variant."""

    PASSTHROUGH = "passthrough"
    GH_ARCHIVE = "gh-archive"
    NGINX_LOGS = "nginx-logs"


@dataclass(frozen=True)
class DatasetDescriptor:
    """Where a corpus lives remotely and locally, and how to read it."""

    name: Dataset
    urls: tuple[str, ...]
    cache_files: tuple[str, ...]
    archive_format: ArchiveFormat
    normalization: Normalization

    def __post_init__(self) -> None:
        if len(self.urls) != len(self.cache_files):
            msg = f"{self.name.value}: every url needs exactly one cache file"
            raise ValueError(msg)
        if not self.urls:
            msg = f"{self.name.value}: at least one url is required"
            raise ValueError(msg)


class GridPoint(FrozenModel):
    """One (dataset, algorithm, block size) combination."""

    dataset: Dataset
    algorithm: Algorithm
    block_size_kb: int = Field(gt=0)

    @property
    def index_id(self) -> str:
        """Stable resource name on the indexing service."""
        return f"{self.dataset.value}-{self.algorithm.value}-{self.block_size_kb}"

    @property
    def block_size_bytes(self) -> int:
        return self.block_size_kb * 1024

    @property
    def key(self) -> tuple[Dataset, Algorithm, int]:
        return (self.dataset, self.algorithm, self.block_size_kb)


class RunRecord(FrozenModel):
    """One completed grid point, as stored in the ledger."""

    dataset: Dataset
    total_size: int = Field(ge=0)
    num_docs: int = Field(ge=0)
    num_splits: int = Field(ge=0)
    algorithm: Algorithm
    block_size_kb: int = Field(gt=0)
    store_size: int = Field(ge=0)
    runtime_seconds: int = Field(ge=0)

    @property
    def point(self) -> GridPoint:
        return GridPoint(
            dataset=self.dataset,
            algorithm=self.algorithm,
            block_size_kb=self.block_size_kb,
        )

    def to_row(self) -> list[str]:
        """Serialize to the ledger's fixed field order."""
        return [
            self.dataset.value,
            str(self.total_size),
            str(self.num_docs),
            str(self.num_splits),
            self.algorithm.value,
            str(self.block_size_kb),
            str(self.store_size),
            str(self.runtime_seconds),
        ]

    @classmethod
    def from_row(cls, row: list[str]) -> RunRecord:
        """Parse a ledger row.

        Raises:
            ValueError: If the row has the wrong arity or a field is invalid.

        """
        if len(row) != LEDGER_FIELD_COUNT:
            msg = f"expected {LEDGER_FIELD_COUNT} fields, got {len(row)}"
            raise ValueError(msg)
        fields = [value.strip() for value in row]
        try:
            return cls(
                dataset=Dataset(fields[0]),
                total_size=int(fields[1]),
                num_docs=int(fields[2]),
                num_splits=int(fields[3]),
                algorithm=Algorithm(fields[4]),
                block_size_kb=int(fields[5]),
                store_size=int(fields[6]),
                runtime_seconds=int(fields[7]),
            )
        except ValidationError as e:
            msg = f"invalid row: {e.error_count()} field error(s)"
            raise ValueError(msg) from e


class IndexConfig(FrozenModel):
    """Per grid point index creation parameters."""

    index_id: str
    schema_path: str
    block_size_bytes: int = Field(gt=0)
    algorithm: Algorithm

    @classmethod
    def for_point(cls, point: GridPoint, schema_dir: Path) -> IndexConfig:
        """Build the config for a point from its dataset's schema file."""
        schema_path = schema_dir / point.dataset.value / "index-config.yaml"
        return cls(
            index_id=point.index_id,
            schema_path=str(schema_path),
            block_size_bytes=point.block_size_bytes,
            algorithm=point.algorithm,
        )


class IndexStats(FrozenModel):
    """Counts from an index status report."""

    num_docs: int = Field(ge=0)
    num_splits: int = Field(ge=0)


class SplitInfo(FrozenModel):
    """The published split of an index."""

    split_id: str
    size: int = Field(ge=0)
