# Copyright (c) Syntropy Systems
"""Error kinds raised while evaluating grid points."""
from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from gridbench.models.grid import RunRecord


class GridBenchError(Exception):
    """Base class for errors that abort a single grid point."""

    kind: ClassVar[str] = "error"


class ProvisionError(GridBenchError):
    """Dataset fetch or decompression failed."""

    kind: ClassVar[str] = "provision"


class IngestError(GridBenchError):
    """The indexing service rejected an index configuration or ingestion."""

    kind: ClassVar[str] = "ingest"


class ServiceError(GridBenchError):
    """A status query or delete against the indexing service failed."""

    kind: ClassVar[str] = "service"


class ParseError(GridBenchError):
    """A status report is missing expected fields or is ambiguous."""

    kind: ClassVar[str] = "parse"


class LedgerError(GridBenchError):
    """The run ledger could not be read or written."""

    kind: ClassVar[str] = "ledger"


class CleanupError(ServiceError):
    """A point was recorded but its index could not be deleted afterwards."""

    record: RunRecord

    def __init__(self, message: str, record: RunRecord) -> None:
        super().__init__(message)
        self.record = record
