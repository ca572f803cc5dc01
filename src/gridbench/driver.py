# Copyright (c) Syntropy Systems
"""Sequential, resumable benchmark sweep."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional

from gridbench.errors import CleanupError, GridBenchError
from gridbench.metrics import parse_describe, parse_split_describe, parse_split_list
from gridbench.models.grid import IndexConfig
from gridbench.recorder import record_result

if TYPE_CHECKING:
    from pathlib import Path

    from gridbench.datasets import DatasetProvisioner
    from gridbench.ledger import RunLedger
    from gridbench.models.grid import GridPoint, RunRecord
    from gridbench.service import IndexLifecycle
    from gridbench.sweep import SweepPlan

logger = logging.getLogger(__name__)

PointCallback = Callable[["GridPoint"], None]


@dataclass
class SweepReport:
    """Outcome of one sweep invocation."""

    completed: list[RunRecord] = field(default_factory=list)
    skipped: list[GridPoint] = field(default_factory=list)
    failed: list[tuple[GridPoint, GridBenchError]] = field(default_factory=list)
    # Recorded points whose index is still on the service
    uncleaned: list[CleanupError] = field(default_factory=list)


class SweepDriver:
    """Evaluates every grid point that is not yet in the ledger.

    Points are evaluated one at a time. A failing point is logged and left
    out of the ledger so the next invocation retries it. A point whose row
    was written but whose index could not be deleted counts as completed and
    is listed in `SweepReport.uncleaned`.
    """

    plan: SweepPlan
    ledger: RunLedger
    provisioner: DatasetProvisioner
    lifecycle: IndexLifecycle
    schema_dir: Path
    on_skip: Optional[PointCallback]
    on_start: Optional[PointCallback]
    on_complete: Optional[Callable[[RunRecord], None]]
    on_failure: Optional[Callable[[GridPoint, GridBenchError], None]]
    on_cleanup_failure: Optional[Callable[[CleanupError], None]]

    def __init__(  # noqa: PLR0913
        self,
        plan: SweepPlan,
        ledger: RunLedger,
        provisioner: DatasetProvisioner,
        lifecycle: IndexLifecycle,
        schema_dir: Path,
        on_skip: Optional[PointCallback] = None,
        on_start: Optional[PointCallback] = None,
        on_complete: Optional[Callable[[RunRecord], None]] = None,
        on_failure: Optional[Callable[[GridPoint, GridBenchError], None]] = None,
        on_cleanup_failure: Optional[Callable[[CleanupError], None]] = None,
    ) -> None:
        self.plan = plan
        self.ledger = ledger
        self.provisioner = provisioner
        self.lifecycle = lifecycle
        self.schema_dir = schema_dir
        self.on_skip = on_skip
        self.on_start = on_start
        self.on_complete = on_complete
        self.on_failure = on_failure
        self.on_cleanup_failure = on_cleanup_failure

    def evaluate(self, point: GridPoint) -> RunRecord:
        """Run one full cycle for a point and append its row.

        The index is deleted whether or not the cycle succeeds.

        Raises:
            CleanupError: If the row was written but the index delete failed.
            GridBenchError: If any earlier step fails. Nothing is recorded then.

        """
        _ = self.provisioner.ensure_local(point.dataset)
        config = IndexConfig.for_point(point, self.schema_dir)

        record: RunRecord | None = None
        try:
            with self.lifecycle.acquire(config) as index:
                records = self.provisioner.stream_records(point.dataset)
                runtime = index.ingest(records)
                stats = parse_describe(index.describe())
                split = parse_split_list(index.list_splits())
                store_size = parse_split_describe(
                    index.describe_split(split.split_id)
                )
                record = record_result(
                    self.ledger, point, runtime, stats, split, store_size
                )
        except GridBenchError as e:
            if record is None:
                raise
            msg = f"{config.index_id} recorded but not deleted: {e}"
            raise CleanupError(msg, record) from e
        return record

    def run(self) -> SweepReport:
        """Evaluate the plan in order, skipping points already recorded.

        Raises:
            LedgerError: If the ledger cannot be read for the skip check.

        """
        report = SweepReport()

        for point in self.plan:
            if self.ledger.has_run(point):
                logger.info("Skipping %s", point.index_id)
                report.skipped.append(point)
                if self.on_skip is not None:
                    self.on_skip(point)
                continue

            if self.on_start is not None:
                self.on_start(point)
            try:
                record = self.evaluate(point)
            except CleanupError as e:
                # The row is in the ledger, so this point is not retried.
                logger.warning("%s", e)
                report.completed.append(e.record)
                report.uncleaned.append(e)
                if self.on_complete is not None:
                    self.on_complete(e.record)
                if self.on_cleanup_failure is not None:
                    self.on_cleanup_failure(e)
                continue
            except GridBenchError as e:
                logger.error(  # noqa: TRY400
                    "%s failed (%s error): %s", point.index_id, e.kind, e
                )
                report.failed.append((point, e))
                if self.on_failure is not None:
                    self.on_failure(point, e)
                continue

            report.completed.append(record)
            if self.on_complete is not None:
                self.on_complete(record)

        return report
