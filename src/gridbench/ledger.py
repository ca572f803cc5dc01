# Copyright (c) Syntropy Systems
"""Append-only CSV ledger of completed grid points."""
from __future__ import annotations

import csv
import logging
import os
from typing import TYPE_CHECKING

from gridbench.errors import LedgerError
from gridbench.models.grid import GridPoint, RunRecord

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


def _parse_line(line: str) -> RunRecord:
    row = next(csv.reader([line]))
    return RunRecord.from_row(row)


class RunLedger:
    """Flat file of RunRecord rows, one per completed grid point.

    Rows are never updated or deleted. Lookups re-scan the whole file so
    rows appended by an earlier, interrupted process are always seen.
    """

    path: Path

    def __init__(self, path: Path) -> None:
        self.path = path

    def _read_text(self) -> str:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""
        except (OSError, UnicodeDecodeError) as e:
            msg = f"Cannot read ledger {self.path}: {e}"
            raise LedgerError(msg) from e

    def read_records(self) -> list[RunRecord]:
        """Parse every row of the ledger.

        A trailing line without a newline is the remains of an interrupted
        write; it is kept only if it parses as a complete row.

        Raises:
            LedgerError: If the file is unreadable or a complete row is malformed.

        """
        text = self._read_text()
        if not text:
            return []

        *complete, tail = text.split("\n")
        records: list[RunRecord] = []

        for lineno, raw_line in enumerate(complete, start=1):
            line = raw_line.strip()
            if not line:
                continue
            try:
                records.append(_parse_line(line))
            except ValueError as e:
                msg = f"{self.path}:{lineno}: malformed ledger row: {e}"
                raise LedgerError(msg) from e

        tail = tail.strip()
        if tail:
            try:
                records.append(_parse_line(tail))
            except ValueError:
                logger.warning(
                    "Ignoring truncated ledger line %d in %s",
                    len(complete) + 1,
                    self.path,
                )

        return records

    def completed_points(self) -> set[GridPoint]:
        return {record.point for record in self.read_records()}

    def has_run(self, point: GridPoint) -> bool:
        """Return True if a row with the same dataset, algorithm and block size exists."""
        return any(record.point.key == point.key for record in self.read_records())

    def _repair_tail(self) -> None:
        """Terminate or drop a partial final line before appending."""
        try:
            with self.path.open("rb+") as f:
                data = f.read()
                if not data or data.endswith(b"\n"):
                    return
                cut = data.rfind(b"\n") + 1
                tail = data[cut:].decode("utf-8", errors="replace").strip()
                try:
                    _ = _parse_line(tail)
                except ValueError:
                    logger.warning("Dropping truncated ledger line in %s", self.path)
                    _ = f.seek(cut)
                    _ = f.truncate()
                else:
                    _ = f.write(b"\n")
                f.flush()
                os.fsync(f.fileno())
        except FileNotFoundError:
            return

    def record(self, row: RunRecord) -> None:
        """Append a row and make it durable before returning.

        Raises:
            LedgerError: If the ledger cannot be written.

        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._repair_tail()
            with self.path.open("a", encoding="utf-8", newline="") as f:
                writer = csv.writer(f, lineterminator="\n")
                writer.writerow(row.to_row())
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            msg = f"Cannot write ledger {self.path}: {e}"
            raise LedgerError(msg) from e

        logger.debug("Recorded %s in %s", row.point.index_id, self.path)
