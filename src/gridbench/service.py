# Copyright (c) Syntropy Systems
"""Indexing service interface, Quickwit CLI adapter and index lifecycle."""
from __future__ import annotations

import json
import logging
import shutil
import subprocess
import tempfile
import time
from typing import IO, TYPE_CHECKING, Callable, Protocol

from typing_extensions import Self

from gridbench.errors import GridBenchError, IngestError, ServiceError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from types import TracebackType

    from gridbench.models.grid import IndexConfig

logger = logging.getLogger(__name__)

Record = dict[str, object]


class IndexingService(Protocol):
    """Administrative and status operations of the indexing service."""

    def create(self, config: IndexConfig) -> None:
        ...

    def ingest(self, index_id: str, records: Iterable[Record]) -> None:
        ...

    def describe(self, index_id: str) -> str:
        ...

    def list_splits(self, index_id: str) -> str:
        ...

    def describe_split(self, index_id: str, split_id: str) -> str:
        ...

    def delete(self, index_id: str) -> None:
        ...


def _read_output(output: IO[bytes]) -> str:
    _ = output.seek(0)
    return output.read().decode("utf-8", errors="replace")


class QuickwitCli:
    """Drives the `quickwit` administrative CLI as a subprocess."""

    binary: str
    config_uri: str | None
    timeout: float | None

    def __init__(
        self,
        binary: str = "quickwit",
        config_uri: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            binary: Name or path of the quickwit executable
            config_uri: Node config passed as --config to every command
            timeout: Seconds before a status or admin command is abandoned

        """
        self.binary = binary
        self.config_uri = config_uri
        self.timeout = timeout

    def _argv(self, args: list[str]) -> list[str]:
        cmd_path = shutil.which(self.binary)
        if cmd_path is None:
            msg = f"quickwit binary not found: {self.binary}"
            raise ServiceError(msg)
        argv = [cmd_path, *args]
        if self.config_uri:
            argv.extend(["--config", self.config_uri])
        return argv

    def _run(
        self,
        args: list[str],
        error_cls: type[GridBenchError] = ServiceError,
    ) -> str:
        argv = self._argv(args)
        logger.debug("Running %s", " ".join(argv))
        try:
            result = subprocess.run(  # noqa: S603
                argv,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            msg = f"'{' '.join(args[:2])}' timed out after {self.timeout}s"
            raise error_cls(msg) from e
        except OSError as e:
            msg = f"Cannot run {self.binary}: {e}"
            raise error_cls(msg) from e

        if result.returncode != 0:
            detail = (result.stderr or result.stdout).strip()
            msg = f"'{' '.join(args[:2])}' exited with {result.returncode}: {detail}"
            raise error_cls(msg)
        return result.stdout

    def create(self, config: IndexConfig) -> None:
        _ = self._run(
            [
                "index", "create",
                "--index-config", config.schema_path,
                "--index-id", config.index_id,
                "--docstore-blocksize", str(config.block_size_bytes),
                "--docstore-compression", config.algorithm.value,
            ],
            error_cls=IngestError,
        )

    def ingest(self, index_id: str, records: Iterable[Record]) -> None:
        """Pipe records as newline-delimited JSON into `index ingest`.

        The child's output is spooled to a temporary file and only read back
        for the error message.
        """
        argv = self._argv(["index", "ingest", "--index", index_id])
        logger.debug("Running %s", " ".join(argv))

        with tempfile.TemporaryFile() as output:
            try:
                process = subprocess.Popen(  # noqa: S603
                    argv,
                    stdin=subprocess.PIPE,
                    stdout=output,
                    stderr=subprocess.STDOUT,
                )
            except OSError as e:
                msg = f"Cannot run {self.binary}: {e}"
                raise IngestError(msg) from e

            stdin = process.stdin
            if stdin is None:
                process.kill()
                msg = "ingest process has no stdin"
                raise IngestError(msg)

            broken_pipe = False
            try:
                for record in records:
                    line = json.dumps(record, separators=(",", ":")) + "\n"
                    try:
                        _ = stdin.write(line.encode("utf-8"))
                    except BrokenPipeError:
                        broken_pipe = True
                        break
            except BaseException:
                process.kill()
                _ = process.wait()
                raise
            finally:
                try:
                    stdin.close()
                except BrokenPipeError:
                    broken_pipe = True

            try:
                code = process.wait(timeout=self.timeout)
            except subprocess.TimeoutExpired as e:
                process.kill()
                _ = process.wait()
                msg = f"ingest into {index_id} timed out after {self.timeout}s"
                raise IngestError(msg) from e

            if code != 0 or broken_pipe:
                detail = _read_output(output).strip()
                msg = f"ingest into {index_id} exited with {code}: {detail}"
                raise IngestError(msg)

    def describe(self, index_id: str) -> str:
        return self._run(["index", "describe", "--index", index_id])

    def list_splits(self, index_id: str) -> str:
        return self._run(["split", "list", "--index", index_id])

    def describe_split(self, index_id: str, split_id: str) -> str:
        return self._run(
            ["split", "describe", "--index", index_id, "--split", split_id]
        )

    def delete(self, index_id: str) -> None:
        _ = self._run(["index", "delete", "--index", index_id])


class ManagedIndex:
    """An index that exists for the lifetime of a `with` block.

    The index is deleted on every exit path. When the block raises, a failed
    delete is logged and the original error propagates.
    """

    config: IndexConfig
    _lifecycle: IndexLifecycle
    _deleted: bool

    def __init__(self, lifecycle: IndexLifecycle, config: IndexConfig) -> None:
        self._lifecycle = lifecycle
        self.config = config
        self._deleted = False

    @property
    def index_id(self) -> str:
        return self.config.index_id

    def ingest(self, records: Iterable[Record]) -> float:
        return self._lifecycle.ingest(self.index_id, records)

    def describe(self) -> str:
        return self._lifecycle.describe(self.index_id)

    def list_splits(self) -> str:
        return self._lifecycle.list_splits(self.index_id)

    def describe_split(self, split_id: str) -> str:
        return self._lifecycle.describe_split(self.index_id, split_id)

    def release(self) -> None:
        """Delete the index. Safe to call more than once."""
        if self._deleted:
            return
        self._deleted = True
        self._lifecycle.delete(self.index_id)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            self.release()
            return
        try:
            self.release()
        except GridBenchError:
            logger.exception("Failed to delete index %s after error", self.index_id)


class IndexLifecycle:
    """Creates, feeds, queries and deletes indexes on an IndexingService."""

    service: IndexingService
    _clock: Callable[[], float]

    def __init__(
        self,
        service: IndexingService,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.service = service
        self._clock = clock

    def create(self, config: IndexConfig) -> None:
        logger.info(
            "Creating index %s (%s, %d bytes)",
            config.index_id,
            config.algorithm.value,
            config.block_size_bytes,
        )
        self.service.create(config)

    def acquire(self, config: IndexConfig) -> ManagedIndex:
        """Create an index and return a handle that deletes it on exit.

        If creation fails nothing is returned and nothing needs deleting.
        """
        self.create(config)
        return ManagedIndex(self, config)

    def ingest(self, index_id: str, records: Iterable[Record]) -> float:
        """Ingest records and return the wall-clock duration in seconds."""
        start = self._clock()
        self.service.ingest(index_id, records)
        elapsed = self._clock() - start
        logger.info("Ingested into %s in %.1fs", index_id, elapsed)
        return elapsed

    def describe(self, index_id: str) -> str:
        return self.service.describe(index_id)

    def list_splits(self, index_id: str) -> str:
        return self.service.list_splits(index_id)

    def describe_split(self, index_id: str, split_id: str) -> str:
        return self.service.describe_split(index_id, split_id)

    def delete(self, index_id: str) -> None:
        logger.info("Deleting index %s", index_id)
        self.service.delete(index_id)
