# Copyright (c) Syntropy Systems
"""Dataset download cache and normalized record streams."""
from __future__ import annotations

import gzip
import io
import json
import logging
import tarfile
import zlib
from datetime import datetime, timezone
from types import MappingProxyType
from typing import TYPE_CHECKING, Callable, cast

import httpx
from typing_extensions import Self

from gridbench.errors import ProvisionError
from gridbench.models.grid import (
    ArchiveFormat,
    Dataset,
    DatasetDescriptor,
    Normalization,
)

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping
    from pathlib import Path
    from types import TracebackType

logger = logging.getLogger(__name__)

QUICKWIT_DATASETS_URL = "https://quickwit-datasets-public.s3.amazonaws.com"
GH_ARCHIVE_URL = "https://data.gharchive.org"
GH_ARCHIVE_DAY = "2022-05-12"
GH_ARCHIVE_HOURS = range(10, 16)
DOWNLOAD_CHUNK_SIZE = 1 << 20

Record = dict[str, object]


def _gh_archive_shards() -> tuple[str, ...]:
    return tuple(f"{GH_ARCHIVE_DAY}-{hour}.json.gz" for hour in GH_ARCHIVE_HOURS)


DATASETS: Mapping[Dataset, DatasetDescriptor] = MappingProxyType({
    Dataset.HDFS_LOGS: DatasetDescriptor(
        name=Dataset.HDFS_LOGS,
        urls=(f"{QUICKWIT_DATASETS_URL}/hdfs.logs.quickwit.json.gz",),
        cache_files=("hdfs.logs.quickwit.json.gz",),
        archive_format=ArchiveFormat.GZIP,
        normalization=Normalization.PASSTHROUGH,
    ),
    Dataset.GH_ARCHIVE: DatasetDescriptor(
        name=Dataset.GH_ARCHIVE,
        urls=tuple(f"{GH_ARCHIVE_URL}/{shard}" for shard in _gh_archive_shards()),
        cache_files=_gh_archive_shards(),
        archive_format=ArchiveFormat.SHARDED_GZIP,
        normalization=Normalization.GH_ARCHIVE,
    ),
    Dataset.WIKIPEDIA: DatasetDescriptor(
        name=Dataset.WIKIPEDIA,
        urls=(f"{QUICKWIT_DATASETS_URL}/wiki-articles.json.tar.gz",),
        cache_files=("wiki-articles.json.tar.gz",),
        archive_format=ArchiveFormat.TAR_GZIP,
        normalization=Normalization.PASSTHROUGH,
    ),
    Dataset.NGINX_LOGS: DatasetDescriptor(
        name=Dataset.NGINX_LOGS,
        urls=(f"{QUICKWIT_DATASETS_URL}/nginx-logs.json.gz",),
        cache_files=("nginx-logs.json.gz",),
        archive_format=ArchiveFormat.GZIP,
        normalization=Normalization.NGINX_LOGS,
    ),
})


def to_epoch_seconds(value: object, field_name: str) -> object:
    """Convert an ISO 8601 timestamp string to integer epoch seconds.

    Numbers are returned unchanged. Timestamps without an offset are UTC.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    if not isinstance(value, str):
        msg = f"Field '{field_name}' is not a timestamp: {value!r}"
        raise ProvisionError(msg)

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        msg = f"Field '{field_name}' is not a timestamp: {value!r}"
        raise ProvisionError(msg) from e

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


def _normalize_passthrough(record: Record) -> Record:
    return record


def _normalize_gh_archive(record: Record) -> Record:
    if "created_at" in record:
        record["created_at"] = to_epoch_seconds(record["created_at"], "created_at")
    record["public"] = 1 if record.get("public") else 0
    return record


def _normalize_nginx_logs(record: Record) -> Record:
    if "datetime" in record:
        record["datetime"] = to_epoch_seconds(record["datetime"], "datetime")
    return record


NORMALIZERS: Mapping[Normalization, Callable[[Record], Record]] = MappingProxyType({
    Normalization.PASSTHROUGH: _normalize_passthrough,
    Normalization.GH_ARCHIVE: _normalize_gh_archive,
    Normalization.NGINX_LOGS: _normalize_nginx_logs,
})


def _iter_gzip_lines(path: Path) -> Iterator[str]:
    with gzip.open(path, "rt", encoding="utf-8") as f:
        yield from f


def _iter_tar_lines(path: Path) -> Iterator[str]:
    with tarfile.open(path, "r:gz") as archive:
        for member in archive:
            if not member.isfile():
                continue
            extracted = archive.extractfile(member)
            if extracted is None:
                continue
            with io.TextIOWrapper(extracted, encoding="utf-8") as f:
                yield from f


class DatasetProvisioner:
    """Keeps corpora cached on disk and streams their records.

    Example:
        >>> with DatasetProvisioner(Path(".gridbench/cache")) as provisioner:
        ...     provisioner.ensure_local(Dataset.NGINX_LOGS)
        ...     for record in provisioner.stream_records(Dataset.NGINX_LOGS):
        ...         ...

    """

    cache_dir: Path
    _client: httpx.Client | None
    _owns_client: bool
    _timeout: float

    def __init__(
        self,
        cache_dir: Path,
        client: httpx.Client | None = None,
        timeout: float = 60.0,
    ) -> None:
        """Initialize the provisioner.

        Args:
            cache_dir: Directory holding downloaded archives
            client: HTTP client to download with (created lazily if omitted)
            timeout: Request timeout in seconds for the default client

        """
        self.cache_dir = cache_dir
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout

    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self._timeout, follow_redirects=True)
        return self._client

    def close(self) -> None:
        """Close the HTTP client if this provisioner created it."""
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def local_paths(self, dataset: Dataset) -> list[Path]:
        """Cache paths of every file of a dataset, in stream order."""
        descriptor = DATASETS[dataset]
        return [self.cache_dir / name for name in descriptor.cache_files]

    def is_cached(self, dataset: Dataset) -> bool:
        return self.local_paths(dataset)[0].exists()

    def ensure_local(self, dataset: Dataset) -> Path:
        """Download a dataset unless its cache file already exists.

        Only the first cache file is checked, and nothing is checksummed.

        Returns:
            Path to the first cache file

        Raises:
            ProvisionError: If a download fails.

        """
        descriptor = DATASETS[dataset]
        paths = self.local_paths(dataset)
        if paths[0].exists():
            return paths[0]

        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            msg = f"Cannot create cache directory {self.cache_dir}: {e}"
            raise ProvisionError(msg) from e

        # The first file marks the cache as complete, so it is fetched last.
        pairs = list(zip(descriptor.urls, paths))
        for url, path in pairs[1:] + pairs[:1]:
            if path.exists():
                continue
            self._download(url, path)

        return paths[0]

    def _download(self, url: str, dest: Path) -> None:
        part = dest.with_name(dest.name + ".part")
        logger.info("Downloading %s", url)
        try:
            with self._http().stream("GET", url) as response:
                _ = response.raise_for_status()
                with part.open("wb") as f:
                    for chunk in response.iter_bytes(DOWNLOAD_CHUNK_SIZE):
                        _ = f.write(chunk)
            _ = part.replace(dest)
        except httpx.HTTPError as e:
            part.unlink(missing_ok=True)
            msg = f"Failed to download {url}: {e}"
            raise ProvisionError(msg) from e
        except OSError as e:
            part.unlink(missing_ok=True)
            msg = f"Failed to write {dest}: {e}"
            raise ProvisionError(msg) from e

    def _iter_lines(self, descriptor: DatasetDescriptor) -> Iterator[str]:
        paths = self.local_paths(descriptor.name)
        if descriptor.archive_format is ArchiveFormat.TAR_GZIP:
            yield from _iter_tar_lines(paths[0])
        elif descriptor.archive_format is ArchiveFormat.GZIP:
            yield from _iter_gzip_lines(paths[0])
        else:
            for path in paths:
                yield from _iter_gzip_lines(path)

    def stream_records(self, dataset: Dataset) -> Iterator[Record]:
        """Yield the normalized records of a cached dataset.

        The stream is single-pass; call again to re-read from the start.

        Raises:
            ProvisionError: If an archive cannot be decompressed or a line is
                not a JSON object.

        """
        descriptor = DATASETS[dataset]
        normalize = NORMALIZERS[descriptor.normalization]
        lines = self._iter_lines(descriptor)
        lineno = 0
        try:
            for lineno, raw_line in enumerate(lines, start=1):
                line = raw_line.strip()
                if not line:
                    continue
                try:
                    record = json.loads(line)
                except json.JSONDecodeError as e:
                    msg = f"{dataset.value}: invalid JSON on line {lineno}: {e}"
                    raise ProvisionError(msg) from e
                if not isinstance(record, dict):
                    msg = f"{dataset.value}: line {lineno} is not a JSON object"
                    raise ProvisionError(msg)
                yield normalize(cast("Record", record))
        except (
            OSError,
            EOFError,
            UnicodeDecodeError,
            tarfile.TarError,
            zlib.error,
        ) as e:
            msg = f"{dataset.value}: cannot decompress archive after line {lineno}: {e}"
            raise ProvisionError(msg) from e
