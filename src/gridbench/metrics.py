# Copyright (c) Syntropy Systems
"""Parsers for the indexing service's textual status reports."""
from __future__ import annotations

import re

from gridbench.errors import ParseError
from gridbench.models.grid import IndexStats, SplitInfo

ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")

DOCS_LABEL = "Number of published documents"
SPLITS_LABEL = "Number of published splits"
PUBLISHED = "Published"
STORE_SUFFIX = ".store"

SPLIT_ID_HEADERS = ("split id",)
STATUS_HEADERS = ("status", "split state", "state")
SIZE_HEADERS = ("size (mb)", "size")
# Cell positions in `split list` output when no header row is found.
SPLIT_ID_COLUMN = 0
SIZE_COLUMN = 3


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE.sub("", text)


def _parse_int(token: str, what: str) -> int:
    cleaned = token.strip().replace(",", "")
    try:
        value = int(cleaned)
    except ValueError as e:
        msg = f"{what} is not an integer: {token.strip()!r}"
        raise ParseError(msg) from e
    if value < 0:
        msg = f"{what} is negative: {value}"
        raise ParseError(msg)
    return value


def _labeled_value(lines: list[str], label: str) -> int:
    matches = [line for line in lines if label in line]
    if not matches:
        msg = f"'{label}' not found in describe output"
        raise ParseError(msg)
    if len(matches) > 1:
        msg = f"'{label}' appears {len(matches)} times in describe output"
        raise ParseError(msg)

    _, sep, value = matches[0].partition(":")
    tokens = value.split()
    if not sep or not tokens:
        msg = f"'{label}' has no value"
        raise ParseError(msg)
    return _parse_int(tokens[-1], label)


def parse_describe(report: str) -> IndexStats:
    """Extract document and split counts from `index describe` output.

    Raises:
        ParseError: If a label is missing, repeated, or its value is not numeric.

    """
    lines = strip_ansi(report).splitlines()
    return IndexStats(
        num_docs=_labeled_value(lines, DOCS_LABEL),
        num_splits=_labeled_value(lines, SPLITS_LABEL),
    )


def _cells(line: str) -> list[str]:
    """Split a table line into cells, dropping the border pipes."""
    stripped = line.strip()
    if stripped.startswith("|"):
        stripped = stripped[1:]
    if stripped.endswith("|"):
        stripped = stripped[:-1]
    return [cell.strip() for cell in stripped.split("|")]


def _find_column(header: list[str], names: tuple[str, ...]) -> int | None:
    lowered = [cell.lower() for cell in header]
    for name in names:
        if name in lowered:
            return lowered.index(name)
    return None


def parse_split_list(table: str) -> SplitInfo:
    """Select the single published split from `split list` output.

    Columns are located by header name when a header row is present;
    otherwise the CLI's fixed positions are used.

    Raises:
        ParseError: If zero or several splits are published, or the row is
            missing the id or size.

    """
    rows = [
        _cells(line)
        for line in strip_ansi(table).splitlines()
        if line.strip().startswith("|")
    ]

    id_col, status_col, size_col = SPLIT_ID_COLUMN, None, SIZE_COLUMN
    if rows:
        header = rows[0]
        found_id = _find_column(header, SPLIT_ID_HEADERS)
        if found_id is not None:
            rows = rows[1:]
            id_col = found_id
            status_col = _find_column(header, STATUS_HEADERS)
            found_size = _find_column(header, SIZE_HEADERS)
            if found_size is not None:
                size_col = found_size

    if status_col is None:
        published = [row for row in rows if PUBLISHED in row]
    else:
        published = [
            row for row in rows
            if len(row) > status_col and row[status_col] == PUBLISHED
        ]

    if not published:
        msg = "no published split in split list"
        raise ParseError(msg)
    if len(published) > 1:
        msg = f"{len(published)} published splits in split list, expected exactly one"
        raise ParseError(msg)

    row = published[0]
    if len(row) <= max(id_col, size_col):
        msg = f"published split row has {len(row)} columns"
        raise ParseError(msg)
    split_id = row[id_col]
    if not split_id:
        msg = "published split has an empty id"
        raise ParseError(msg)
    return SplitInfo(split_id=split_id, size=_parse_int(row[size_col], "split size"))


def parse_split_describe(report: str) -> int:
    """Return the size in bytes of the split's `.store` file.

    The store line looks like `<file>.store <bytes> ...`; the size is its
    second whitespace-separated token.

    Raises:
        ParseError: If no line or several lines name a store file, or the size
            is not numeric.

    """
    matches = [
        line for line in strip_ansi(report).splitlines() if STORE_SUFFIX in line
    ]
    if not matches:
        msg = "store file size not found in split describe output"
        raise ParseError(msg)
    if len(matches) > 1:
        msg = f"{len(matches)} store file lines in split describe output"
        raise ParseError(msg)

    tokens = matches[0].split()
    if len(tokens) < 2:  # noqa: PLR2004
        msg = f"store file line has no size: {matches[0].strip()!r}"
        raise ParseError(msg)
    return _parse_int(tokens[1], "store file size")
