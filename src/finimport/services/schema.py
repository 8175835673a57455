"""Detect column catalogs and raw rows from decoded import sources."""

from __future__ import annotations

import csv
import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping, Optional, Union

from ..logging_config import get_logger
from .errors import MalformedSourceError
from .readers import RawSource

if TYPE_CHECKING:  # pragma: no cover
    from .mapping import FieldMapping

logger = get_logger(__name__)

SEPARATORS: tuple[str, ...] = (",", ";", "\t", "|")
_SEPARATOR_ALIASES = {"\\t": "\t", "tab": "\t", "comma": ",", "semicolon": ";", "pipe": "|"}

ColumnRef = Union[str, int]


def normalize_separator(separator: str) -> str:
    """Return the canonical separator character, accepting a few aliases."""

    resolved = _SEPARATOR_ALIASES.get(separator.lower(), separator) if separator else separator
    if resolved not in SEPARATORS:
        raise ValueError(f"Unsupported separator: {separator!r}")
    return resolved


def split_cells(line: str, separator: str) -> list[str]:
    """Split one delimited line; cells are trimmed and stripped of quotes."""

    cells = next(csv.reader([line], delimiter=separator, quotechar='"'), [])
    return [cell.strip().replace('"', "") for cell in cells]


@dataclass(frozen=True)
class DelimitedRow:
    """A CSV-style row; cells are looked up by header name or 0-based position."""

    cells: tuple[str, ...]
    columns: tuple[str, ...] = ()

    def get(self, reference: Optional[ColumnRef]) -> Optional[str]:
        if reference is None or reference == "":
            return None
        index: Optional[int] = None
        if self.columns:
            if isinstance(reference, str) and reference in self.columns:
                index = self.columns.index(reference)
        elif isinstance(reference, int) or str(reference).strip().isdigit():
            index = int(reference)
        if index is None or index >= len(self.cells):
            return None
        return self.cells[index]


@dataclass(frozen=True)
class JsonRow:
    """A loosely-typed JSON object; canonical names are read straight from its keys."""

    fields: Mapping[str, Any] = field(default_factory=dict)

    def get(self, reference: Optional[ColumnRef]) -> Any:
        if reference is None or reference == "":
            return None
        return self.fields.get(str(reference))


RawRow = Union[DelimitedRow, JsonRow]


@dataclass(frozen=True)
class DetectedSchema:
    """Column catalog plus the ordered raw rows of a source."""

    columns: tuple[str, ...]
    rows: tuple[RawRow, ...]
    format: str = "csv"

    @property
    def is_json(self) -> bool:
        return self.format == "json"


def detect_columns(header_line: str, separator: str) -> tuple[str, ...]:
    """Return distinct header names in order; later duplicates are dropped."""

    seen: list[str] = []
    for name in split_cells(header_line, separator):
        if name in seen:
            logger.warning("Duplicate header ignored", extra={"column": name})
            continue
        seen.append(name)
    return tuple(seen)


def detect_delimited(lines: tuple[str, ...], *, separator: str, has_headers: bool) -> DetectedSchema:
    separator = normalize_separator(separator)
    if not lines:
        return DetectedSchema(columns=(), rows=(), format="csv")

    columns: tuple[str, ...] = ()
    header: tuple[str, ...] = ()
    body = lines
    if has_headers:
        header = tuple(split_cells(lines[0], separator))
        columns = detect_columns(lines[0], separator)
        body = lines[1:]

    # Rows keep the raw header so duplicated names resolve to their first position.
    rows: list[RawRow] = [
        DelimitedRow(cells=tuple(split_cells(line, separator)), columns=header) for line in body
    ]

    logger.info(
        "Detected delimited schema",
        extra={"columns": list(columns), "rows": len(rows), "has_headers": has_headers},
    )
    return DetectedSchema(columns=columns, rows=tuple(rows), format="csv")


def detect_json(text: str) -> DetectedSchema:
    """Accept a top-level array or a ``{"data": [...]}`` wrapper; anything else is empty."""

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error("Malformed JSON import", extra={"error": str(exc)})
        raise MalformedSourceError(f"Invalid JSON: {exc.msg} (line {exc.lineno})") from exc

    items: list[Any]
    if isinstance(payload, list):
        items = payload
    elif isinstance(payload, dict) and isinstance(payload.get("data"), list):
        items = payload["data"]
    else:
        logger.warning("JSON import has no record array; treating as empty")
        items = []

    rows = tuple(JsonRow(fields=item if isinstance(item, dict) else {}) for item in items)
    logger.info("Detected JSON schema", extra={"rows": len(rows)})
    return DetectedSchema(columns=(), rows=rows, format="json")


def detect(source: RawSource, *, separator: str = ",", has_headers: bool = True) -> DetectedSchema:
    """Extract the column catalog and raw rows from ``source``."""

    if source.format == "json":
        return detect_json(source.text)
    return detect_delimited(source.lines, separator=separator, has_headers=has_headers)


def field_value(row: RawRow, canonical_field: str, mapping: "FieldMapping") -> Any:
    """Return the raw value of ``canonical_field`` for ``row`` under ``mapping``."""

    if isinstance(row, JsonRow):
        return row.get(canonical_field)
    return row.get(mapping.column_for(canonical_field))
