from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .config import unique_columns
from .errors import ConversionCancelled, UnsupportedStructureError

Row = List[str]


@dataclass
class TableResult:
    header: Tuple[str, ...]
    rows: List[Row] = field(default_factory=list)
    preview_rows: List[Row] = field(default_factory=list)
    # array elements that were not objects and produced no row
    skipped: int = 0


def format_cell(value: Any, cell_format: str = 'json') -> str:
    """Stringify one JSON value for a CSV cell.

    The default 'json' format writes the value's compact JSON text, so a
    string keeps its quotes and nested values are embedded as JSON. The
    'text' format writes strings bare and null as an empty cell.
    """
    if cell_format == 'text':
        if value is None:
            return ''
        if isinstance(value, str):
            return value
    return json.dumps(value, ensure_ascii=False, separators=(',', ':'))


def build_row(record: Dict[str, Any], columns: Sequence[str], cell_format: str = 'json') -> Row:
    return [format_cell(record[c], cell_format) if c in record else '' for c in columns]


def discover_columns(doc: Any) -> List[str]:
    """Columns a conversion would infer: keys of the first object."""
    if isinstance(doc, dict):
        return list(doc.keys())
    if isinstance(doc, list) and doc and isinstance(doc[0], dict):
        return list(doc[0].keys())
    return []


def _require_columns(header: Tuple[str, ...]) -> None:
    if not header:
        raise UnsupportedStructureError("Unsupported JSON structure: object has no keys and no columns were selected")


def tabularize(
    doc: Any,
    requested_columns: Optional[Sequence[str]] = None,
    preview_limit: int = 100,
    cell_format: str = 'json',
    on_row: Optional[Callable[[int, int], None]] = None,
    should_stop: Optional[Callable[[], bool]] = None,
) -> TableResult:
    """Flatten an array of objects, or a single object, into header + rows.

    The header is `requested_columns` when given, otherwise the keys of the
    first object. Later objects are never inspected for extra keys; a
    column missing from an object yields an empty cell.
    """
    requested = unique_columns(requested_columns)
    limit = max(0, int(preview_limit))

    if isinstance(doc, dict):
        header = requested or tuple(doc.keys())
        _require_columns(header)
        rows = [build_row(doc, header, cell_format)]
        if on_row is not None:
            on_row(1, 1)
        return TableResult(header=header, rows=rows, preview_rows=rows[:limit])

    if not isinstance(doc, list):
        kind = 'null' if doc is None else type(doc).__name__
        raise UnsupportedStructureError(f"Unsupported JSON structure: top-level {kind} value")

    if not doc:
        raise UnsupportedStructureError("Unsupported JSON structure: array is empty")

    first = doc[0]
    if not isinstance(first, dict):
        raise UnsupportedStructureError("Unsupported JSON structure: first array element is not an object")

    header = requested or tuple(first.keys())
    _require_columns(header)
    rows: List[Row] = []
    skipped = 0
    total = len(doc)

    for i, item in enumerate(doc):
        if should_stop is not None and should_stop():
            raise ConversionCancelled("Conversion cancelled")
        if isinstance(item, dict):
            rows.append(build_row(item, header, cell_format))
        else:
            skipped += 1
        if on_row is not None:
            on_row(i + 1, total)

    return TableResult(header=header, rows=rows, preview_rows=rows[:limit], skipped=skipped)


def filter_rows(rows: Sequence[Row], query: str | None) -> List[Row]:
    """Case-insensitive substring search over rows."""
    rows = list(rows or [])
    needle = (query or '').strip().lower()
    if not needle:
        return rows
    return [row for row in rows if any(needle in cell.lower() for cell in row)]
