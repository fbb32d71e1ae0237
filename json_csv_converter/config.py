from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, Tuple


# Process-wide defaults, overridable through the environment.
DEFAULT_DELIMITER: str = os.environ.get("JSON_CSV_DELIMITER", ",")
DEFAULT_INCLUDE_HEADER: bool = (os.environ.get("JSON_CSV_INCLUDE_HEADER", "1").strip() != "0")
DEFAULT_QUOTE_FIELDS: bool = (os.environ.get("JSON_CSV_QUOTE_FIELDS", "1").strip() != "0")
DEFAULT_MAX_PREVIEW_ROWS: int = int(os.environ.get("JSON_CSV_MAX_PREVIEW_ROWS", "100"))
DEFAULT_CELL_FORMAT: str = os.environ.get("JSON_CSV_CELL_FORMAT", "json").strip().lower()
POLL_SECONDS: float = float(os.environ.get("JSON_CSV_POLL_SECONDS", "0.25"))
LOG_LEVEL: str = os.environ.get("JSON_CSV_LOG_LEVEL", "INFO").strip().upper()

# UI bounds for the preview-row slider
MIN_PREVIEW_ROWS_UI: int = 10
MAX_PREVIEW_ROWS_UI: int = 1000

DELIMITER_CHOICES: Dict[str, str] = {
    "Comma (,)": ",",
    "Semicolon (;)": ";",
    "Tab": "\t",
}

CELL_FORMATS: Tuple[str, ...] = ("json", "text")


class QuotePolicy(Enum):
    NECESSARY = "necessary"
    NEVER = "never"


def unique_columns(columns: Iterable[str] | None) -> Tuple[str, ...]:
    """Drop repeated column names, keeping the first occurrence."""
    if not columns:
        return ()
    return tuple(dict.fromkeys(str(c) for c in columns))


@dataclass(frozen=True)
class ConversionConfig:
    """Options for one conversion job. Immutable once the job starts."""

    delimiter: str = ","
    include_header: bool = True
    quote_fields: bool = True
    max_preview_rows: int = 100
    selected_columns: Tuple[str, ...] = field(default_factory=tuple)
    cell_format: str = "json"

    def __post_init__(self):
        if not isinstance(self.delimiter, str) or len(self.delimiter) != 1:
            raise ValueError(f"Delimiter must be a single character, got {self.delimiter!r}")
        if self.delimiter in ('"', '\r', '\n'):
            raise ValueError(f"Delimiter cannot be {self.delimiter!r}")
        if isinstance(self.max_preview_rows, bool) or int(self.max_preview_rows) < 0:
            raise ValueError("max_preview_rows must be a non-negative integer")
        if self.cell_format not in CELL_FORMATS:
            raise ValueError(f"cell_format must be one of {', '.join(CELL_FORMATS)}")
        # frozen: normalise through object.__setattr__
        object.__setattr__(self, 'max_preview_rows', int(self.max_preview_rows))
        object.__setattr__(self, 'selected_columns', unique_columns(self.selected_columns))

    @property
    def quote_policy(self) -> QuotePolicy:
        return QuotePolicy.NECESSARY if self.quote_fields else QuotePolicy.NEVER

    @classmethod
    def from_defaults(cls, **overrides) -> "ConversionConfig":
        base = cls(
            delimiter=DEFAULT_DELIMITER,
            include_header=DEFAULT_INCLUDE_HEADER,
            quote_fields=DEFAULT_QUOTE_FIELDS,
            max_preview_rows=DEFAULT_MAX_PREVIEW_ROWS,
            cell_format=DEFAULT_CELL_FORMAT,
        )
        return replace(base, **overrides) if overrides else base


def delimiter_from_label(label: str | None) -> str:
    """Map a UI delimiter label to its character; raw characters pass through."""
    if not label:
        return DEFAULT_DELIMITER
    if label in DELIMITER_CHOICES:
        return DELIMITER_CHOICES[label]
    if label in ("\\t", "tab", "TAB"):
        return "\t"
    return label
