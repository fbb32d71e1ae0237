from __future__ import annotations

import csv
import io
from typing import Sequence

from .config import ConversionConfig, QuotePolicy
from .errors import SerializeError

RECORD_TERMINATOR = '\n'


def serialize(header: Sequence[str], rows: Sequence[Sequence[str]], config: ConversionConfig) -> str:
    """Render header and rows as CSV text.

    With QuotePolicy.NEVER fields are joined verbatim, so a cell holding the
    delimiter or a line break makes the output ambiguous.
    """
    if config.quote_policy is QuotePolicy.NEVER:
        text = _join_unquoted(header, rows, config)
    else:
        text = _write_quoted(header, rows, config)

    try:
        text.encode('utf-8')
    except UnicodeEncodeError as exc:
        raise SerializeError(f"CSV generation error: {exc}") from exc
    return text


def _write_quoted(header, rows, config: ConversionConfig) -> str:
    output = io.StringIO(newline='')
    writer = csv.writer(
        output,
        delimiter=config.delimiter,
        quotechar='"',
        doublequote=True,
        quoting=csv.QUOTE_MINIMAL,
        lineterminator=RECORD_TERMINATOR,
    )
    try:
        if config.include_header:
            writer.writerow(header)
        writer.writerows(rows)
    except csv.Error as exc:
        raise SerializeError(f"CSV generation error: {exc}") from exc
    return output.getvalue()


def _join_unquoted(header, rows, config: ConversionConfig) -> str:
    lines = []
    if config.include_header:
        lines.append(config.delimiter.join(header))
    lines.extend(config.delimiter.join(row) for row in rows)
    return ''.join(line + RECORD_TERMINATOR for line in lines)
