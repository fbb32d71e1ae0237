from __future__ import annotations

import json
import math
import os
from typing import Any

from .errors import ParseError


def read_json_text(file_obj) -> str:
    """Read JSON text from an uploaded file, a file-like object or a path."""
    if file_obj is None:
        raise ValueError("No file uploaded.")

    if hasattr(file_obj, 'read'):
        if hasattr(file_obj, 'seek'):
            file_obj.seek(0)
        content = file_obj.read()
        if isinstance(content, (bytes, bytearray)):
            content = _decode(content)
        elif isinstance(content, str) and content.startswith("\ufeff"):
            content = content[1:]
        return content

    path = file_obj.name if hasattr(file_obj, 'name') else file_obj
    with open(os.fspath(path), 'rb') as f:
        return _decode(f.read())


def _decode(raw: bytes | bytearray) -> str:
    try:
        # utf-8-sig strips a leading BOM and is otherwise plain UTF-8
        return bytes(raw).decode('utf-8-sig')
    except UnicodeDecodeError as exc:
        raise ParseError(f"JSON parsing error: input is not valid UTF-8 ({exc.reason} at byte {exc.start})") from exc


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def _parse_finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number out of range: {text}")
    return value


def load_json(source: bytes | bytearray | str) -> Any:
    """Parse one JSON value from raw bytes or text.

    Raises ParseError with the parser's reason and position. There is no
    repair or partial result.
    """
    if isinstance(source, (bytes, bytearray)):
        text = _decode(source)
    elif isinstance(source, str):
        text = source
    else:
        raise TypeError(f"Expected bytes or str, got {type(source).__name__}")

    try:
        return json.loads(text, parse_constant=_reject_constant, parse_float=_parse_finite_float)
    except json.JSONDecodeError as exc:
        raise ParseError(f"JSON parsing error: {exc}") from exc
    except ValueError as exc:
        raise ParseError(f"JSON parsing error: {exc}") from exc
    except RecursionError as exc:
        raise ParseError("JSON parsing error: nesting too deep") from exc
