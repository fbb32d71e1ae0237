"""Core logic for the JSON to CSV Converter.

The Gradio UI lives in `app.py`. This package contains the conversion core:
- load JSON text into Python values
- tabularize arrays of objects (or a single object) into header + rows
- serialize rows as CSV text
- run one conversion at a time on a worker thread with pollable progress
"""

from .config import ConversionConfig, QuotePolicy
from .errors import (
    ConversionCancelled,
    ConversionError,
    JobInProgressError,
    ParseError,
    SerializeError,
    UnsupportedStructureError,
)
from .io_utils import load_json, read_json_text
from .jobs import ConversionJob, ConversionResult, Converter, run_conversion
from .progress import ConversionProgress, ProgressTracker
from .serializer import serialize
from .tabular import TableResult, discover_columns, filter_rows, tabularize

__all__ = [
    'ConversionCancelled',
    'ConversionConfig',
    'ConversionError',
    'ConversionJob',
    'ConversionProgress',
    'ConversionResult',
    'Converter',
    'JobInProgressError',
    'ParseError',
    'ProgressTracker',
    'QuotePolicy',
    'SerializeError',
    'TableResult',
    'UnsupportedStructureError',
    'discover_columns',
    'filter_rows',
    'load_json',
    'read_json_text',
    'run_conversion',
    'serialize',
    'tabularize',
]
