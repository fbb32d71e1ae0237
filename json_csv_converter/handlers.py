from __future__ import annotations

import logging
import os
import tempfile
from typing import List, Optional, Sequence

import gradio as gr
import pandas as pd

from .config import ConversionConfig, delimiter_from_label
from .errors import ConversionError
from .io_utils import load_json, read_json_text
from .jobs import ConversionResult, Converter
from .tabular import discover_columns, filter_rows

logger = logging.getLogger(__name__)


def load_json_file(file_obj):
    """Read an uploaded file and offer its columns for selection."""
    if file_obj is None:
        return None, gr.update(choices=[], value=[]), "No file uploaded."

    try:
        text = read_json_text(file_obj)
    except OSError as e:
        return None, gr.update(choices=[], value=[]), f"Failed to read JSON file: {e}"
    except ConversionError as e:
        return None, gr.update(choices=[], value=[]), str(e)

    try:
        columns = discover_columns(load_json(text))
    except ConversionError as e:
        return None, gr.update(choices=[], value=[]), str(e)

    message = f"JSON file loaded successfully. Found {len(columns)} columns."
    return text, gr.update(choices=columns, value=[]), message


def build_config(
    delimiter_label: str,
    include_header: bool,
    quote_fields: bool,
    max_preview_rows,
    cell_format: str,
    selected_columns: Optional[Sequence[str]],
) -> ConversionConfig:
    return ConversionConfig.from_defaults(
        delimiter=delimiter_from_label(delimiter_label),
        include_header=bool(include_header),
        quote_fields=bool(quote_fields),
        max_preview_rows=int(max_preview_rows if max_preview_rows is not None else 0),
        cell_format=cell_format or 'json',
        selected_columns=tuple(selected_columns or ()),
    )


def start_conversion(
    converter: Converter,
    json_text: Optional[str],
    delimiter_label: str,
    include_header: bool,
    quote_fields: bool,
    max_preview_rows,
    cell_format: str,
    selected_columns: Optional[List[str]],
) -> str:
    if json_text is None:
        return "No JSON content loaded"

    try:
        config = build_config(delimiter_label, include_header, quote_fields, max_preview_rows, cell_format, selected_columns)
    except ValueError as e:
        return f"Invalid settings: {e}"

    try:
        job = converter.start(json_text, config)
    except ConversionError as e:
        return str(e)

    logger.info("Started conversion job %s", job.job_id)
    return converter.progress().status


def cancel_conversion(converter: Converter) -> str:
    job = converter.current_job
    if job is None or not job.cancel():
        return "No conversion in progress"
    return "Cancelling..."


def finished_result(converter: Converter) -> Optional[ConversionResult]:
    """Result of the latest job, or None while running or after a failure."""
    job = converter.current_job
    if job is None or not job.done() or job.exception() is not None:
        return None
    return job.result()


def preview_frame(result: Optional[ConversionResult], query: str = '') -> Optional[pd.DataFrame]:
    if result is None:
        return None
    rows = filter_rows(result.preview_rows, query)
    if result.config.include_header:
        columns = list(result.header)
    else:
        # headers are not part of the output, label columns by position
        columns = [str(i + 1) for i in range(len(result.header))]
    return pd.DataFrame(rows, columns=columns)


def poll_conversion(converter: Converter, query: str = ''):
    """Timer callback: progress percent, status text and the preview."""
    snapshot = converter.progress()
    return snapshot.percent, snapshot.status, preview_frame(finished_result(converter), query)


def search_preview(converter: Converter, query: str):
    return preview_frame(finished_result(converter), query)


def save_csv_file(converter: Converter, file_name: Optional[str]):
    result = finished_result(converter)
    if result is None:
        return None, "No converted CSV to save."

    if not file_name or not file_name.strip():
        file_name = "output"
    file_name = file_name.strip()
    if not file_name.lower().endswith('.csv'):
        file_name += '.csv'

    path = os.path.join(tempfile.gettempdir(), os.path.basename(file_name))

    try:
        with open(path, 'w', newline='', encoding='utf-8') as f:
            f.write(result.csv_text)
    except OSError as e:
        return None, f"Failed to save CSV file: {e}"

    return path, f"CSV file saved successfully ({result.row_count} rows)"