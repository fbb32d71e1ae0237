from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple
from uuid import uuid4

from .config import ConversionConfig
from .errors import ConversionCancelled, ConversionError, JobInProgressError
from .io_utils import load_json
from .progress import ConversionProgress, ProgressTracker
from .serializer import serialize
from .tabular import Row, tabularize

logger = logging.getLogger(__name__)

# Progress milestones
PARSED = 0.2
CONVERTING = 0.4
ROWS_SPAN = 0.5
FINALIZING = 0.9


@dataclass
class ConversionResult:
    header: Tuple[str, ...]
    rows: List[Row]
    preview_rows: List[Row]
    csv_text: str
    skipped: int = 0
    config: ConversionConfig = field(default_factory=ConversionConfig)

    @property
    def row_count(self) -> int:
        return len(self.rows)


def run_conversion(
    source: bytes | str,
    config: Optional[ConversionConfig] = None,
    tracker: Optional[ProgressTracker] = None,
    should_stop: Optional[Callable[[], bool]] = None,
    job_id: str = '-',
) -> ConversionResult:
    """Load, tabularize and serialize in one pass on the calling thread.

    Any ConversionError is written to the tracker's status, clears the
    in-progress flag and is re-raised; nothing is returned on failure.
    """
    config = config or ConversionConfig()
    tracker = tracker or ProgressTracker()
    tracker.start()

    def check_stop():
        if should_stop is not None and should_stop():
            raise ConversionCancelled("Conversion cancelled")

    def on_row(done: int, total: int):
        tracker.update(CONVERTING + ROWS_SPAN * done / total)

    logger.info("[%s] Starting conversion (input size %d)", job_id, len(source) if source is not None else 0)
    try:
        doc = load_json(source)
        tracker.update(PARSED, "JSON parsed")
        check_stop()

        tracker.update(CONVERTING, "Converting to CSV...")
        table = tabularize(
            doc,
            requested_columns=config.selected_columns,
            preview_limit=config.max_preview_rows,
            cell_format=config.cell_format,
            on_row=on_row,
            should_stop=should_stop,
        )
        check_stop()

        tracker.update(FINALIZING, "Finalizing...")
        csv_text = serialize(table.header, table.rows, config)
    except ConversionCancelled as exc:
        logger.info("[%s] %s", job_id, exc)
        tracker.fail(str(exc))
        raise
    except ConversionError as exc:
        logger.warning("[%s] Conversion failed: %s", job_id, exc)
        tracker.fail(str(exc))
        raise

    tracker.finish()
    logger.info("[%s] Converted %d rows (%d skipped)", job_id, len(table.rows), table.skipped)
    return ConversionResult(
        header=table.header,
        rows=table.rows,
        preview_rows=table.preview_rows,
        csv_text=csv_text,
        skipped=table.skipped,
        config=config,
    )


class ConversionJob:
    """Handle for a conversion running on a worker thread."""

    def __init__(self, job_id: str | None = None):
        self.job_id = job_id or uuid4().hex
        self._future: Future = Future()
        self._stop = threading.Event()

    def cancel(self) -> bool:
        """Ask the worker to stop before the next row. False if already finished."""
        if self._future.done():
            return False
        self._stop.set()
        return True

    @property
    def cancel_requested(self) -> bool:
        return self._stop.is_set()

    def cancelled(self) -> bool:
        if not self._future.done():
            return False
        return isinstance(self._future.exception(), ConversionCancelled)

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: float | None = None) -> ConversionResult:
        return self._future.result(timeout)

    def exception(self, timeout: float | None = None):
        return self._future.exception(timeout)

    def add_done_callback(self, fn: Callable[["ConversionJob"], None]) -> None:
        self._future.add_done_callback(lambda _f: fn(self))


class Converter:
    """Runs at most one conversion at a time and exposes its progress for polling."""

    def __init__(self, tracker: ProgressTracker | None = None):
        self._tracker = tracker or ProgressTracker()
        self._lock = threading.Lock()
        self._job: ConversionJob | None = None

    @property
    def current_job(self) -> ConversionJob | None:
        with self._lock:
            return self._job

    def is_busy(self) -> bool:
        job = self.current_job
        return job is not None and not job.done()

    def progress(self) -> ConversionProgress:
        return self._tracker.snapshot()

    def start(self, source: bytes | str, config: ConversionConfig | None = None) -> ConversionJob:
        with self._lock:
            if self._job is not None and not self._job.done():
                raise JobInProgressError("A conversion is already in progress")
            job = ConversionJob()
            self._job = job
            # visible to pollers before the worker is scheduled
            self._tracker.start()

        worker = threading.Thread(
            target=self._run,
            args=(job, source, config or ConversionConfig()),
            name=f"json-csv-{job.job_id[:8]}",
            daemon=True,
        )
        worker.start()
        return job

    def _run(self, job: ConversionJob, source, config: ConversionConfig) -> None:
        future = job._future
        try:
            result = run_conversion(
                source,
                config,
                tracker=self._tracker,
                should_stop=job._stop.is_set,
                job_id=job.job_id[:8],
            )
        except ConversionError as exc:
            future.set_exception(exc)
        except Exception as exc:
            logger.exception("[%s] Unexpected conversion failure", job.job_id[:8])
            self._tracker.fail(f"Conversion failed: {exc}")
            future.set_exception(exc)
        else:
            future.set_result(result)
