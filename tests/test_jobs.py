import threading

import pytest

from json_csv_converter.config import ConversionConfig
from json_csv_converter.errors import (
    ConversionCancelled,
    JobInProgressError,
    ParseError,
    SerializeError,
    UnsupportedStructureError,
)
from json_csv_converter.jobs import Converter, run_conversion
from json_csv_converter.progress import ProgressTracker


class RecordingTracker(ProgressTracker):
    def __init__(self):
        super().__init__()
        self.fractions = []

    def update(self, fraction, status=None):
        super().update(fraction, status)
        self.fractions.append(self.snapshot().fraction)


class GatedTracker(ProgressTracker):
    """Blocks the worker on its first progress update until released."""

    def __init__(self):
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def update(self, fraction, status=None):
        super().update(fraction, status)
        if not self.entered.is_set():
            self.entered.set()
            self.release.wait(5)


def test_run_conversion_defaults():
    result = run_conversion('[{"a":1,"b":"x"},{"a":2,"b":"y"}]', ConversionConfig(cell_format="text"))
    assert result.header == ("a", "b")
    assert result.csv_text == "a,b\n1,x\n2,y\n"
    assert result.row_count == 2


def test_run_conversion_single_object():
    result = run_conversion('{"a":1,"b":2}')
    assert result.csv_text == "a,b\n1,2\n"


def test_run_conversion_selected_columns():
    result = run_conversion('[{"a":1,"b":2}]', ConversionConfig(selected_columns=("b", "a")))
    assert result.csv_text == "b,a\n2,1\n"


def test_run_conversion_keeps_json_text_cells_by_default():
    result = run_conversion('[{"a":1,"b":"x"}]')
    assert result.rows == [["1", '"x"']]
    assert result.csv_text == 'a,b\n1,"""x"""\n'


def test_progress_milestones_are_monotonic():
    tracker = RecordingTracker()
    run_conversion(b'[{"a":1},{"a":2}]', tracker=tracker)

    fractions = tracker.fractions
    assert fractions == sorted(fractions)
    assert fractions[0] == pytest.approx(0.2)
    assert 0.4 in fractions
    assert pytest.approx(0.65) in fractions
    assert fractions[-1] == pytest.approx(0.9)

    state = tracker.snapshot()
    assert state.fraction == 1.0
    assert state.in_progress is False
    assert state.status == "Conversion completed successfully"


@pytest.mark.parametrize(
    "source, error, prefix",
    [
        ("{not json", ParseError, "JSON parsing error"),
        ("42", UnsupportedStructureError, "Unsupported JSON structure"),
        ("[]", UnsupportedStructureError, "Unsupported JSON structure"),
        ('[{"a":"\\ud800"}]', SerializeError, "CSV generation error"),
    ],
)
def test_failures_are_reported_through_progress(source, error, prefix):
    tracker = ProgressTracker()
    with pytest.raises(error):
        run_conversion(source, tracker=tracker)
    state = tracker.snapshot()
    assert state.in_progress is False
    assert state.status.startswith(prefix)
    assert state.fraction < 1.0


def test_converter_runs_in_background():
    converter = Converter()
    job = converter.start('[{"a":1},{"b":2}]')
    result = job.result(timeout=5)

    assert result.header == ("a",)
    assert result.rows == [["1"], [""]]
    assert job.done()
    assert not job.cancelled()
    assert converter.current_job is job
    assert not converter.is_busy()

    state = converter.progress()
    assert state.fraction == 1.0
    assert state.in_progress is False


def test_converter_reports_failure():
    converter = Converter()
    job = converter.start("42")
    assert isinstance(job.exception(timeout=5), UnsupportedStructureError)
    state = converter.progress()
    assert state.in_progress is False
    assert state.status.startswith("Unsupported JSON structure")


def test_second_job_is_rejected_while_first_runs():
    tracker = GatedTracker()
    converter = Converter(tracker=tracker)
    job = converter.start('[{"a":1}]')
    assert tracker.entered.wait(5)

    assert converter.is_busy()
    assert converter.progress().in_progress is True
    with pytest.raises(JobInProgressError):
        converter.start('[{"a":2}]')

    tracker.release.set()
    assert job.result(timeout=5).rows == [["1"]]

    follow_up = converter.start('[{"a":2}]')
    assert follow_up.result(timeout=5).rows == [["2"]]


def test_cancel_stops_the_job():
    tracker = GatedTracker()
    converter = Converter(tracker=tracker)
    job = converter.start('[{"a":1},{"a":2}]')
    assert tracker.entered.wait(5)

    assert job.cancel() is True
    assert job.cancel_requested
    tracker.release.set()

    assert isinstance(job.exception(timeout=5), ConversionCancelled)
    assert job.cancelled()
    state = converter.progress()
    assert state.status == "Conversion cancelled"
    assert state.in_progress is False


def test_cancel_after_completion_is_a_no_op():
    converter = Converter()
    job = converter.start('{"a":1}')
    job.result(timeout=5)
    assert job.cancel() is False
    assert not job.cancelled()


def test_done_callback_receives_job():
    converter = Converter()
    finished = threading.Event()
    seen = []

    job = converter.start('{"a":1}')
    job.add_done_callback(lambda j: (seen.append(j), finished.set()))
    assert finished.wait(5)
    assert seen == [job]


def test_heterogeneous_keys_write_empty_records():
    result = run_conversion('[{"a":1},{"b":2}]')
    assert result.csv_text == 'a\n1\n""\n'

    unquoted = run_conversion('[{"a":1},{"b":2}]', ConversionConfig(quote_fields=False))
    assert unquoted.csv_text == "a\n1\n\n"


def test_overflowing_number_fails_the_job():
    tracker = ProgressTracker()
    with pytest.raises(ParseError, match="out of range"):
        run_conversion('[{"a": 1e400}]', tracker=tracker)
    assert tracker.snapshot().in_progress is False
