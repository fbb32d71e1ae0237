from __future__ import annotations

import threading
from dataclasses import dataclass


@dataclass(frozen=True)
class ConversionProgress:
    status: str = "Ready"
    fraction: float = 0.0
    in_progress: bool = False

    @property
    def percent(self) -> int:
        return int(round(self.fraction * 100))


class ProgressTracker:
    """Progress of the current job, shared between the worker and pollers.

    Every read and write takes the lock, and status, fraction and the
    in-progress flag always change together.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._state = ConversionProgress()

    def snapshot(self) -> ConversionProgress:
        with self._lock:
            return self._state

    def start(self, status: str = "Starting conversion...") -> None:
        with self._lock:
            self._state = ConversionProgress(status=status, fraction=0.0, in_progress=True)

    def update(self, fraction: float, status: str | None = None) -> None:
        fraction = min(1.0, max(0.0, float(fraction)))
        with self._lock:
            current = self._state
            self._state = ConversionProgress(
                status=current.status if status is None else status,
                # milestones only move forward
                fraction=max(current.fraction, fraction),
                in_progress=current.in_progress,
            )

    def finish(self, status: str = "Conversion completed successfully") -> None:
        with self._lock:
            self._state = ConversionProgress(status=status, fraction=1.0, in_progress=False)

    def fail(self, message: str) -> None:
        with self._lock:
            self._state = ConversionProgress(
                status=message,
                fraction=self._state.fraction,
                in_progress=False,
            )
