"""
Progress reporter: completed vs. total steps, shared by all workers.
"""
import threading

from tqdm import tqdm


class ProgressReporter:
    """
    tqdm bar over the enqueued compile steps.

    The completed counter is the only state shared between compile
    workers; every update happens under one lock.
    """

    def __init__(self, total: int, enabled: bool = True):
        self.total = total
        self._completed = 0
        self._closed = False
        self._lock = threading.Lock()
        self._bar = tqdm(total=total, unit="step", disable=not enabled, leave=True)

    @property
    def completed(self) -> int:
        with self._lock:
            return self._completed

    def message(self, text: str) -> None:
        """Describe what is running right now."""
        with self._lock:
            self._bar.set_description_str(text)

    def step_done(self) -> int:
        """Count one finished step; returns the new count."""
        with self._lock:
            self._completed += 1
            self._bar.update(1)
            return self._completed

    def finish(self, text: str) -> None:
        with self._lock:
            self._bar.set_description_str(text)
            self._close()

    def close(self) -> None:
        """Release the bar; safe to call more than once."""
        with self._lock:
            self._close()

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def _close(self) -> None:
        if not self._closed:
            self._bar.close()
            self._closed = True
