"""
Wall-clock timing of analysis stages.

mlm() runs as a fixed pipeline (projection, fit, decomposition,
p-values); each stage is timed as a named section and the totals end up
in Result.timing.
"""

import time
from contextlib import contextmanager
from typing import Iterator


class Timer:
    """
    Stage timer.

    Usage:
        timer = Timer()
        timer.start()
        with timer.section('projection'):
            Y = mlmproject(dmat)
        timer.stop()
        timer.result()   # {'total_seconds': ..., 'projection': ...}

    A section entered several times accumulates. Sections are reported
    in the order they were first entered.
    """

    def __init__(self):
        self._started: float | None = None
        self._elapsed: float | None = None
        self._stages: dict[str, float] = {}

    def start(self) -> None:
        self._started = time.perf_counter()
        self._elapsed = None

    def stop(self) -> None:
        if self._started is None:
            raise RuntimeError("Timer.stop() called before start()")
        self._elapsed = time.perf_counter() - self._started

    @property
    def stages(self) -> tuple[str, ...]:
        """Section names, in first-entered order."""
        return tuple(self._stages)

    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        begin = time.perf_counter()
        try:
            yield
        finally:
            self._stages[name] = self._stages.get(name, 0.0) + time.perf_counter() - begin

    def result(self) -> dict[str, float]:
        """
        'total_seconds' plus one entry per section.

        Raises:
            RuntimeError: If the timer has not been stopped
        """
        if self._elapsed is None:
            raise RuntimeError("Timer.result() called before stop()")
        return {'total_seconds': self._elapsed, **self._stages}
