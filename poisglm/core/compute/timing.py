"""
Wall-clock timing for fits and tests.

Backends wrap each phase of a computation in a named section. The
accumulated seconds per section, plus 'total_seconds' for the whole run,
are what ends up in Result.timing.
"""

import time
from contextlib import contextmanager
from typing import Iterator


class Timer:
    """
    Wall-clock timer with named sections.

    A section entered more than once accumulates. Sections are not
    required to cover the whole run, so they need not add up to the total.
    """

    def __init__(self):
        self._t0: float | None = None
        self._elapsed: float | None = None
        self._sections: dict[str, float] = {}

    def start(self) -> None:
        self._t0 = time.perf_counter()
        self._elapsed = None

    def stop(self) -> None:
        if self._t0 is None:
            raise RuntimeError("Timer was stopped before it was started")
        self._elapsed = time.perf_counter() - self._t0

    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        """Add the time spent inside the block to section `name`."""
        t0 = time.perf_counter()
        try:
            yield
        finally:
            spent = time.perf_counter() - t0
            self._sections[name] = self._sections.get(name, 0.0) + spent

    def result(self) -> dict[str, float]:
        """
        Seconds per section, plus 'total_seconds'.

        Raises:
            RuntimeError: If stop() has not been called
        """
        if self._elapsed is None:
            raise RuntimeError("Timer has no total until stop() is called")
        return {'total_seconds': self._elapsed, **self._sections}


@contextmanager
def timed() -> Iterator[Timer]:
    """Time a block with a started Timer; it is stopped on exit, even on error."""
    timer = Timer()
    timer.start()
    try:
        yield timer
    finally:
        timer.stop()
