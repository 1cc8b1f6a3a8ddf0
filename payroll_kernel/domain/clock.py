"""
Injectable time source.

Batch runs stamp ``started_at`` / ``completed_at`` through a ``Clock`` so
tests can pin them.  Durations are measured with ``time.monotonic`` and
are not a clock concern.
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta

DEFAULT_TEST_TIME = datetime(2025, 1, 1, 12, 0, 0, tzinfo=UTC)


class Clock(ABC):
    """Source of timezone-aware wall-clock time."""

    @abstractmethod
    def now(self) -> datetime: ...


class SystemClock(Clock):
    """Wall-clock UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class DeterministicClock(Clock):
    """
    Frozen clock for tests.

    ``now()`` keeps returning the same instant until the test moves it
    with ``advance()``.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or DEFAULT_TEST_TIME

    def now(self) -> datetime:
        return self._current

    def advance(self, seconds: int = 1) -> None:
        self._current += timedelta(seconds=seconds)
