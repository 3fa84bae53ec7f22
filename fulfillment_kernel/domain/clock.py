"""
Clock -- injectable time source.

The ledger, the journal and both lifecycles take a ``Clock`` in their
constructors and never call ``datetime.now()`` themselves, so every
created_at / dispatched_at / movement timestamp can be pinned in tests and
statement periods (``YYYY-MM``) are reproducible.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

DEFAULT_TEST_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """Source of timezone-aware UTC timestamps."""

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    ``now()`` is stable between calls.  ``advance`` moves it forward (a
    pickup an hour later, a statement a month later); ``set_time`` jumps to
    an absolute instant.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or DEFAULT_TEST_TIME

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        if time.tzinfo is None:
            raise ValueError("DeterministicClock needs a timezone-aware datetime")
        self._current = time

    def advance(self, seconds: int = 0, *, minutes: int = 0, days: int = 0) -> datetime:
        """Move forward and return the new time."""
        self._current += timedelta(days=days, minutes=minutes, seconds=seconds)
        return self._current
