"""
Clock -- injectable time source.

Every audit timestamp, pending-action stamp, inventory log date and
backup watermark day is read from a ``Clock`` handed in at construction.
Nothing in the kernel calls ``datetime.now()`` or ``date.today()``.

``SystemClock`` is the one place real time enters the system.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone


class Clock(ABC):
    """
    Time source for kernel services.

    Guarantees:
        ``now()`` returns a timezone-aware UTC ``datetime``; ``today()`` is
        its calendar date, used as the default business date for
        inventory movements.
    """

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Test clock frozen at ``fixed_time`` (default 2024-01-01 12:00 UTC).

    Time only moves when ``advance()`` is called, so two audit entries
    recorded in one test share a timestamp unless the test says otherwise.
    """

    DEFAULT_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or self.DEFAULT_TIME

    def now(self) -> datetime:
        return self._current

    def advance(self, seconds: int = 0, *, days: int = 0) -> datetime:
        """Move the clock forward and return the new time."""
        self._current += timedelta(days=days, seconds=seconds)
        return self._current
