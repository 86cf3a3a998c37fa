"""
Clock -- injectable source of "now" and "today".

Responsibility:
    Which cheques fall inside the due window, which month a deposit is
    counted in and whether the daily job has already fired all depend on
    the current date.  Services, reporting and the scheduler take a
    ``Clock`` instead of calling ``datetime.now()`` so tests can pin and
    move time.

Architecture position:
    Kernel > Domain.  ``SystemClock`` is the only place that reads the
    system time.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone, tzinfo

_SECONDS_PER_DAY = 86_400


class Clock(ABC):
    """Timezone-aware current time; ``today()`` is derived from ``now()``."""

    @abstractmethod
    def now(self) -> datetime: ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """
    Wall-clock time in ``tz`` (UTC by default).

    ``today()`` is the calendar date in that zone, so pass the business
    timezone when day boundaries must follow local midnight.
    """

    def __init__(self, tz: tzinfo = timezone.utc):
        self._tz = tz

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def now(self) -> datetime:
        return datetime.now(self._tz)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    ``now()`` keeps returning the same instant until ``advance()``,
    ``advance_days()`` or ``set_time()`` is called.  Defaults to noon UTC on
    2024-01-01 when no start time is given.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._start = fixed_time or datetime(2024, 1, 1, 12, tzinfo=timezone.utc)
        self._offset = timedelta()

    @classmethod
    def on(cls, day: date) -> "DeterministicClock":
        """Noon UTC on ``day``, far enough from midnight that ``today()`` is ``day``."""
        return cls(datetime(day.year, day.month, day.day, 12, tzinfo=timezone.utc))

    def now(self) -> datetime:
        return self._start + self._offset

    def set_time(self, time: datetime) -> None:
        self._start = time
        self._offset = timedelta()

    def advance(self, seconds: int = 1) -> None:
        self._offset += timedelta(seconds=seconds)

    def advance_days(self, days: int = 1) -> None:
        self.advance(days * _SECONDS_PER_DAY)
