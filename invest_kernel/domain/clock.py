"""
Clock -- Deterministic date abstraction.

Responsibility:
    Provides an injectable clock so that engine code never calls
    ``date.today()`` directly.  Engines receive "today" as an explicit
    parameter; only the service facade holds a Clock.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O (except SystemClock,
    which is the one sanctioned I/O boundary for time).

Failure modes:
    - None.  DeterministicClock always returns the date it was given.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone


class Clock(ABC):
    """
    Abstract clock interface.

    Contract:
        Services that need the current date receive a Clock via constructor
        injection.  Day counts are calendar-day differences, so ``today()``
        is what the engines consume.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Get the current time."""
        ...

    def today(self) -> date:
        """Get the current calendar date (UTC)."""
        return self.now().astimezone(timezone.utc).date()


class SystemClock(Clock):
    """
    Production clock that returns actual system time.

    Non-goals:
        Not suitable for deterministic replay or testing.
    """

    def now(self) -> datetime:
        """Get current system time with timezone."""
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    Guarantees:
        - ``now()`` returns the same value on repeated calls until
          ``advance_days()`` or ``set_date()`` is called.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._fixed_time = fixed_time or datetime(
            2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc
        )

    @classmethod
    def on(cls, day: date) -> "DeterministicClock":
        """Build a clock pinned to noon UTC of ``day``."""
        return cls(datetime(day.year, day.month, day.day, 12, 0, 0, tzinfo=timezone.utc))

    def now(self) -> datetime:
        return self._fixed_time

    def set_date(self, day: date) -> None:
        """Pin the clock to noon UTC of ``day``."""
        self._fixed_time = datetime(
            day.year, day.month, day.day, 12, 0, 0, tzinfo=timezone.utc
        )

    def advance_days(self, days: int = 1) -> date:
        """Advance the clock by whole days and return the new date."""
        self._fixed_time = self._fixed_time + timedelta(days=days)
        return self.today()
