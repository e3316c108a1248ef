"""
Time source for anything that depends on "today".

Routes receive a Clock through the ``get_clock`` dependency so tests can pin
the current instant with ``FixedClock``.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Tuple
from zoneinfo import ZoneInfo

from config import APP_TIMEZONE


class Clock:
    def __init__(self, tz_name: str = APP_TIMEZONE):
        self.tz = ZoneInfo(tz_name)

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()

    def local_date(self, instant: datetime) -> date:
        """Calendar day of `instant` in the clock's timezone."""
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        return instant.astimezone(self.tz).date()

    def day_bounds(self, day: date) -> Tuple[datetime, datetime]:
        """[local midnight, next local midnight) of `day`, as UTC instants."""
        start = datetime.combine(day, time.min, tzinfo=self.tz)
        end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=self.tz)
        return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


class FixedClock(Clock):
    """Clock frozen at a given instant; naive datetimes are read in `tz_name`."""

    def __init__(self, instant: datetime, tz_name: str = APP_TIMEZONE):
        super().__init__(tz_name)
        self.set(instant)

    def set(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=self.tz)
        self._now = instant.astimezone(self.tz)

    def now(self) -> datetime:
        return self._now


_system_clock = Clock()


def get_clock() -> Clock:
    return _system_clock


def as_utc(value: datetime) -> datetime:
    """Aware UTC datetime; naive values (as SQLite returns them) are read as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
