"""A broken-down local time value.

A `CivilTime` wraps the raw `time.struct_time` fields and exposes accessors
with conventional ranges: month 1-12, weekday 1-7 with Sunday=1, and the
four digit year. The value does not know which timezone it is in, so to
format it with a timezone name or offset use the `TimeConverter`.
"""

from __future__ import annotations

from dataclasses import dataclass
import datetime
import time
from typing import TYPE_CHECKING

from .calendar_util import instant_to_tm, make_tm, string_to_time, tm_to_instant
from .time_of_day import TimeOfDay

if TYPE_CHECKING:
    from .tz_rule import TimezoneSpec

__all__ = ["CivilTime"]


@dataclass(frozen=True, eq=False)
class CivilTime:
    """A local time broken out into year, month, day, hour, minute, second."""

    tm: time.struct_time
    """The raw broken-down fields, tm_isdst is always ignored."""

    @classmethod
    def of(
        cls,
        year: int,
        month: int,
        day: int,
        hour: int = 0,
        minute: int = 0,
        second: int = 0,
    ) -> CivilTime:
        """Create a value from fields, carrying out of range values forward."""
        return cls(make_tm(year, month, day, hour, minute, second))

    @classmethod
    def from_instant(cls, instant: int) -> CivilTime:
        """Create a value from seconds since the epoch, without any offset."""
        return cls(instant_to_tm(instant))

    @classmethod
    def from_string(cls, value: str) -> CivilTime:
        """Create a value from an ISO-8601 string like 2021-04-01T10:00:00.

        Any timezone in the string is ignored.
        """
        _, tm = string_to_time(value)
        return cls(tm)

    @property
    def year(self) -> int:
        """Return the four digit year."""
        return self.tm.tm_year

    @property
    def month(self) -> int:
        """Return the month 1-12 (1 = January)."""
        return self.tm.tm_mon

    @property
    def day(self) -> int:
        """Return the day of the month 1-31."""
        return self.tm.tm_mday

    @property
    def hour(self) -> int:
        """Return the hour 0-23."""
        return self.tm.tm_hour

    @property
    def minute(self) -> int:
        """Return the minute 0-59."""
        return self.tm.tm_min

    @property
    def second(self) -> int:
        """Return the second 0-59."""
        return self.tm.tm_sec

    @property
    def day_of_week(self) -> int:
        """Return the day of week 0-6 (Sunday = 0, Saturday = 6)."""
        return (self.tm.tm_wday + 1) % 7

    @property
    def weekday(self) -> int:
        """Return the day of week 1-7 (Sunday = 1, Saturday = 7)."""
        return self.day_of_week + 1

    @property
    def day_of_year(self) -> int:
        """Return the day of the year 1-366 (January 1 = 1)."""
        return self.tm.tm_yday

    @property
    def wall_seconds(self) -> int:
        """Return the fields as seconds since the epoch, as if they were UTC."""
        return tm_to_instant(self.tm)

    def hour_format12(self) -> int:
        """Return the hour 1-12 used in AM/PM mode."""
        return self.hour % 12 or 12

    def is_am(self) -> bool:
        """Return True if the time is before noon."""
        return self.hour < 12

    def is_pm(self) -> bool:
        """Return True if the time is noon or later."""
        return not self.is_am()

    def ordinal(self) -> int:
        """Return which occurrence of this day of week in the month it is.

        For example, the second Friday of the month returns 2. This is not the
        week number of the month, which depends on which day the week starts.
        """
        return (self.day - 1) // 7 + 1

    def hms(self) -> TimeOfDay:
        """Return the time of day."""
        return TimeOfDay.from_tm(self.tm)

    def with_hms(self, hms: TimeOfDay | None) -> CivilTime:
        """Return a value on the same day at the specified time of day.

        The existing time of day is preserved if hms is None or ignored.
        """
        if hms is None or hms.ignore:
            return self
        return CivilTime.of(
            self.year, self.month, self.day, hms.hour, hms.minute, hms.second
        )

    def to_utc(self, spec: TimezoneSpec) -> int:
        """Convert this local time to UTC seconds since the epoch.

        On spring forward there is an hour that does not exist, such as 2:00 AM
        to 3:00 AM in the United States, and a time in it resolves to the time
        change. On fall back the hour from 1:00 AM to 2:00 AM happens twice and
        the second occurrence, in standard time, is returned.
        """
        return spec.local_to_utc(self.wall_seconds)

    def to_datetime(self) -> datetime.datetime:
        """Return a naive datetime with the same fields."""
        return datetime.datetime(
            self.year, self.month, self.day, self.hour, self.minute, self.second
        )

    def isoformat(self, separator: str = "T") -> str:
        """Return the value as YYYY-MM-DDTHH:MM:SS."""
        return (
            f"{self.year:04d}-{self.month:02d}-{self.day:02d}{separator}"
            f"{self.hour:02d}:{self.minute:02d}:{self.second:02d}"
        )

    def _fields(self) -> tuple[int, ...]:
        return tuple(self.tm[:6])

    def __eq__(self, other: object) -> bool:
        """Compare the date and time fields, ignoring the DST flag."""
        if not isinstance(other, CivilTime):
            return NotImplemented
        return self._fields() == other._fields()

    def __hash__(self) -> int:
        return hash(self._fields())

    def __str__(self) -> str:
        """Return the value as YYYY-MM-DD HH:MM:SS."""
        return self.isoformat(" ")
