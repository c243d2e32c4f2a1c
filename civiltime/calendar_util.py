"""Stateless calendar helpers used by multiple components.

Every conversion in this module treats broken-down time as UTC. The
`tm_isdst` field of a `time.struct_time` is never consulted, and local time
semantics are applied only by the converter on top of these helpers.
"""

from __future__ import annotations

from collections.abc import Sequence
import calendar
import re
import time

from .exceptions import CivilTimeParseError

__all__ = [
    "is_leap_year",
    "days_in_month",
    "last_day_of_month",
    "instant_to_tm",
    "tm_to_instant",
    "make_tm",
    "string_to_time",
    "time_to_string",
    "now",
]

# Example: 2021-04-01T10:00:00, the separator may be any single non-digit
ISO_DATETIME_REGEX = re.compile(
    r"(?P<year>[0-9]{4})-(?P<month>[0-9]{2})-(?P<day>[0-9]{2})"
    r"[^0-9]"
    r"(?P<hour>[0-9]{2}):(?P<minute>[0-9]{2}):(?P<second>[0-9]{2})"
)

SECONDS_PER_DAY = 86400


def now() -> int:
    """Factory method for the current UTC instant to facilitate mocking."""
    return int(time.time())


def is_leap_year(year: int) -> bool:
    """Return True if the year is a leap year in the Gregorian calendar."""
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def days_in_month(year: int, month: int) -> int:
    """Return the number of days in the month (1-12) of the year."""
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12: {month}")
    if month == 2 and is_leap_year(year):
        return 29
    return calendar.mdays[month]


last_day_of_month = days_in_month


def tm_to_instant(tm: Sequence[int]) -> int:
    """Convert broken-down UTC fields to seconds since the epoch.

    Only the first six fields (year, month, day, hour, minute, second) are
    used. Values out of their normal range are carried into the next larger
    field, so a day of 32 or an hour of -1 is accepted.
    """
    year, month, day, hour, minute, second = (int(v) for v in tm[:6])
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return calendar.timegm((year, month, day, hour, minute, second))


def instant_to_tm(instant: int) -> time.struct_time:
    """Convert seconds since the epoch to broken-down UTC fields."""
    return time.gmtime(instant)


def make_tm(
    year: int,
    month: int,
    day: int,
    hour: int = 0,
    minute: int = 0,
    second: int = 0,
) -> time.struct_time:
    """Return normalized broken-down fields with weekday and day of year filled in."""
    return instant_to_tm(tm_to_instant((year, month, day, hour, minute, second)))


def string_to_time(value: str) -> tuple[int, time.struct_time]:
    """Parse an ISO-8601 like string, ignoring any timezone.

    The string must start with YYYY-MM-DDTHH:MM:SS where the T may be any
    single non-digit character such as a space. Anything after the seconds,
    such as fractional seconds or a UTC offset, is ignored.
    """
    if not (match := ISO_DATETIME_REGEX.match(value)):
        raise CivilTimeParseError(
            f"Expected value to match YYYY-MM-DDTHH:MM:SS: {value}", value=value
        )
    instant = tm_to_instant(tuple(int(v) for v in match.groups()))
    return instant, instant_to_tm(instant)


def time_to_string(instant: int, separator: str = " ") -> str:
    """Format seconds since the epoch as YYYY-MM-DD HH:MM:SS in UTC."""
    tm = instant_to_tm(instant)
    return (
        f"{tm.tm_year:04d}-{tm.tm_mon:02d}-{tm.tm_mday:02d}"
        f"{separator}"
        f"{tm.tm_hour:02d}:{tm.tm_min:02d}:{tm.tm_sec:02d}"
    )
