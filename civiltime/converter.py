"""Perform time conversions between UTC and local time.

A `TimeConverter` holds a UTC time and the timezone used to convert it. The
`convert()` method computes the local time, whether daylight saving time is
in effect, and the UTC instants of the two time changes in that year.

The navigation methods such as `next_day()` or `next_local_time()` work in
local time. They change the local date, optionally set the local time of
day, then convert back to UTC. Local times that do not exist (the hour that
is skipped when DST starts) or that happen twice (the hour that is repeated
when DST ends) are resolved as described in `CivilTime.to_utc`.

Example:
    conv = TimeConverter("EST5EDT,M3.2.0/2:00:00,M11.1.0/2:00:00")
    conv.with_current_time().convert()
    conv.next_local_time(TimeOfDay.parse("14:00:00"))
    print(conv.format(TIME_FORMAT_ISO8601_FULL))
"""

from __future__ import annotations

from collections.abc import Callable
import datetime
import enum
import logging
import re
import time

from dateutil.relativedelta import relativedelta

from .calendar_util import days_in_month, instant_to_tm, now
from .civil_time import CivilTime
from .config import get_default_timezone
from .time_of_day import TimeOfDay
from .tz_rule import TimezoneSpec

__all__ = [
    "Position",
    "TimeConverter",
    "TIME_FORMAT_DEFAULT",
    "TIME_FORMAT_ISO8601_FULL",
]

_LOGGER = logging.getLogger(__name__)

TIME_FORMAT_DEFAULT = "asctime"
"""Format like "Thu Apr  1 12:00:00 2021"."""

TIME_FORMAT_ISO8601_FULL = "%Y-%m-%dT%H:%M:%S%z"
"""Format like "2021-04-01T12:00:00-04:00"."""

_FORMAT_TOKEN_RE = re.compile(r"%(.)", re.DOTALL)


class Position(enum.Enum):
    """Where a time is relative to the time changes in its year."""

    BEFORE_DST = "before_dst"
    """Before the start of DST (northern hemisphere)."""

    IN_DST = "in_dst"
    """In daylight saving time (northern hemisphere)."""

    AFTER_DST = "after_dst"
    """After the end of DST (northern hemisphere)."""

    BEFORE_STANDARD = "before_standard"
    """Before the start of standard time (southern hemisphere)."""

    IN_STANDARD = "in_standard"
    """In standard time (southern hemisphere)."""

    AFTER_STANDARD = "after_standard"
    """After the end of standard time (southern hemisphere)."""

    NO_DST = "no_dst"
    """The timezone does not use daylight saving time."""


_DST_POSITIONS = {Position.IN_DST, Position.BEFORE_STANDARD, Position.AFTER_STANDARD}


class TimeConverter:
    """Converts a UTC time to local time in a timezone.

    If a timezone is not specified, the default timezone from
    `civiltime.config` is used, and if that is not set either local time is
    UTC. A converter is not thread safe, use a separate instance for each
    concurrent conversion.
    """

    def __init__(
        self, config: TimezoneSpec | str | None = None, instant: int = 0
    ) -> None:
        """Initialize TimeConverter and convert the initial time."""
        self._config: TimezoneSpec | None = None
        if config is not None:
            self.with_config(config)
        self._time = instant
        self._spec = TimezoneSpec()
        self._position = Position.NO_DST
        self._local_time = CivilTime.from_instant(instant)
        self._dst_start: int | None = None
        self._standard_start: int | None = None
        self.convert()

    def with_config(self, config: TimezoneSpec | str) -> TimeConverter:
        """Set the timezone, call convert() after changing it."""
        if isinstance(config, str):
            config = TimezoneSpec.parse(config)
        self._config = config
        return self

    def with_time(self, instant: int) -> TimeConverter:
        """Set the UTC time in seconds since the epoch, call convert() after changing it."""
        self._time = instant
        return self

    def with_current_time(self) -> TimeConverter:
        """Set the time to now, call convert() after changing it."""
        self._time = now()
        return self

    def convert(self) -> None:
        """Compute the local time and DST state for the current time and timezone."""
        spec = self._config if self._config is not None else get_default_timezone()
        self._spec = spec
        self._dst_start = None
        self._standard_start = None
        self._position = Position.NO_DST

        if changes := spec.transitions(self._year_of(self._time)):
            self._dst_start, self._standard_start = changes
            self._position = _classify(self._time, *changes)

        offset = self.utc_offset().to_seconds()
        self._local_time = CivilTime.from_instant(self._time - offset)
        _LOGGER.debug(
            "Converted %s to %s (%s, %s)",
            self._time,
            self._local_time,
            self.zone_name(),
            self._position,
        )

    def _year_of(self, instant: int) -> int:
        """Return the year of the UTC instant in local standard time."""
        return instant_to_tm(instant - self._spec.std_offset.to_seconds()).tm_year

    @property
    def config(self) -> TimezoneSpec:
        """Return the timezone used by the last conversion."""
        return self._spec

    @property
    def time(self) -> int:
        """Return the UTC time being converted in seconds since the epoch."""
        return self._time

    @property
    def local_time(self) -> CivilTime:
        """Return the local time that corresponds to the UTC time."""
        return self._local_time

    @property
    def position(self) -> Position:
        """Return where the time is relative to the time changes in its year."""
        return self._position

    @property
    def dst_start(self) -> int | None:
        """Return when DST starts in the year of the time, UTC, or None without DST."""
        return self._dst_start

    @property
    def dst_start_time(self) -> CivilTime | None:
        """Return the broken-down UTC time DST starts."""
        if self._dst_start is None:
            return None
        return CivilTime.from_instant(self._dst_start)

    @property
    def standard_start(self) -> int | None:
        """Return when standard time starts in the year of the time, UTC, or None without DST."""
        return self._standard_start

    @property
    def standard_start_time(self) -> CivilTime | None:
        """Return the broken-down UTC time standard time starts."""
        if self._standard_start is None:
            return None
        return CivilTime.from_instant(self._standard_start)

    def is_dst(self) -> bool:
        """Return True if the time is in daylight saving time."""
        return self._position in _DST_POSITIONS

    def is_standard_time(self) -> bool:
        """Return True if the time is in standard time."""
        return not self.is_dst()

    def utc_offset(self) -> TimeOfDay:
        """Return the POSIX offset in effect (positive west of UTC)."""
        if not self._spec.valid:
            return TimeOfDay()
        if self.is_dst():
            return self._spec.dst_offset
        return self._spec.std_offset

    def zone_name(self) -> str:
        """Return the timezone abbreviation in effect, for example EST or EDT."""
        if not self._spec.valid:
            return "UTC"
        if self.is_dst():
            return self._spec.dst_name
        return self._spec.std_name

    def last_day_of_month(self) -> int:
        """Return the last day of the month in local time."""
        return days_in_month(self._local_time.year, self._local_time.month)

    def next_day(self, hms: TimeOfDay | None = None) -> None:
        """Move to the next day, at the local time of day hms if specified."""
        self._commit(self._find_day(hms))

    def next_day_or_time_change(self, hms: TimeOfDay | None = None) -> None:
        """Move to the next day, or right at the next time change if it comes first.

        This is useful to synchronize an external clock daily and also when the
        time changes. Do not pick a time of day in the skipped hour, such as
        02:00:00 in the United States, as that time does not exist on the day
        DST starts.
        """
        candidate = self._find_day(hms)
        year = self._year_of(self._time)
        for change in self._spec.iter_transitions(year):
            if change.instant > self._time:
                candidate = min(candidate, change.instant)
                break
        self._commit(candidate)

    def next_day_of_week(self, day_of_week: int, hms: TimeOfDay | None = None) -> bool:
        """Move to the next day with the day of week 0-6 (0 = Sunday).

        Returns False and leaves the time unchanged if day_of_week is out of range.
        """
        if not 0 <= day_of_week <= 6:
            return False
        self._commit(
            self._find_day(hms, lambda local: local.day_of_week == day_of_week)
        )
        return True

    def next_weekday(self, hms: TimeOfDay | None = None) -> None:
        """Move to the next day that is a weekday (Monday - Friday)."""
        self._commit(self._find_day(hms, lambda local: 1 <= local.day_of_week <= 5))

    def next_weekend_day(self, hms: TimeOfDay | None = None) -> None:
        """Move to the next day that is a weekend day (Saturday or Sunday)."""
        self._commit(
            self._find_day(hms, lambda local: local.day_of_week in (0, 6))
        )

    def next_day_of_month(self, day_of_month: int, hms: TimeOfDay | None = None) -> bool:
        """Move forward to the day of month, this month if still ahead or else next month.

        The day of month is 1 for the first day of the month, or 0 for the last
        day, -1 for the second to last day, and so on. Returns False and leaves
        the time unchanged if the day does not exist in the month.
        """
        local = self._local_time
        if (day := _day_in_month(local.year, local.month, day_of_month)) is None:
            return False
        candidate = self._resolve(
            CivilTime.of(
                local.year, local.month, day, local.hour, local.minute, local.second
            ),
            hms,
        )
        if candidate > self._time:
            self._commit(candidate)
            return True
        return self.next_day_of_next_month(day_of_month, hms)

    def next_day_of_next_month(
        self, day_of_month: int, hms: TimeOfDay | None = None
    ) -> bool:
        """Move to the day of month in the next month.

        This always moves to the next month even if the day has not been
        reached in this month yet. The day of month works as in
        next_day_of_month().
        """
        local = self._local_time
        month = _first_of_month(local, months=1)
        if (day := _day_in_month(month.year, month.month, day_of_month)) is None:
            return False
        self._commit(
            self._resolve(
                CivilTime.of(
                    month.year, month.month, day, local.hour, local.minute, local.second
                ),
                hms,
            )
        )
        return True

    def next_day_of_week_ordinal(
        self, day_of_week: int, ordinal: int, hms: TimeOfDay | None = None
    ) -> bool:
        """Move to the next ordinal occurrence of the day of week in a month.

        For example day_of_week 5 and ordinal 1 is the first Friday of the month.
        This month is used if that day is still ahead, otherwise next month.
        Returns False and leaves the time unchanged if that month does not have
        that occurrence, such as a fifth Friday.
        """
        if not 0 <= day_of_week <= 6 or ordinal < 1:
            return False
        local = self._local_time
        for months in (0, 1):
            month = _first_of_month(local, months=months)
            day = _ordinal_day(month, day_of_week, ordinal)
            if day is None:
                _LOGGER.debug(
                    "No occurrence %s of day %s in %s", ordinal, day_of_week, month
                )
                return False
            candidate = self._resolve(
                CivilTime.of(
                    month.year, month.month, day, local.hour, local.minute, local.second
                ),
                hms,
            )
            if candidate > self._time:
                self._commit(candidate)
                return True
        return False

    def next_local_time(self, hms: TimeOfDay) -> None:
        """Move forward to the next occurrence of the local time of day.

        This is today if the time has not been reached yet, otherwise tomorrow.
        If the time of day does not exist today because it is in the hour
        skipped when DST starts, the next day it exists is used. If it is in
        the hour repeated when DST ends, the second occurrence is used.
        """
        days = 0
        while True:
            local = self._local_plus_days(days).with_hms(hms)
            candidate = local.to_utc(self._spec)
            if candidate > self._time and self._read_back(candidate) == local:
                break
            days += 1
        self._commit(candidate)

    def at_local_time(self, hms: TimeOfDay) -> None:
        """Change to the local time of day on the same local day.

        This may move the time backward, use next_local_time() to only move forward.
        """
        self._commit(self._resolve(self._local_time, hms))

    def time_str(self) -> str:
        """Return the local time like "Fri Jan  1 18:45:56 2021"."""
        return time.asctime(self._local_time.tm)

    def format(self, format_spec: str) -> str:
        """Format the local time using strftime format codes.

        Use TIME_FORMAT_DEFAULT for time_str() formatting. In addition to the
        strftime codes, %Z is the timezone abbreviation (EDT) and %z is the
        UTC offset written with a colon (-04:00) for compatibility with
        existing formatted values.
        """
        if format_spec == TIME_FORMAT_DEFAULT:
            return self.time_str()

        def replace(match: re.Match[str]) -> str:
            if match.group(1) == "Z":
                return self.zone_name().replace("%", "%%")
            if match.group(1) == "z":
                return self._colon_offset()
            return match.group(0)

        return self._local_time.to_datetime().strftime(
            _FORMAT_TOKEN_RE.sub(replace, format_spec)
        )

    def _colon_offset(self) -> str:
        seconds = -self.utc_offset().to_seconds()
        sign = "+" if seconds >= 0 else "-"
        hours, minutes = divmod(abs(seconds) // 60, 60)
        return f"{sign}{hours:02d}:{minutes:02d}"

    def _local_plus_days(self, days: int) -> CivilTime:
        local = self._local_time
        return CivilTime.of(
            local.year,
            local.month,
            local.day + days,
            local.hour,
            local.minute,
            local.second,
        )

    def _find_day(
        self,
        hms: TimeOfDay | None,
        matches: Callable[[CivilTime], bool] = lambda local: True,
    ) -> int:
        """Return the first instant on a following local day that matches."""
        days = 1
        while True:
            local = self._local_plus_days(days)
            if matches(local):
                candidate = self._resolve(local, hms)
                if candidate > self._time:
                    return candidate
            days += 1

    def _resolve(self, local: CivilTime, hms: TimeOfDay | None) -> int:
        return local.with_hms(hms).to_utc(self._spec)

    def _read_back(self, instant: int) -> CivilTime:
        """Return the local time of a UTC instant in the current timezone."""
        return CivilTime.from_instant(
            instant - self._spec.utc_offset_at(instant).to_seconds()
        )

    def _commit(self, instant: int) -> None:
        self._time = instant
        self.convert()

    def __repr__(self) -> str:
        return f"TimeConverter({self._spec}, {self._time})"


def _classify(instant: int, dst_start: int, standard_start: int) -> Position:
    """Return the position of the instant relative to the time changes in its year."""
    if dst_start < standard_start:
        if instant < dst_start:
            return Position.BEFORE_DST
        if instant < standard_start:
            return Position.IN_DST
        return Position.AFTER_DST
    # Southern hemisphere, the year starts in DST
    if instant < standard_start:
        return Position.BEFORE_STANDARD
    if instant < dst_start:
        return Position.IN_STANDARD
    return Position.AFTER_STANDARD


def _first_of_month(local: CivilTime, months: int) -> datetime.date:
    """Return the first day of the month some number of months after local."""
    return datetime.date(local.year, local.month, 1) + relativedelta(months=months)


def _day_in_month(year: int, month: int, day_of_month: int) -> int | None:
    """Return the day of month, counting back from the end for 0 or less."""
    last_day = days_in_month(year, month)
    if day_of_month <= 0:
        day_of_month += last_day
    if 1 <= day_of_month <= last_day:
        return day_of_month
    return None


def _ordinal_day(month: datetime.date, day_of_week: int, ordinal: int) -> int | None:
    """Return the day of the ordinal occurrence of day_of_week in the month."""
    first_day_of_week = (month.weekday() + 1) % 7
    day = 1 + (day_of_week - first_day_of_week) % 7 + 7 * (ordinal - 1)
    if day > days_in_month(month.year, month.month):
        return None
    return day
