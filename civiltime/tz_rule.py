"""Library for parsing POSIX TZ rules and evaluating them in a given year.

TZ supports these two formats

No DST: std offset
  - std: Name of the timezone, letters or quoted in angle brackets like <+07>
  - offset: Time added to local time to get UTC
  Example: EST+5

DST: std offset dst [offset],start[/time],end[/time]
  - dst: Name of the Daylight savings time timezone
  - offset: Defaults to 1 hour ahead of STD offset if not specified
  - start & end: Time period when DST is in effect in the format Mm.w.d:
      m: Month between 1 and 12
      w: Between 1 and 5. Week 1 is first week d occurs, 5 is the last.
      d: Between 0 (Sunday) and 6 (Saturday)
    The time field is in h[:mm[:ss]] local time, default of 02:00:00, and
    the hour may be negative.
  Example: EST5EDT,M3.2.0/2:00:00,M11.1.0/2:00:00

The parser is tolerant by default: a malformed string produces an invalid
TimezoneSpec rather than an exception, and an invalid spec behaves like UTC.
Use `TimezoneSpec.parse_strict` to get an exception describing the problem.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
import datetime
import heapq
import logging
import re

from dateutil import rrule

from .calendar_util import days_in_month, instant_to_tm, tm_to_instant
from .exceptions import TimezoneParseError
from .time_of_day import TIME_OF_DAY_PATTERN, TimeOfDay

__all__ = [
    "TransitionRule",
    "TimezoneSpec",
    "Transition",
]

_LOGGER = logging.getLogger(__name__)

_DEFAULT_TRANSITION_TIME = TimeOfDay(hour=2)
_ONE_HOUR = 3600

_NAME_RE = re.compile(r"<(?P<quoted>[A-Za-z0-9+\-]+)>|(?P<name>[A-Za-z]+)")
_OFFSET_RE = re.compile(TIME_OF_DAY_PATTERN)
_RULE_RE = re.compile(
    r"M(?P<month>\d{1,2})\.(?P<week>\d)\.(?P<day_of_week>\d)"
    r"(?:/" + TIME_OF_DAY_PATTERN + r")?"
)


@dataclass(frozen=True)
class TransitionRule:
    """A rule for when a time change occurs, such as "M3.2.0/2:00:00"."""

    month: int = 0
    """A month between 1 and 12."""

    week: int = 0
    """Occurrence of day_of_week in the month 1-5, where 5 is the last occurrence."""

    day_of_week: int = 0
    """A day of the week between 0 (Sunday) and 6 (Saturday)."""

    time: TimeOfDay = _DEFAULT_TRANSITION_TIME
    """Local time when the change occurs, default of 02:00:00."""

    valid: bool = False
    """An invalid rule means there is no time change."""

    @classmethod
    def parse(cls, value: str) -> TransitionRule:
        """Parse a rule string, returning an invalid rule if it is malformed."""
        try:
            return cls.parse_strict(value)
        except TimezoneParseError as err:
            _LOGGER.debug("Ignoring transition rule: %s", err)
            return cls()

    @classmethod
    def parse_strict(cls, value: str) -> TransitionRule:
        """Parse a rule string, raising an error if it is malformed."""
        if (match := _RULE_RE.fullmatch(value.strip())) is None:
            raise TimezoneParseError(
                f"Unable to parse transition rule, expected Mm.w.d[/time]: {value}",
                value=value,
            )
        month, week, day_of_week = (
            int(v) for v in match.group("month", "week", "day_of_week")
        )
        if not (1 <= month <= 12 and 1 <= week <= 5 and 0 <= day_of_week <= 6):
            raise TimezoneParseError(
                f"Transition rule out of range, expected M1-12.1-5.0-6: {value}",
                value=value,
            )
        time = _DEFAULT_TRANSITION_TIME
        if match.group("hour") is not None:
            time = TimeOfDay.from_match(match)
        return cls(
            month=month, week=week, day_of_week=day_of_week, time=time, valid=True
        )

    def date_in_year(self, year: int) -> datetime.date:
        """Return the local date the rule falls on in the specified year."""
        first_of_month = datetime.date(year, self.month, 1)
        # Python weekday is Monday=0, rules use Sunday=0
        first_day_of_week = (first_of_month.weekday() + 1) % 7
        day = 1 + (self.day_of_week - first_day_of_week) % 7 + 7 * (self.week - 1)
        if day > days_in_month(year, self.month):
            # Only a fifth week can overflow, use the fourth instead
            day -= 7
        return first_of_month.replace(day=day)

    def calculate(self, year: int, tz_adjust: TimeOfDay) -> int | None:
        """Return the UTC instant of the time change in the specified year.

        The rule time is local time, so tz_adjust is the POSIX offset in effect
        immediately before the change (positive west of UTC) and is added to
        the local time to get UTC.
        """
        if not self.valid:
            return None
        date = self.date_in_year(year)
        midnight = tm_to_instant((date.year, date.month, date.day, 0, 0, 0))
        return midnight + self.time.to_seconds() + tz_adjust.to_seconds()

    def as_rrule(self, dtstart: datetime.datetime | None = None) -> rrule.rrule:
        """Return a yearly recurrence of the local dates (at midnight) of this rule."""
        if not self.valid:
            raise ValueError("Unable to create recurrence rule for an invalid rule")
        if dtstart:
            dtstart = dtstart.replace(hour=0, minute=0, second=0, microsecond=0)
        return rrule.rrule(
            freq=rrule.YEARLY,
            bymonth=self.month,
            byweekday=self._rrule_byday(self._rrule_week_of_month),
            dtstart=dtstart,
        )

    @property
    def rrule_str(self) -> str:
        """Return a recurrence rule string for this time change."""
        return ";".join(
            [
                "FREQ=YEARLY",
                f"BYMONTH={self.month}",
                f"BYDAY={self._rrule_week_of_month}{self._rrule_byday}",
            ]
        )

    @property
    def _rrule_byday(self) -> rrule.weekday:
        """Return the dateutil weekday for this rule based on day_of_week."""
        return rrule.weekdays[(self.day_of_week - 1) % 7]

    @property
    def _rrule_week_of_month(self) -> int:
        """Return the byday modifier for the week of the month."""
        if self.week == 5:
            return -1
        return self.week

    def __str__(self) -> str:
        """Return the normalized rule string like M3.2.0/2:00:00."""
        if not self.valid:
            return ""
        return f"M{self.month}.{self.week}.{self.day_of_week}/{self.time}"


@dataclass(frozen=True)
class Transition:
    """A time change at a specific UTC instant."""

    instant: int
    """Seconds since the epoch, UTC, when the change occurs."""

    dst: bool
    """True if daylight saving time begins, False if standard time begins."""

    name: str
    """Name of the timezone in effect after the change, e.g. EDT."""


@dataclass(frozen=True)
class TimezoneSpec:
    """A parsed POSIX timezone string.

    Offsets follow the POSIX convention of time added to local time to get
    UTC, so they are positive west of UTC (5:00:00 for EST).
    """

    std_name: str = ""
    """Standard time timezone name, e.g. EST."""

    std_offset: TimeOfDay = TimeOfDay()
    """Standard time offset, positive in the United States."""

    dst_name: str = ""
    """Daylight saving time timezone name, empty if there is no DST."""

    dst_offset: TimeOfDay = TimeOfDay()
    """Daylight saving time offset, usually one hour less than std_offset."""

    dst_start: TransitionRule = TransitionRule()
    """Rule for when daylight saving time starts."""

    standard_start: TransitionRule = TransitionRule()
    """Rule for when standard time starts."""

    valid: bool = False
    """True if the configuration was parsed successfully."""

    @classmethod
    def parse(cls, value: str) -> TimezoneSpec:
        """Parse a POSIX timezone string, returning an invalid spec if it is malformed."""
        return cls._parse(value, strict=False)

    @classmethod
    def parse_strict(cls, value: str) -> TimezoneSpec:
        """Parse a POSIX timezone string, raising TimezoneParseError if it is malformed."""
        return cls._parse(value, strict=True)

    @classmethod
    def _parse(cls, value: str, strict: bool) -> TimezoneSpec:
        def degrade(message: str) -> None:
            if strict:
                raise TimezoneParseError(f"{message}: {value}", value=value)
            _LOGGER.debug("%s: %s", message, value)

        buffer = value.strip()
        if (std_match := _NAME_RE.match(buffer)) is None:
            degrade("Unable to parse TZ string, missing standard name")
            return cls()
        buffer = buffer[std_match.end() :]
        if (std_offset_match := _OFFSET_RE.match(buffer)) is None:
            degrade("Unable to parse TZ string, missing standard offset")
            return cls()
        buffer = buffer[std_offset_match.end() :]
        std_offset = TimeOfDay.from_match(std_offset_match)

        dst_name = ""
        dst_offset: TimeOfDay | None = None
        default_dst_seconds = std_offset.to_seconds() - _ONE_HOUR
        if not -_ONE_HOUR < default_dst_seconds < 0:
            dst_offset = TimeOfDay.from_seconds(default_dst_seconds)
        if (dst_match := _NAME_RE.match(buffer)) is not None:
            buffer = buffer[dst_match.end() :]
            dst_name = _name_from_match(dst_match)
            if (dst_offset_match := _OFFSET_RE.match(buffer)) is not None:
                buffer = buffer[dst_offset_match.end() :]
                dst_offset = TimeOfDay.from_match(dst_offset_match)
            elif dst_offset is None:
                degrade("Unable to parse TZ string, default DST offset out of range")
                return cls()

        dst_start = standard_start = TransitionRule()
        if buffer.startswith(","):
            rules = buffer[1:].split(",")
            buffer = ""
            if not dst_name:
                degrade("Unable to parse TZ string, rules without a DST name")
            elif len(rules) != 2:
                degrade("Unable to parse TZ string, should have both start and end rules")
            elif strict:
                dst_start = TransitionRule.parse_strict(rules[0])
                standard_start = TransitionRule.parse_strict(rules[1])
            else:
                dst_start = TransitionRule.parse(rules[0])
                standard_start = TransitionRule.parse(rules[1])
                if not dst_start.valid or not standard_start.valid:
                    dst_start = standard_start = TransitionRule()
        if buffer:
            degrade("Unable to parse TZ string, unexpected trailing data")

        return cls(
            std_name=_name_from_match(std_match),
            std_offset=std_offset,
            dst_name=dst_name,
            dst_offset=dst_offset if dst_offset is not None else std_offset,
            dst_start=dst_start,
            standard_start=standard_start,
            valid=True,
        )

    @property
    def has_dst(self) -> bool:
        """Return True if this timezone has daylight saving time."""
        return self.dst_start.valid

    @property
    def is_z(self) -> bool:
        """Return True if this timezone is UTC, which includes an invalid timezone."""
        return not self.valid or (not self.has_dst and self.std_offset.to_seconds() == 0)

    def transitions(self, year: int) -> tuple[int, int] | None:
        """Return the UTC instants DST starts and standard time starts in a year.

        Each rule is evaluated with the offset in effect before that change. In
        the southern hemisphere the DST start is later in the year than the
        standard time start.
        """
        if not self.has_dst:
            return None
        dst_start = self.dst_start.calculate(year, self.std_offset)
        standard_start = self.standard_start.calculate(year, self.dst_offset)
        if dst_start is None or standard_start is None:
            return None
        return (dst_start, standard_start)

    def is_dst_at(self, instant: int) -> bool:
        """Return True if daylight saving time is in effect at the UTC instant."""
        if not self.has_dst:
            return False
        year = instant_to_tm(instant - self.std_offset.to_seconds()).tm_year
        if (changes := self.transitions(year)) is None:
            return False
        dst_start, standard_start = changes
        if dst_start < standard_start:
            return dst_start <= instant < standard_start
        return not (standard_start <= instant < dst_start)

    def utc_offset_at(self, instant: int) -> TimeOfDay:
        """Return the POSIX offset (positive west of UTC) in effect at the UTC instant."""
        if not self.valid:
            return TimeOfDay()
        if self.is_dst_at(instant):
            return self.dst_offset
        return self.std_offset

    def zone_name_at(self, instant: int) -> str:
        """Return the timezone abbreviation in effect at the UTC instant."""
        if not self.valid:
            return "UTC"
        if self.is_dst_at(instant):
            return self.dst_name
        return self.std_name

    def local_to_utc(self, wall: int) -> int:
        """Convert local time, as seconds since the epoch on the wall clock, to UTC.

        A local time that falls in the hour skipped when DST starts does not
        exist and resolves to the instant of the time change, which reads back
        as the first local time after the gap. A local time in the hour that
        is repeated when DST ends resolves to the second occurrence, after
        the change.
        """
        if not self.valid:
            return wall
        as_std = wall + self.std_offset.to_seconds()
        if not self.has_dst:
            return as_std
        as_dst = wall + self.dst_offset.to_seconds()
        std_ok = not self.is_dst_at(as_std)
        dst_ok = self.is_dst_at(as_dst)
        if std_ok and dst_ok:
            _LOGGER.debug("Local time %s is repeated, using the later instant", wall)
            return max(as_std, as_dst)
        if std_ok:
            return as_std
        if dst_ok:
            return as_dst
        _LOGGER.debug("Local time %s is skipped, using the time change", wall)
        low, high = sorted((as_std, as_dst))
        year = instant_to_tm(wall).tm_year
        for candidate_year in (year, year - 1, year + 1):
            if changes := self.transitions(candidate_year):
                for change in changes:
                    if low <= change <= high:
                        return change
        return high

    def iter_transitions(self, start_year: int) -> Iterator[Transition]:
        """Return the time changes from the start of the year onward in order."""
        if not self.has_dst:
            return
        dtstart = datetime.datetime(start_year, 1, 1)
        starts = (
            self._transition(date, dst=True)
            for date in self.dst_start.as_rrule(dtstart)
        )
        ends = (
            self._transition(date, dst=False)
            for date in self.standard_start.as_rrule(dtstart)
        )
        yield from heapq.merge(starts, ends, key=lambda change: change.instant)

    def _transition(self, date: datetime.datetime, dst: bool) -> Transition:
        """Return the time change for the local date of one of the rules."""
        rule, prior_offset, name = (
            (self.dst_start, self.std_offset, self.dst_name)
            if dst
            else (self.standard_start, self.dst_offset, self.std_name)
        )
        midnight = tm_to_instant((date.year, date.month, date.day, 0, 0, 0))
        return Transition(
            instant=midnight + rule.time.to_seconds() + prior_offset.to_seconds(),
            dst=dst,
            name=name,
        )

    def __str__(self) -> str:
        """Return the normalized POSIX timezone string."""
        if not self.valid:
            return ""
        parts = [_format_name(self.std_name), str(self.std_offset)]
        if self.dst_name:
            parts.extend([_format_name(self.dst_name), str(self.dst_offset)])
        if self.has_dst:
            parts.extend([",", str(self.dst_start), ",", str(self.standard_start)])
        return "".join(parts)


def _name_from_match(match: re.Match[str]) -> str:
    """Return a timezone name from a match with any angle brackets removed."""
    return match.group("quoted") or match.group("name")


def _format_name(name: str) -> str:
    """Return a timezone name, quoted when it is not only letters."""
    if name.isalpha():
        return name
    return f"<{name}>"
