"""Library for parsing an hour, minute, and second time of day.

The same value is used both as a time of day ("14:00:00") and as a signed
offset from UTC ("-4" or "5"), so the hour may be negative or larger than 23.
The minute and second are always positive.

Supported formats, with optional leading zeros:
  - H:MM:SS  (examples: "2:00:00" or "2:0:0")
  - H:MM     (examples: "2:00" or "2:0")
  - H        (examples: "2" or "-4")
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import re
import time

from .exceptions import TimeOfDayParseError

__all__ = [
    "TimeOfDay",
    "IGNORE_HMS",
]

_LOGGER = logging.getLogger(__name__)

TIME_OF_DAY_PATTERN = (
    r"(?P<sign>[+-])?(?P<hour>\d+)(?::(?P<minute>\d{1,2})(?::(?P<second>\d{1,2}))?)?"
)
_TIME_OF_DAY_RE = re.compile(TIME_OF_DAY_PATTERN)


@dataclass(frozen=True)
class TimeOfDay:
    """An hour, minute, and second value."""

    hour: int = 0
    """Hour 0-23 as a time of day, could also be negative or more than 23 as an offset."""

    minute: int = 0
    """Minute 0-59."""

    second: int = 0
    """Second 0-59."""

    ignore: bool = False
    """When set, functions that accept a time of day leave the time unchanged."""

    @classmethod
    def parse(cls, value: str) -> TimeOfDay:
        """Parse a time of day string, returning 0:00:00 if it is malformed.

        Minutes or seconds over 59 are malformed.
        """
        if (match := _TIME_OF_DAY_RE.fullmatch(value.strip())) is None:
            _LOGGER.debug("Unable to parse time of day '%s', using 0:00:00", value)
            return cls()
        result = cls.from_match(match)
        if result.minute > 59 or result.second > 59:
            _LOGGER.debug("Time of day '%s' is out of range, using 0:00:00", value)
            return cls()
        return result

    @classmethod
    def parse_strict(cls, value: str) -> TimeOfDay:
        """Parse a time of day string, raising an error if it is malformed."""
        if (match := _TIME_OF_DAY_RE.fullmatch(value.strip())) is None:
            raise TimeOfDayParseError(
                f"Unable to parse time of day: {value}", value=value
            )
        result = cls.from_match(match)
        if result.minute > 59 or result.second > 59:
            raise TimeOfDayParseError(
                f"Minutes and seconds must be between 0 and 59: {value}", value=value
            )
        return result

    @classmethod
    def from_match(cls, match: re.Match[str]) -> TimeOfDay:
        """Create a time of day from a match of TIME_OF_DAY_PATTERN."""
        hour = int(match.group("hour"))
        if match.group("sign") == "-":
            hour = -hour
        return cls(
            hour=hour,
            minute=int(match.group("minute") or 0),
            second=int(match.group("second") or 0),
        )

    @classmethod
    def from_seconds(cls, seconds: int) -> TimeOfDay:
        """Create a time of day from a number of seconds, which may be negative.

        Only the hour carries the sign, so a negative value under one hour
        can't be represented and raises ValueError.
        """
        if -3600 < seconds < 0:
            raise ValueError(
                f"Negative time of day must be at least one hour: {seconds}"
            )
        sign = -1 if seconds < 0 else 1
        hours, remainder = divmod(abs(seconds), 3600)
        minutes, secs = divmod(remainder, 60)
        return cls(hour=sign * hours, minute=minutes, second=secs)

    @classmethod
    def from_tm(cls, tm: time.struct_time) -> TimeOfDay:
        """Create a time of day from the hour, minute, and second of broken-down time."""
        return cls(hour=tm.tm_hour, minute=tm.tm_min, second=tm.tm_sec)

    def to_seconds(self) -> int:
        """Return the number of seconds, negative when the hour is negative."""
        seconds = abs(self.hour) * 3600 + self.minute * 60 + self.second
        return -seconds if self.hour < 0 else seconds

    def __str__(self) -> str:
        """Return the normalized H:MM:SS string (24-hour clock)."""
        return f"{self.hour}:{self.minute:02d}:{self.second:02d}"


IGNORE_HMS = TimeOfDay(ignore=True)
"""Pass instead of a time of day to preserve the existing time of day."""
