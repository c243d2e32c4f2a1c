"""An implementation of tzinfo based on a POSIX timezone string.

This allows a `TimezoneSpec` to be used with the standard datetime module.
As with the rest of this library only the single rule in the POSIX string is
used, and it is applied for all years.

The `fold` attribute of a datetime is ignored. A local time in the repeated
hour when DST ends is always treated as the second occurrence, in standard
time, and a local time in the skipped hour when DST starts is treated as
the time of the change.
"""

from __future__ import annotations

import calendar
import datetime

from .tz_rule import TimezoneSpec

__all__ = ["PosixTzInfo"]

_ZERO = datetime.timedelta(0)


class PosixTzInfo(datetime.tzinfo):
    """A tzinfo for a TimezoneSpec."""

    def __init__(self, spec: TimezoneSpec) -> None:
        """Initialize PosixTzInfo."""
        self._spec = spec

    @classmethod
    def from_string(cls, value: str) -> PosixTzInfo:
        """Create a new instance from a POSIX timezone string.

        Raises TimezoneParseError if the string is not valid, rather than
        silently using UTC.
        """
        return cls(TimezoneSpec.parse_strict(value))

    @property
    def spec(self) -> TimezoneSpec:
        """Return the timezone rules."""
        return self._spec

    def _instant(self, dt: datetime.datetime) -> int:
        """Return the UTC instant for a datetime in this timezone."""
        wall = calendar.timegm(dt.replace(tzinfo=None).timetuple())
        return self._spec.local_to_utc(wall)

    def utcoffset(self, dt: datetime.datetime | None) -> datetime.timedelta:
        """Return offset of local time from UTC, as a timedelta object."""
        if dt is None:
            return _ZERO
        offset = self._spec.utc_offset_at(self._instant(dt))
        return datetime.timedelta(seconds=-offset.to_seconds())

    def dst(self, dt: datetime.datetime | None) -> datetime.timedelta | None:
        """Return the daylight saving time (DST) adjustment, if applicable."""
        if dt is None or not self._spec.has_dst:
            return None
        if self._spec.is_dst_at(self._instant(dt)):
            return datetime.timedelta(
                seconds=self._spec.std_offset.to_seconds()
                - self._spec.dst_offset.to_seconds()
            )
        return _ZERO

    def tzname(self, dt: datetime.datetime | None) -> str | None:
        """Return the time zone name for the datetime as a string."""
        if dt is None:
            return None
        return self._spec.zone_name_at(self._instant(dt))

    def fromutc(self, dt: datetime.datetime) -> datetime.datetime:
        """Convert a UTC datetime with this tzinfo attached to local time."""
        if dt.tzinfo is not self:
            raise ValueError("fromutc: dt.tzinfo is not self")
        naive = dt.replace(tzinfo=None)
        offset = self._spec.utc_offset_at(calendar.timegm(naive.timetuple()))
        local = naive - datetime.timedelta(seconds=offset.to_seconds())
        return local.replace(tzinfo=self)

    def __str__(self) -> str:
        """Return the string representation of the timezone."""
        return self._spec.std_name or "UTC"

    def __repr__(self) -> str:
        """Return the string representation of the timezone."""
        return f"PosixTzInfo({self._spec})"
