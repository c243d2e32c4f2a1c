"""Default timezone configuration shared by time conversions.

A `TimeConverter` that is not given a timezone uses the default timezone
from this module. The default is held in a context variable and should be
set once at startup and then only read. If it is never set, local time is
UTC with no daylight saving time.

Example:
    settings = LocalTimeSettings.model_validate(
        {"timezone": "EST5EDT,M3.2.0/2:00:00,M11.1.0/2:00:00"}
    )
    settings.apply()
"""

from __future__ import annotations

from collections.abc import Generator
import contextlib
import contextvars
import logging
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_serializer,
    field_validator,
)

from .tz_rule import TimezoneSpec

__all__ = [
    "LocalTimeSettings",
    "get_default_timezone",
    "set_default_timezone",
    "use_timezone",
]

_LOGGER = logging.getLogger(__name__)

_default_timezone: contextvars.ContextVar[TimezoneSpec] = contextvars.ContextVar(
    "default_timezone", default=TimezoneSpec()
)


def _as_timezone(timezone: TimezoneSpec | str) -> TimezoneSpec:
    if isinstance(timezone, str):
        return TimezoneSpec.parse(timezone)
    return timezone


def set_default_timezone(
    timezone: TimezoneSpec | str,
) -> contextvars.Token[TimezoneSpec]:
    """Set the default timezone used by conversions without their own timezone."""
    spec = _as_timezone(timezone)
    if not spec.valid:
        _LOGGER.debug("Default timezone is not valid, local time will be UTC")
    return _default_timezone.set(spec)


def get_default_timezone() -> TimezoneSpec:
    """Return the default timezone, an invalid (UTC) spec if it was never set."""
    return _default_timezone.get()


@contextlib.contextmanager
def use_timezone(timezone: TimezoneSpec | str) -> Generator[TimezoneSpec, None, None]:
    """Context manager to temporarily change the default timezone."""
    token = set_default_timezone(timezone)
    try:
        yield _default_timezone.get()
    finally:
        _default_timezone.reset(token)


class LocalTimeSettings(BaseModel):
    """Settings for local time conversion, typically loaded from a config file."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    strict: bool = False
    """Reject a timezone string that would otherwise degrade to UTC."""

    timezone: TimezoneSpec = Field(default_factory=TimezoneSpec)
    """A POSIX timezone string such as EST5EDT,M3.2.0/2:00:00,M11.1.0/2:00:00."""

    @field_validator("timezone", mode="before")
    @classmethod
    def parse_timezone(cls, value: Any, info: ValidationInfo) -> Any:
        """Parse a POSIX timezone string into a TimezoneSpec."""
        if not isinstance(value, str):
            return value
        if info.data.get("strict"):
            return TimezoneSpec.parse_strict(value)
        return TimezoneSpec.parse(value)

    @field_serializer("timezone")
    def serialize_timezone(self, value: TimezoneSpec) -> str:
        """Serialize the timezone as a POSIX timezone string."""
        return str(value)

    def apply(self) -> contextvars.Token[TimezoneSpec]:
        """Install these settings as the default timezone."""
        return set_default_timezone(self.timezone)
