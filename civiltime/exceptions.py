"""Exceptions for civiltime library."""


class CivilTimeError(Exception):
    """Base exception for all civiltime errors."""


class CivilTimeParseError(CivilTimeError, ValueError):
    """Exception raised when a strict parse of an input string fails.

    The tolerant parsers in this library never raise and instead degrade to
    a zero or invalid value. The strict entry points raise this exception so
    that configuration mistakes are visible to the caller. The 'value'
    attribute contains the string that failed to parse.
    """

    def __init__(self, message: str, *, value: str | None = None) -> None:
        """Initialize the CivilTimeParseError with a message."""
        super().__init__(message)
        self.message = message
        self.value = value


class TimeOfDayParseError(CivilTimeParseError):
    """Exception raised when a time of day string such as "2:00:00" is invalid."""


class TimezoneParseError(CivilTimeParseError):
    """Exception raised when a POSIX timezone string is invalid."""
