"""Tests for the time_of_day library."""

import pytest

from civiltime.exceptions import CivilTimeParseError, TimeOfDayParseError
from civiltime.time_of_day import IGNORE_HMS, TimeOfDay


@pytest.mark.parametrize(
    "value,expected",
    [
        ("2:00:00", TimeOfDay(2, 0, 0)),
        ("02:00:00", TimeOfDay(2, 0, 0)),
        ("2:0:0", TimeOfDay(2, 0, 0)),
        ("2:30", TimeOfDay(2, 30, 0)),
        ("2", TimeOfDay(2, 0, 0)),
        ("14:30:15", TimeOfDay(14, 30, 15)),
        ("-4", TimeOfDay(-4, 0, 0)),
        ("+5", TimeOfDay(5, 0, 0)),
        ("-3:30", TimeOfDay(-3, 30, 0)),
        ("25:00", TimeOfDay(25, 0, 0)),
        (" 4:00 ", TimeOfDay(4, 0, 0)),
    ],
)
def test_parse(value: str, expected: TimeOfDay) -> None:
    """Test parsing the supported time of day formats."""
    assert TimeOfDay.parse(value) == expected
    assert TimeOfDay.parse_strict(value) == expected


@pytest.mark.parametrize("value", ["", "abc", "1:2:3:4", "2:", ":30", "2h"])
def test_parse_malformed(value: str) -> None:
    """Test a malformed time of day is zero rather than an error."""
    assert TimeOfDay.parse(value) == TimeOfDay()
    with pytest.raises(TimeOfDayParseError, match="Unable to parse time of day"):
        TimeOfDay.parse_strict(value)


def test_parse_out_of_range() -> None:
    """Test minutes and seconds over 59 are rejected."""
    assert TimeOfDay.parse("1:75") == TimeOfDay()
    assert TimeOfDay.parse("1:00:60") == TimeOfDay()
    assert TimeOfDay.parse("1:59:59") == TimeOfDay(1, 59, 59)
    with pytest.raises(CivilTimeParseError, match="between 0 and 59"):
        TimeOfDay.parse_strict("1:75")
    with pytest.raises(ValueError):
        TimeOfDay.parse_strict("1:00:60")


def test_to_seconds() -> None:
    """Test converting to seconds, where a negative hour negates the value."""
    assert TimeOfDay(14, 30, 15).to_seconds() == 52215
    assert TimeOfDay(-4).to_seconds() == -14400
    assert TimeOfDay(-4, 30).to_seconds() == -16200
    assert TimeOfDay().to_seconds() == 0


def test_from_seconds() -> None:
    """Test creating a time of day from a number of seconds."""
    assert TimeOfDay.from_seconds(52215) == TimeOfDay(14, 30, 15)
    assert TimeOfDay.from_seconds(-16200) == TimeOfDay(-4, 30, 0)
    assert TimeOfDay.from_seconds(-16200).to_seconds() == -16200
    assert TimeOfDay.from_seconds(-3600) == TimeOfDay(-1, 0, 0)
    assert TimeOfDay.from_seconds(1800) == TimeOfDay(0, 30, 0)


@pytest.mark.parametrize("seconds", [-1, -1800, -3599])
def test_from_seconds_negative_under_one_hour(seconds: int) -> None:
    """Test a negative value the signed hour can't represent is an error."""
    with pytest.raises(ValueError, match="at least one hour"):
        TimeOfDay.from_seconds(seconds)


def test_str() -> None:
    """Test the normalized string value."""
    assert str(TimeOfDay(2)) == "2:00:00"
    assert str(TimeOfDay(14, 5, 9)) == "14:05:09"
    assert str(TimeOfDay(-1)) == "-1:00:00"


def test_ignore() -> None:
    """Test the sentinel that preserves the time of day."""
    assert IGNORE_HMS.ignore
    assert not TimeOfDay.parse("2:00").ignore
    assert IGNORE_HMS != TimeOfDay()
