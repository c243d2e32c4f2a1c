"""Test fixtures."""

from collections.abc import Generator

import pytest

from civiltime import config
from civiltime.tz_rule import TimezoneSpec

EASTERN = "EST5EDT,M3.2.0/2:00:00,M11.1.0/2:00:00"
CENTRAL_EUROPE = "CET-1CEST,M3.5.0/2:00:00,M10.5.0/3:00:00"
SYDNEY = "AEST-10AEDT,M10.1.0,M4.1.0/3"


@pytest.fixture(autouse=True)
def reset_default_timezone() -> Generator[None, None, None]:
    """Restore the default timezone (UTC) around each test."""
    with config.use_timezone(TimezoneSpec()):
        yield


@pytest.fixture
def eastern() -> TimezoneSpec:
    """Fixture for the United States eastern timezone."""
    return TimezoneSpec.parse(EASTERN)


@pytest.fixture
def central_europe() -> TimezoneSpec:
    """Fixture for the central european timezone."""
    return TimezoneSpec.parse(CENTRAL_EUROPE)


@pytest.fixture
def sydney() -> TimezoneSpec:
    """Fixture for a southern hemisphere timezone."""
    return TimezoneSpec.parse(SYDNEY)
