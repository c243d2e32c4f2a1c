"""
.. include:: ../README.md
"""

__all__ = [
    "calendar_util",
    "civil_time",
    "config",
    "converter",
    "exceptions",
    "time_of_day",
    "tz_rule",
    "tzinfo",
]
