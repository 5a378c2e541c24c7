"""Small helpers for writing suites."""

import datetime
from typing import Optional


def format_future_date(days_ahead: int, format: str, today: Optional[datetime.date] = None) -> str:
    """Format a date a number of days from today.

    Tokens:
        %d  day of month
        %D  zero-padded day of month
        %m  month
        %M  zero-padded month
        %Z  zero-padded zero-based month (January is 00)
        %y  two-digit year
        %Y  four-digit year

    Args:
        days_ahead: Days to add, may be negative
        format: Format string with the tokens above
        today: Reference date, defaults to today

    Returns:
        Formatted date
    """
    date = (today or datetime.date.today()) + datetime.timedelta(days=days_ahead)

    syntax = {
        "d": str(date.day),
        "D": f"{date.day:02d}",
        "m": str(date.month),
        "M": f"{date.month:02d}",
        "Z": f"{date.month - 1:02d}",
        "y": str(date.year)[2:4],
        "Y": str(date.year),
    }

    for code, replacement in syntax.items():
        format = format.replace(f"%{code}", replacement)

    return format
