"""Date parsing utilities."""

import re
from datetime import date, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

_OFFSET = re.compile(r"^(?:in\s+)?(\d+)\s+(day|week|month)s?(\s+ago)?$")


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Supports:
    - ISO dates: "2024-01-15"
    - Day-first dates: "15/01/2024"
    - Relative dates: "today", "yesterday", "tomorrow", "next month",
      "in 3 days", "2 weeks ago", "1 month"

    Args:
        date_str: Date string
        today: Reference date for relative forms (defaults to date.today())

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = date_str.strip().lower()
    today = today or date.today()

    named = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
        "next month": today + relativedelta(months=1),
        "last month": today - relativedelta(months=1),
    }
    if text in named:
        return named[text]

    match = _OFFSET.match(text)
    if match:
        count, unit, ago = int(match.group(1)), match.group(2), match.group(3)
        offset = relativedelta(**{f"{unit}s": count})
        return today - offset if ago else today + offset

    try:
        # ISO strings stay year-first; everything else is read day-first
        if re.match(r"^\d{4}-\d{2}-\d{2}$", text):
            return date_parser.isoparse(text).date()
        return date_parser.parse(text, dayfirst=True).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}") from None
