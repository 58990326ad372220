"""Date and month-key parsing utilities."""

import calendar
import re
from datetime import date, datetime, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

MONTH_KEY_PATTERN = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports the formats Swedish banks export plus a few relative words:
    - ISO dates: "2024-01-15"
    - Compact dates: "20240115"
    - Day-first dates: "15/01/2024", "15.01.2024"
    - Relative dates: "today", "idag", "yesterday", "igår"

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    if not date_str:
        raise ValueError("Empty date string")

    today = date.today()
    relative_dates = {
        "today": today,
        "idag": today,
        "yesterday": today - timedelta(days=1),
        "igår": today - timedelta(days=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    if re.fullmatch(r"\d{8}", date_str):
        try:
            return datetime.strptime(date_str, "%Y%m%d").date()
        except ValueError as e:
            raise ValueError(f"Could not parse date '{date_str}'") from e

    # ISO first, then day-first for everything else
    dayfirst = not re.match(r"^\d{4}-", date_str)
    try:
        return date_parser.parse(date_str, dayfirst=dayfirst).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}'") from e


def validate_month_key(month_key: str) -> str:
    """Return ``month_key`` unchanged if it is a valid "YYYY-MM" string.

    Raises:
        ValueError: If the key is malformed
    """
    if not isinstance(month_key, str) or not MONTH_KEY_PATTERN.match(month_key):
        raise ValueError(f"Invalid month key '{month_key}', expected YYYY-MM")
    return month_key


def month_key_for(day: date) -> str:
    """Month key containing ``day``."""
    return f"{day.year:04d}-{day.month:02d}"


def month_bounds(month_key: str) -> tuple[date, date]:
    """First and last calendar day of the month named by ``month_key``."""
    validate_month_key(month_key)
    year, month = (int(part) for part in month_key.split("-"))
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def shift_month_key(month_key: str, months: int) -> str:
    """Month key ``months`` months after (or before) ``month_key``."""
    first, _ = month_bounds(month_key)
    return month_key_for(first + relativedelta(months=months))


def js_weekday(day: date) -> int:
    """Weekday numbered 0=Sunday..6=Saturday."""
    return (day.weekday() + 1) % 7
