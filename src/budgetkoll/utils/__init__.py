"""Utility functions for budgetkoll."""

from budgetkoll.utils.date_parser import parse_date, month_bounds, validate_month_key
from budgetkoll.utils.amount_parser import parse_amount, parse_amount_ore, format_ore

__all__ = [
    "parse_date",
    "month_bounds",
    "validate_month_key",
    "parse_amount",
    "parse_amount_ore",
    "format_ore",
]
