"""Tests for amount parsing and formatting."""

from decimal import Decimal

import pytest

from budgetkoll.utils.amount_parser import MAX_ORE, MIN_ORE, format_ore, is_ore, parse_amount, parse_amount_ore


@pytest.mark.parametrize(
    "text, expected",
    [
        ("-1 234,56", -123456),
        ("1,234.56", 123456),
        ("4,00", 400),
        ("4,000", 400000),
        ("25 000,00", 2500000),
        ("123.45", 12345),
        ("−50,00", -5000),
        ("(12.50)", -1250),
        ("99,90 kr", 9990),
        ("SEK 10", 1000),
    ],
)
def test_parse_amount_ore_formats(text, expected):
    """Swedish and international formats all land in integer öre."""
    assert parse_amount_ore(text) == expected


def test_parse_amount_returns_decimal():
    assert parse_amount("12,5") == Decimal("12.5")


def test_parse_amount_ore_rounds_half_up():
    assert parse_amount_ore("0,005") == 1
    assert parse_amount_ore("-0,005") == -1


@pytest.mark.parametrize("text", ["", "   ", "abc", "12,34,56x"])
def test_parse_amount_invalid(text):
    with pytest.raises(ValueError):
        parse_amount(text)


def test_format_ore():
    """Display divides by 100 exactly once."""
    assert format_ore(-123456) == "-1 234,56 kr"
    assert format_ore(5) == "0,05 kr"
    assert format_ore(100000000) == "1 000 000,00 kr"
    assert format_ore(2500, currency="") == "25,00"


def test_amount_survives_parse_and_display():
    ore = parse_amount_ore("-1 234,56")
    assert isinstance(ore, int)
    assert format_ore(ore) == "-1 234,56 kr"


@pytest.mark.parametrize("text", ["1e30", "99999999999999999999", "-99999999999999999999"])
def test_parse_amount_ore_out_of_range(text):
    """Amounts that cannot be stored raise ValueError, not an arithmetic error."""
    with pytest.raises(ValueError, match="out of range"):
        parse_amount_ore(text)


def test_is_ore_bounds():
    assert is_ore(0)
    assert is_ore(MAX_ORE)
    assert is_ore(MIN_ORE)
    assert not is_ore(MAX_ORE + 1)
    assert not is_ore(MIN_ORE - 1)
    assert not is_ore(True)
    assert not is_ore(12.5)
