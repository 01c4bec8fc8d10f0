from decimal import Decimal

import pytest

from quickpe.core.money import AmountFormatError, format_inr, to_paise, to_rupees
from quickpe.modules.transfers import InvalidAmount, parse_amount


@pytest.mark.parametrize(
    "value, expected",
    [
        (100, 10_000),
        ("100", 10_000),
        ("0.01", 1),
        (10.1, 1010),
        (Decimal("12.50"), 1250),
        (" 7.5 ", 750),
    ],
)
def test_to_paise_accepts_rupee_amounts(value, expected):
    assert to_paise(value) == expected


@pytest.mark.parametrize("value", [None, True, 0, -5, "abc", "", "NaN", "Infinity", float("inf")])
def test_to_paise_rejects_invalid_values(value):
    with pytest.raises(AmountFormatError):
        to_paise(value)


def test_to_paise_rejects_fractional_paise():
    with pytest.raises(ValueError) as excinfo:
        to_paise("1.005")

    assert str(excinfo.value) == "Amount cannot have more than two decimal places"


@pytest.mark.parametrize(
    "value, message",
    [("abc", "Invalid amount"), ("0.001", "Amount cannot have more than two decimal places")],
)
def test_parse_amount_raises_domain_error(value, message):
    with pytest.raises(InvalidAmount) as excinfo:
        parse_amount(value)

    assert excinfo.value.message == message
    assert excinfo.value.status_code == 400


def test_parse_amount_returns_paise():
    assert parse_amount("250.75") == 25_075


def test_rupee_rendering():
    assert to_rupees(1) == Decimal("0.01")
    assert format_inr(123_450) == "₹1,234.50"
    assert format_inr(-500) == "-₹5.00"
