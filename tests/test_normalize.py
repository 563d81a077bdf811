from datetime import date, datetime

import pytest

from models.transaction import ParsedTransaction
from parsers.normalize import (
    clean_amount,
    is_valid_row,
    normalize_date,
    normalize_description,
    serial_to_date,
)


@pytest.mark.parametrize("raw, expected", [
    ("₹1,234.56 Dr", 1234.56),
    ("", 0.0),
    (None, 0.0),
    ("-45.50", -45.5),
    ("Rs. 500", 500.0),
    ("Rs.500", 500.0),
    ("INR 2,000", 2000.0),
    ("1.234.5", 1.234),
    ("n/a", 0.0),
    (250, 250.0),
    (float("nan"), 0.0),
])
def test_clean_amount(raw, expected):
    assert clean_amount(raw) == pytest.approx(expected)


def test_serial_to_date_uses_1899_epoch():
    assert serial_to_date(1) == date(1899, 12, 31)
    assert serial_to_date(45352) == date(2024, 3, 1)


def test_normalize_date():
    assert normalize_date(45352) == "2024-03-01"
    assert normalize_date(datetime(2024, 3, 1, 10, 30)) == "2024-03-01"
    assert normalize_date(date(2024, 3, 1)) == "2024-03-01"
    assert normalize_date(" 01/03/2024 ") == "01/03/2024"
    assert normalize_date(None) == ""


def test_normalize_description_strips_formula_and_quotes():
    assert normalize_description('=HYPERLINK("x")') == "HYPERLINK(x)"
    assert normalize_description("a" * 300) == "a" * 200
    assert normalize_description(None) == ""


@pytest.mark.parametrize("tx, valid", [
    (ParsedTransaction(date="2024-01-01", description="Rent", amount=100.0, type="expense"), True),
    (ParsedTransaction(date="", description="Rent", amount=100.0, type="expense"), False),
    (ParsedTransaction(date="2024-01-01", description="", amount=100.0, type="expense"), False),
    (ParsedTransaction(date="2024-01-01", description="Rent", amount=0.0, type="expense"), False),
])
def test_is_valid_row(tx, valid):
    assert is_valid_row(tx) is valid
