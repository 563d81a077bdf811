from parsers.receipt import DEFAULT_DESCRIPTION, extract_amount, parse_receipt_text
from utils.date_helpers import format_date, today

RECEIPT = """FRESH MART
12 Lake Road
Date: 05/03/2024
Milk 2 x 30.00
Bread 45.00
TOTAL: 1,105.00
Thank you for shopping"""


def test_parse_receipt():
    data = parse_receipt_text(RECEIPT)

    assert data.amount == 1105.0
    assert data.date == "2024-03-05"
    assert data.description == "FRESH MART"
    assert data.category == "Groceries"


def test_currency_prefix_amount():
    assert extract_amount("Paid Rs. 2,499.00 by card") == 2499.0
    assert extract_amount("nothing here") == 0.0


def test_unreadable_receipt_defaults():
    data = parse_receipt_text("??\n##")

    assert data.amount == 0.0
    assert data.date == format_date(today())
    assert data.description == DEFAULT_DESCRIPTION
    assert data.category == "Other"
