from handlers.recurring_handler import parse_recurring_args
from handlers.transaction_handler import parse_add_args, parse_edit_args
from utils.date_helpers import format_date, today


def test_parse_add_args_full():
    assert parse_add_args("expense | 1,250 | Food | Team lunch | 05/03/2024") == {
        "type": "expense",
        "amount": "1250",
        "category": "Food",
        "description": "Team lunch",
        "date": "2024-03-05",
    }


def test_parse_add_args_defaults_to_today():
    parsed = parse_add_args("Income | 5000 | Salary")
    assert parsed["type"] == "income"
    assert parsed["description"] is None
    assert parsed["date"] == format_date(today())


def test_parse_add_args_rejects_bad_shape():
    assert parse_add_args("expense 250 Food") is None
    assert parse_add_args("expense | 250 | Food | x | someday") is None


def test_parse_edit_args_joins_multiword_values():
    assert parse_edit_args(["amount=1,200", "desc=Dinner", "with", "friends", "cat=Food"]) == {
        "amount": "1200",
        "description": "Dinner with friends",
        "category": "Food",
    }


def test_parse_edit_args_ignores_unknown_keys():
    assert parse_edit_args(["colour=red", "amount=5"]) == {"amount": "5"}


def test_parse_recurring_args():
    assert parse_recurring_args("Salary | ₹50,000 | month | 01/01/2024 | income | Income") == {
        "name": "Salary",
        "amount": "50000",
        "frequency": "monthly",
        "start_date": "2024-01-01",
        "type": "income",
        "category": "Income",
    }

    minimal = parse_recurring_args("Netflix | 499 | monthly")
    assert minimal["start_date"] == format_date(today())
    assert (minimal["type"], minimal["category"]) == ("expense", "Other")


def test_parse_recurring_args_rejects_bad_input():
    assert parse_recurring_args("Netflix | 499") is None
    assert parse_recurring_args("Netflix | 499 | hourly") is None
    assert parse_recurring_args("Netflix | abc | daily") is None
    assert parse_recurring_args("Netflix | 499 | daily | someday") is None
