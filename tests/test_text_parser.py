from parsers.text_parser import parse_line, parse_text


def test_date_description_amount_with_marker():
    tx = parse_line("2024-03-01 Grocery Store 1,250.00 Dr")
    assert (tx.date, tx.description, tx.amount, tx.type) == ("2024-03-01", "Grocery Store", 1250.0, "expense")


def test_description_amount_date():
    tx = parse_line("Salary credit 50000 15/03/2024")
    assert (tx.date, tx.description, tx.amount, tx.type) == ("15/03/2024", "Salary credit", 50000.0, "income")


def test_amount_description_date():
    tx = parse_line("-450.00 Uber ride 2024-03-02")
    assert (tx.date, tx.description, tx.amount, tx.type) == ("2024-03-02", "Uber ride", 450.0, "expense")


def test_unmatched_lines_are_ignored():
    content = (
        "Statement of account\n"
        "Opening balance\n"
        "2024-03-01 Grocery Store 1,250.00 Dr\n"
        "\n"
        "2024-03-04 Refund 99.00 Cr\n"
    ).encode("utf-8")

    parsed = parse_text(content)

    assert [(t.description, t.type) for t in parsed] == [("Grocery Store", "expense"), ("Refund", "income")]
