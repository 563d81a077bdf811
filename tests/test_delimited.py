from parsers.delimited import decode_text, parse_delimited, rows_to_records

BANK_EXPORT = (
    "Example Bank Ltd\n"
    "Account: XXXX1234\n"
    "Disclaimer: figures shown in INR\n"
    "Post Date,Narration,Debit,Credit\n"
    "01/03/2024,UPI Zomato order,250.00,\n"
    "\n"
    "02/03/2024,Salary March,,\"50,000.00\"\n"
)


def test_preamble_lines_are_skipped():
    parsed = parse_delimited(BANK_EXPORT.encode("utf-8"))

    assert [(t.date, t.description, t.amount, t.type) for t in parsed] == [
        ("01/03/2024", "UPI Zomato order", 250.0, "expense"),
        ("02/03/2024", "Salary March", 50000.0, "income"),
    ]


def test_tab_separated_file():
    content = "Date\tDescription\tAmount\n2024-01-05\tNetflix\t-499\n"
    parsed = parse_delimited(content.encode("utf-8"))

    assert len(parsed) == 1
    assert parsed[0].description == "Netflix"
    assert parsed[0].amount == 499.0
    assert parsed[0].type == "expense"


def test_semicolon_separated_file():
    content = "Date;Details;Withdrawal;Deposit\n2024-01-05;ATM cash;2000;\n"
    parsed = parse_delimited(content.encode("utf-8"))

    assert [(t.description, t.amount, t.type) for t in parsed] == [("ATM cash", 2000.0, "expense")]


def test_header_on_first_line_when_no_preamble():
    records = rows_to_records([["Date", "Description", "Amount"], ["2024-01-01", "Tea", "20"]])
    assert records == [{"Date": "2024-01-01", "Description": "Tea", "Amount": "20"}]


def test_short_rows_are_padded_and_duplicate_headers_kept():
    records = rows_to_records([["Date", "Amount", "Amount"], ["2024-01-01", "5"]])
    assert records == [{"Date": "2024-01-01", "Amount": "5", "Amount (2)": ""}]


def test_decode_text_handles_bom_and_latin1():
    assert decode_text("\ufeffDate".encode("utf-8")) == "Date"
    assert decode_text("Café".encode("latin-1")) == "Café"
