from parsers.columns import is_header_row, map_row, resolve_amount, resolve_column


def test_debit_wins_over_credit_and_amount():
    assert resolve_amount({"Debit": "100", "Credit": "50", "Amount": "-10"}) == (100.0, "expense")


def test_credit_used_when_debit_empty():
    assert resolve_amount({"Withdrawal Amt.": "", "Deposit Amt.": "2,000.00"}) == (2000.0, "income")


def test_signed_amount_sets_type():
    assert resolve_amount({"Amount": "-45.5"}) == (45.5, "expense")
    assert resolve_amount({"Transaction Amount": "300"}) == (300.0, "income")


def test_resolve_column_skips_empty_higher_ranked_synonym():
    row = {"Post Date": "", "Date": "2024-01-01", "Value Date": "2024-01-02"}
    assert resolve_column(row, "date") == "2024-01-01"


def test_resolve_column_prefers_exact_header_and_ignores_case():
    row = {"Narration Code": "X1", "NARRATION": "Zomato order"}
    assert resolve_column(row, "description") == "Zomato order"


def test_resolve_column_matches_substring():
    assert resolve_column({"Txn Date (IST)": "05/01/2024"}, "date") == "05/01/2024"
    assert resolve_column({"Memo": "x"}, "date") is None


def test_map_row_builds_candidate():
    tx = map_row({"Date": "2024-03-01", "Particulars": "Electricity bill", "Debit": "1,200.00"})
    assert tx.date == "2024-03-01"
    assert tx.description == "Electricity bill"
    assert tx.amount == 1200.0
    assert tx.type == "expense"


def test_map_row_drops_row_without_amount():
    assert map_row({"Date": "2024-03-01", "Description": "Opening balance", "Amount": ""}) is None


def test_is_header_row():
    assert is_header_row(["Post Date", "Narration", "Debit", "Credit"])
    assert is_header_row(["Txn Date", "Details", "Amount"])
    assert not is_header_row(["Account number", "1234"])
    assert not is_header_row(["Date", "Description"])


def test_is_header_row_accepts_withdrawal_and_deposit_columns():
    assert is_header_row(["Date", "Description", "Withdrawal", "Deposit"])
    assert is_header_row(["Date", "Narration", "Withdrawal Amt.", "Deposit Amt."])
