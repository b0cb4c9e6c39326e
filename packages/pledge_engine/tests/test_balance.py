from packages.pledge_engine.balance import compute_balance, compute_balance_from_pages


def test_balance_is_credits_minus_absolute_debits():
    rows = [
        {"credit_amount": 1000, "debit_amount": 0},
        {"credit_amount": 0, "debit_amount": -250},
        {"credit_amount": 0, "debit_amount": 150},
    ]
    summary = compute_balance(rows)
    assert summary.total_inflow == 1000
    assert summary.total_outflow == 400
    assert summary.balance == 600
    assert summary.transaction_count == 3


def test_missing_and_bad_values_count_as_zero():
    rows = [
        {"credit_amount": None, "debit_amount": "oops"},
        {"credit_amount": "20.5"},
    ]
    summary = compute_balance(rows)
    assert summary.balance == 20.5


def test_empty_rows():
    summary = compute_balance([])
    assert summary.balance == 0
    assert summary.transaction_count == 0


def test_paged_accumulation_matches_direct_sum():
    rows = [{"credit_amount": i % 7, "debit_amount": i % 3} for i in range(2500)]
    pages = [rows[i : i + 1000] for i in range(0, len(rows), 1000)]

    assert compute_balance_from_pages(pages) == compute_balance(rows)
