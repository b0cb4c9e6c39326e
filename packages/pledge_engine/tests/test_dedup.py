from packages.pledge_engine.dedup import partition_duplicates
from packages.pledge_engine.normalizer import NormalizedTransaction


def _tx(reference: str, credit: float = 10.0) -> NormalizedTransaction:
    return NormalizedTransaction(transaction_reference=reference, credit_amount=credit)


def test_existing_references_are_duplicates():
    result = partition_duplicates([_tx("A"), _tx("B"), _tx("C")], {"B"})
    assert [t.transaction_reference for t in result.to_insert] == ["A", "C"]
    assert result.duplicates == ["B"]


def test_empty_reference_is_never_a_duplicate():
    """Rows without a reference are inserted even when otherwise identical."""
    rows = [_tx(""), _tx(""), _tx("")]
    result = partition_duplicates(rows, {"", "A"})
    assert len(result.to_insert) == 3
    assert result.duplicates == []


def test_reimport_of_same_file_inserts_nothing():
    rows = [_tx("A"), _tx("B"), _tx("")]
    first = partition_duplicates(rows, set())
    persisted = {t.transaction_reference for t in first.to_insert}

    second = partition_duplicates(rows, persisted)

    assert [t.transaction_reference for t in second.to_insert] == [""]
    assert second.duplicates == ["A", "B"]


def test_reference_repeated_within_batch_is_kept_once():
    result = partition_duplicates([_tx("A", 1.0), _tx("A", 2.0)], set())
    assert len(result.to_insert) == 1
    assert result.to_insert[0].credit_amount == 1.0
    assert result.duplicates == ["A"]


def test_accepts_any_iterable_of_references():
    result = partition_duplicates(iter([_tx("A")]), ["A"])
    assert result.to_insert == []
    assert result.duplicates == ["A"]
