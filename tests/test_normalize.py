from datetime import date

import pytest

from subdetect.core.normalize import group_transactions, grouping_key, normalize_merchant
from subdetect.core.records import Txn


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("Netflix", "netflix"),
        ("  NETFLIX   COM  ", "netflix com"),
        ("Spotify\tPremium\n", "spotify premium"),
        ("AT&T  Wireless", "at&t wireless"),
    ],
)
def test_normalize_merchant(raw, expected):
    assert normalize_merchant(raw) == expected


def test_normalize_merchant_handles_none_and_empty():
    assert normalize_merchant(None) is None
    assert normalize_merchant("") is None
    assert normalize_merchant("   ") is None


def test_grouping_key_uses_unknown_currency():
    t = Txn(date=date(2024, 1, 1), merchant="Netflix ", amount=-15.99, currency=None)
    assert grouping_key(t) == "netflix::unknown"
    t2 = Txn(date=date(2024, 1, 1), merchant="NETFLIX", amount=-15.99, currency="USD")
    assert grouping_key(t2) == "netflix::USD"


def test_grouping_key_excludes_missing_merchant():
    t = Txn(date=date(2024, 1, 1), merchant="  ", amount=-5.0, currency="USD")
    assert grouping_key(t) is None


def test_group_transactions_sorts_by_date_and_drops_unnamed():
    txns = [
        Txn(date=date(2024, 3, 1), merchant="Gym", amount=-30.0, currency="USD"),
        Txn(date=date(2024, 1, 1), merchant="gym", amount=-30.0, currency="USD"),
        Txn(date=date(2024, 2, 1), merchant=None, amount=-30.0, currency="USD"),
        Txn(date=date(2024, 2, 1), merchant="GYM", amount=-30.0, currency="EUR"),
    ]
    groups = group_transactions(txns)
    assert set(groups) == {"gym::USD", "gym::EUR"}
    assert [t.date for t in groups["gym::USD"]] == [date(2024, 1, 1), date(2024, 3, 1)]
