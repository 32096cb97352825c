from datetime import date

import pytest
import pandas as pd

from subdetect.core.ingest import detect_schema, ingest_csv, parse_amount


@pytest.mark.parametrize(
    "raw,expected",
    [("15.99", 15.99), ("(15.99)", -15.99), ("-1,234.50", -1234.5), (7, 7.0), (None, 0.0)],
)
def test_parse_amount(raw, expected):
    assert parse_amount(raw) == expected


def test_detect_schema_requires_core_columns():
    with pytest.raises(ValueError):
        detect_schema(pd.DataFrame({"foo": [1], "bar": [2]}))


def test_ingest_csv(tmp_path):
    p = tmp_path / "statement.csv"
    p.write_text(
        "Posted Date,Merchant,Amount,Currency,Account\n"
        "2024-01-01,Netflix,(15.99),USD,acc-1\n"
        "02/01/2024,  Netflix  ,-15.99,,acc-1\n"
        "2024-02-03,,-3.00,USD,acc-1\n",
        encoding="utf-8",
    )
    rows = ingest_csv(p)
    assert [r.date for r in rows] == [date(2024, 1, 1), date(2024, 2, 1), date(2024, 2, 3)]
    assert [r.amount for r in rows] == [-15.99, -15.99, -3.0]
    assert rows[0].merchant == "Netflix"
    assert rows[1].merchant == "Netflix"
    assert rows[1].currency is None
    assert rows[2].merchant is None
    assert rows[0].account_id == "acc-1"
