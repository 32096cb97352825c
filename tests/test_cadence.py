from datetime import date, timedelta

import pytest

from subdetect.core.cadence import CADENCE_WINDOWS, estimate_cadence, match_window
from subdetect.core.clustering import Cluster
from subdetect.core.records import Txn
from subdetect.errors import InsufficientOccurrences, NoCadenceMatch


def _cluster(dates, amount=9.99):
    return Cluster(
        representative_amount=amount,
        members=[Txn(date=d, merchant="Acme", amount=-amount, currency="USD") for d in dates],
    )


def _every(gap, n, start=date(2024, 1, 1)):
    return [start + timedelta(days=gap * i) for i in range(n)]


@pytest.mark.parametrize(
    "gap,cadence,days",
    [
        (7, "weekly", 7),
        (14, "biweekly", 14),
        (25, "monthly", 30),
        (30, "monthly", 30),
        (35, "monthly", 30),
        (91, "quarterly", 90),
        (365, "yearly", 365),
    ],
)
def test_estimate_cadence_windows(gap, cadence, days):
    est = estimate_cadence(_cluster(_every(gap, 4)))
    assert est.cadence == cadence
    assert est.cadence_days == days


@pytest.mark.parametrize("gap", [24, 101, 3, 20, 200, 500])
def test_gaps_outside_windows_are_rejected(gap):
    with pytest.raises(NoCadenceMatch) as exc:
        estimate_cadence(_cluster(_every(gap, 6)))
    assert exc.value.reason == "no_cadence_match"


def test_too_few_members_never_reach_gap_analysis():
    with pytest.raises(InsufficientOccurrences):
        estimate_cadence(_cluster(_every(30, 2)), min_occurrences=3)
    with pytest.raises(InsufficientOccurrences):
        estimate_cadence(_cluster(_every(30, 4)), min_occurrences=5)


def test_same_day_repeats_do_not_contribute():
    d = date(2024, 1, 1)
    est = estimate_cadence(_cluster([d, d, d + timedelta(days=30), d + timedelta(days=60)]))
    assert est.gaps == [30, 30]
    assert est.cadence == "monthly"


def test_all_same_day_is_rejected():
    d = date(2024, 1, 1)
    with pytest.raises(NoCadenceMatch) as exc:
        estimate_cadence(_cluster([d, d, d]))
    assert exc.value.reason == "no_positive_gaps"


def test_members_are_sorted_before_measuring_gaps():
    dates = [date(2024, 3, 1), date(2024, 1, 1), date(2024, 2, 1)]
    est = estimate_cadence(_cluster(dates))
    assert [t.date for t in est.ordered] == sorted(dates)
    assert est.gaps == [31, 29]
    assert est.gap_median == 30.0


def test_match_window_prefers_smallest_cadence():
    assert match_window(9).cadence == "weekly"
    assert match_window(10) is None
    assert [w.cadence for w in CADENCE_WINDOWS] == ["weekly", "biweekly", "monthly", "quarterly", "yearly"]
