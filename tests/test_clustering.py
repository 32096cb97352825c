from datetime import date, timedelta

import pytest

from subdetect.core.clustering import Cluster, cluster_by_amount
from subdetect.core.records import Txn


def _txns(amounts, start=date(2024, 1, 1)):
    return [
        Txn(date=start + timedelta(days=30 * i), merchant="Acme", amount=a, currency="USD")
        for i, a in enumerate(amounts)
    ]


def test_amounts_within_tolerance_share_a_cluster():
    clusters = cluster_by_amount(_txns([-50.00, -49.99, -50.01]))
    assert len(clusters) == 1
    assert clusters[0].representative_amount == 50.0
    assert len(clusters[0].members) == 3


def test_amount_beyond_tolerance_starts_new_cluster():
    clusters = cluster_by_amount(_txns([-50.00, -49.99, -50.01, -60.00]))
    assert [c.representative_amount for c in clusters] == [50.0, 60.0]
    assert [len(c.members) for c in clusters] == [3, 1]


def test_relative_tolerance_applies_to_large_amounts():
    # 2% of 200 is 4.00, wider than the flat 1.00
    clusters = cluster_by_amount(_txns([200.00, 203.50, 204.50]))
    assert [c.representative_amount for c in clusters] == [200.0, 204.5]


def test_representative_amount_is_frozen():
    # 51.00 is within 1.00 of 50.00; 51.90 is not, even though it is close to 51.00
    clusters = cluster_by_amount(_txns([50.00, 51.00, 51.90]))
    assert [c.representative_amount for c in clusters] == [50.0, 51.9]
    assert len(clusters[0].members) == 2


def test_first_created_cluster_wins_ties():
    clusters = cluster_by_amount(_txns([10.00, 11.50, 10.80]))
    # 10.80 is within 1.00 of both 10.00 and 11.50
    assert len(clusters[0].members) == 2
    assert len(clusters[1].members) == 1


def test_cluster_accepts():
    c = Cluster(representative_amount=100.0)
    assert c.accepts(102.0)
    assert not c.accepts(102.01)


@pytest.mark.parametrize(
    "rep,amount",
    [
        (1.20, 2.20),
        (10.00, 11.00),
        (49.99, 48.99),
        (51.00, 52.02),
        (55.00, 56.10),
        (57.00, 58.14),
        (150.00, 147.00),
    ],
)
def test_amount_exactly_at_tolerance_joins(rep, amount):
    assert Cluster(representative_amount=rep).accepts(amount)


@pytest.mark.parametrize(
    "rep,amount",
    [(1.20, 2.21), (10.00, 8.99), (51.00, 52.03), (150.00, 153.01)],
)
def test_amount_one_cent_past_tolerance_is_rejected(rep, amount):
    assert not Cluster(representative_amount=rep).accepts(amount)


def test_small_amounts_at_dollar_edge_share_a_cluster():
    clusters = cluster_by_amount(_txns([-1.20, -2.20, -2.20]))
    assert len(clusters) == 1
    assert len(clusters[0].members) == 3
