from __future__ import annotations

from subdetect.core.stats import pstdev

BASE_CONFIDENCE = 0.4
CADENCE_WEIGHT = 0.4
OCCURRENCE_WEIGHT = 0.2
OCCURRENCE_SATURATION = 8

def cadence_score(gaps: list[int], period_days: int) -> float:
    return max(0.0, 1.0 - pstdev(gaps) / period_days)

def occurrence_score(member_count: int) -> float:
    return min(1.0, member_count / OCCURRENCE_SATURATION)

def confidence(gaps: list[int], period_days: int, member_count: int) -> float:
    """Confidence in [0, 1] that a cadence-matched cluster is a subscription.

    Matching a cadence window already earns the 0.4 base; gap regularity and
    the number of occurrences fill in the rest.
    """
    score = (
        BASE_CONFIDENCE
        + CADENCE_WEIGHT * cadence_score(gaps, period_days)
        + OCCURRENCE_WEIGHT * occurrence_score(member_count)
    )
    return float(min(1.0, score))
