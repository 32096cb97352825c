from __future__ import annotations

import numpy as np

def median(x: list[float]) -> float:
    return float(np.median(np.asarray(x, dtype=float))) if x else 0.0

def mean(x: list[float]) -> float:
    return float(np.mean(np.asarray(x, dtype=float))) if x else 0.0

def pstdev(x: list[float]) -> float:
    # population standard deviation (ddof=0)
    if not x:
        return 0.0
    return float(np.std(np.asarray(x, dtype=float)))

def round2(x: float) -> float:
    return round(float(x), 2)
