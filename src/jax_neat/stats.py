from __future__ import annotations

from typing import Callable, Sequence

import numpy as np


def mean(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(values))


def median(values: Sequence[float]) -> float:
    # Upper middle element for even-length input.
    if len(values) == 0:
        return 0.0
    ordered = sorted(values)
    return float(ordered[len(ordered) // 2])


def median2(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.median(values))


def variance(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.var(values))


def stdev(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.std(values))


STAT_FUNCTIONS: dict[str, Callable[[Sequence[float]], float]] = {
    "min": lambda values: float(np.min(values)),
    "max": lambda values: float(np.max(values)),
    "mean": mean,
    "median": median,
    "median2": median2,
    "stdev": stdev,
    "variance": variance,
}
