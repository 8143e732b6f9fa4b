"""Robust statistics used by room calibration."""
from typing import Sequence
import numpy as np


def median(values: Sequence[float]) -> float:
    """Median of the values, 0.0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.median(np.asarray(values, dtype=np.float64)))


def percentile(values: Sequence[float], p: float) -> float:
    """
    Percentile with linear interpolation between order statistics.

    For sorted values the position is p/100 * (n - 1); a fractional
    position interpolates between the floor and ceiling neighbours.

    Args:
        values: Samples (any order)
        p: Percentile in [0, 100]

    Returns:
        Interpolated percentile, 0.0 for an empty sequence
    """
    if len(values) == 0:
        return 0.0
    return float(np.percentile(np.asarray(values, dtype=np.float64), p, method="linear"))


def median_absolute_deviation(values: Sequence[float]) -> float:
    """Median of |x - median(x)|."""
    if len(values) == 0:
        return 0.0
    array = np.asarray(values, dtype=np.float64)
    return float(np.median(np.abs(array - np.median(array))))


def filter_outliers(values: Sequence[float], cutoff: float = 3.0) -> list:
    """
    Drop samples further than cutoff * MAD from the median.

    Fewer than three samples, a zero MAD, or a filter that would remove
    everything all return the input unchanged.
    """
    values = list(values)
    if len(values) < 3:
        return values

    array = np.asarray(values, dtype=np.float64)
    center = np.median(array)
    deviations = np.abs(array - center)
    mad = np.median(deviations)

    if mad == 0:
        return values

    keep = deviations <= cutoff * mad
    filtered = [value for value, kept in zip(values, keep) if kept]
    return filtered or values
