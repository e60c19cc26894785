"""Local linear regression (LOESS) smoothing of a single series."""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

# Neighbourhood radius is widened so the farthest neighbour keeps a small weight
BANDWIDTH_FACTOR = 1.1
MIN_NEIGHBOURS = 3


def neighbour_count(n: int, span: float) -> int:
    return min(n, max(math.ceil(span * n), min(n, MIN_NEIGHBOURS)))


def tricube(u: np.ndarray) -> np.ndarray:
    u = np.clip(np.abs(u), 0.0, 1.0)
    return (1.0 - u**3) ** 3


def loess(xs: Sequence[float], ys: Sequence[float], span: float = 0.3) -> np.ndarray:
    """Smooth ``ys`` over ``xs`` and return the fitted value at every x.

    Each point is fitted by a tricube-weighted linear regression over its
    ``span * n`` nearest neighbours (at least three). Series of two points or
    fewer are returned unchanged.

    Raises:
        ValueError: If the inputs differ in length or ``span`` is outside (0, 1]
    """
    if not 0.0 < span <= 1.0:
        raise ValueError(f"LOESS span must be in (0, 1], got {span}")
    x = np.asarray(xs, dtype=float)
    y = np.asarray(ys, dtype=float)
    if x.shape != y.shape:
        raise ValueError("xs and ys must have the same length")

    n = x.size
    if n <= 2:
        return y.copy()

    k = neighbour_count(n, span)
    fitted = np.empty(n, dtype=float)
    for i in range(n):
        dist = np.abs(x - x[i])
        nearest = np.argsort(dist, kind="stable")[:k]
        h = BANDWIDTH_FACTOR * dist[nearest].max()
        if h <= 0.0:
            h = 1.0
        w = tricube(dist[nearest] / h)
        fitted[i] = _weighted_linear_fit(x[nearest], y[nearest], w, x[i])
    return fitted


def _weighted_linear_fit(
    x: np.ndarray, y: np.ndarray, w: np.ndarray, at: float
) -> float:
    sw = w.sum()
    if sw <= 0.0:
        return float(y.mean())
    mx = float((w * x).sum() / sw)
    my = float((w * y).sum() / sw)
    sxx = float((w * (x - mx) ** 2).sum())
    if sxx <= 1e-12:
        return my
    slope = float((w * (x - mx) * (y - my)).sum()) / sxx
    return my + slope * (at - mx)
