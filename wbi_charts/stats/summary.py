"""Grouped summary statistics over observation lists."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from ..core.models import Observation


@dataclass(frozen=True, order=True)
class GroupKey:
    indicator_id: str
    country_iso3: str


@dataclass(frozen=True)
class Summary:
    """Statistics of one (indicator, country) group.

    ``count`` covers finite values only; ``None`` and non-finite values are
    counted in ``missing``. The value statistics are None for a group
    without any finite value.
    """

    key: GroupKey
    count: int
    missing: int
    min: float | None = None
    max: float | None = None
    mean: float | None = None
    median: float | None = None


def grouped_summary(observations: Sequence[Observation]) -> list[Summary]:
    """Summarise observations per (indicator_id, country_iso3), sorted by key."""
    values: dict[GroupKey, list[float]] = {}
    missing: dict[GroupKey, int] = {}

    for o in observations:
        key = GroupKey(indicator_id=o.indicator_id, country_iso3=o.country_iso3)
        values.setdefault(key, [])
        missing.setdefault(key, 0)
        if o.value is not None and math.isfinite(o.value):
            values[key].append(float(o.value))
        else:
            missing[key] += 1

    out: list[Summary] = []
    for key in sorted(values):
        arr = np.asarray(values[key], dtype=float)
        if arr.size == 0:
            out.append(Summary(key=key, count=0, missing=missing[key]))
            continue
        out.append(
            Summary(
                key=key,
                count=int(arr.size),
                missing=missing[key],
                min=float(arr.min()),
                max=float(arr.max()),
                mean=float(arr.mean()),
                median=float(np.median(arr)),
            )
        )
    return out
