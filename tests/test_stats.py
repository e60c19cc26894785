"""Tests for grouped summary statistics."""

import math

import pytest
from wbi_charts.stats import GroupKey, grouped_summary

from tests.factories import obs


def test_groups_are_sorted_by_indicator_then_country(mixed_observations):
    keys = [s.key for s in grouped_summary(mixed_observations)]
    assert keys == [
        GroupKey("GDP", "DEU"),
        GroupKey("GDP", "USA"),
        GroupKey("POP", "DEU"),
        GroupKey("POP", "USA"),
    ]


def test_counts_missing_and_stats(mixed_observations):
    by_key = {s.key: s for s in grouped_summary(mixed_observations)}

    gdp_deu = by_key[GroupKey("GDP", "DEU")]
    assert (gdp_deu.count, gdp_deu.missing) == (2, 1)
    assert gdp_deu.min == 3.8e12
    assert gdp_deu.max == 3.9e12
    assert gdp_deu.median == pytest.approx(3.85e12)

    pop_deu = by_key[GroupKey("POP", "DEU")]
    assert pop_deu.min == -1.0
    assert pop_deu.mean == pytest.approx((8.29e7 - 1.0) / 2)


def test_median_of_odd_count():
    summary = grouped_summary([obs("FRA", "POP", y, v) for y, v in [(1, 5.0), (2, 1.0), (3, 3.0)]])
    assert summary[0].median == 3.0
    assert summary[0].mean == 3.0


def test_non_finite_values_count_as_missing():
    summary = grouped_summary([obs("FRA", "POP", 2019, math.nan), obs("FRA", "POP", 2020, None)])
    assert len(summary) == 1
    s = summary[0]
    assert (s.count, s.missing) == (0, 2)
    assert s.min is None and s.median is None


def test_empty_input():
    assert grouped_summary([]) == []
