"""Tests for series grouping and legend label rules."""

import pytest
from wbi_charts.core.errors import EmptyInput, NoNumericValues, NoValidYears
from wbi_charts.visuals.grouping import LABEL_SEPARATOR, group_series, make_label_rule

from tests.factories import obs


def test_single_indicator_labels_show_countries(population_observations):
    series = group_series(population_observations)
    assert [s.label for s in series] == ["Germany", "United States"]


def test_single_country_labels_show_indicators():
    series = group_series(
        [obs("DEU", "POP", 2019, 1.0), obs("DEU", "GDP", 2019, 2.0)]
    )
    assert [s.label for s in series] == ["GDP (current US$)", "Population, total"]


def test_both_dimensions_vary(mixed_observations):
    labels = [s.label for s in group_series(mixed_observations)]
    assert labels == [
        f"Germany{LABEL_SEPARATOR}GDP (current US$)",
        f"Germany{LABEL_SEPARATOR}Population, total",
        f"United States{LABEL_SEPARATOR}GDP (current US$)",
        f"United States{LABEL_SEPARATOR}Population, total",
    ]


def test_points_sorted_and_missing_skipped():
    series = group_series(
        [
            obs("DEU", "POP", 2021, 3.0),
            obs("DEU", "POP", 0, 9.0),
            obs("DEU", "POP", 2019, 1.0),
            obs("DEU", "POP", 2020, None),
        ]
    )
    assert len(series) == 1
    assert series[0].points == ((2019, 1.0), (2021, 3.0))


def test_duplicate_year_last_write_wins():
    series = group_series([obs("DEU", "POP", 2019, 1.0), obs("DEU", "POP", 2019, 5.0)])
    assert series[0].points == ((2019, 5.0),)


def test_display_name_falls_back_to_code():
    series = group_series(
        [obs("XKX", "POP", 2019, 1.0, country_name=""), obs("DEU", "POP", 2019, 2.0)]
    )
    assert [s.label for s in series] == ["Germany", "XKX"]


def test_empty_input():
    with pytest.raises(EmptyInput):
        group_series([])


def test_no_valid_years():
    with pytest.raises(NoValidYears):
        group_series([obs("DEU", "POP", 0, 1.0)])


def test_no_numeric_values():
    with pytest.raises(NoNumericValues):
        group_series([obs("DEU", "POP", 2019, None)])


def test_label_rule_is_a_two_name_callable(population_observations, mixed_observations):
    by_country = make_label_rule(population_observations)
    assert by_country("Germany", "Population, total") == "Germany"

    both = make_label_rule(mixed_observations)
    assert both("Germany", "GDP (current US$)") == f"Germany{LABEL_SEPARATOR}GDP (current US$)"

    single = make_label_rule([obs("DEU", "POP", 2020, 1.0)])
    assert single("Germany", "Population, total") == f"Germany{LABEL_SEPARATOR}Population, total"
