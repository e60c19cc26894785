"""Tests for axis units, magnitude scaling and locale formatting."""

import pytest
from wbi_charts.visuals.scaling import (
    axis_scale,
    choose_scale,
    derive_unit,
    extract_unit_from_name,
    format_number,
    format_tick,
    is_percentage_like,
    left_gutter_px,
    map_locale,
)

from tests.factories import obs


@pytest.mark.parametrize(
    ("max_abs", "expected"),
    [
        (2.5e13, (1e12, "trillions")),
        (1e12, (1e12, "trillions")),
        (3.2e9, (1e9, "billions")),
        (8.3e7, (1e6, "millions")),
        (1000.0, (1e3, "thousands")),
        (999.99, (1.0, "")),
        (0.0, (1.0, "")),
    ],
)
def test_choose_scale(max_abs, expected):
    assert choose_scale(max_abs) == expected


def test_extract_unit_uses_last_parentheses():
    assert extract_unit_from_name("GDP (current US$)") == "current US$"
    assert extract_unit_from_name("GDP (PPP) (constant 2017 $)") == "constant 2017 $"
    assert extract_unit_from_name("Population, total") is None
    assert extract_unit_from_name("Broken ( ") is None
    assert extract_unit_from_name("Empty ()") is None


def test_derive_unit_prefers_single_api_unit():
    observations = [
        obs("DEU", "GDP", 2019, 1.0, unit="current US$"),
        obs("USA", "POP", 2019, 2.0, unit="current US$"),
    ]
    assert derive_unit(observations) == "current US$"


def test_derive_unit_falls_back_to_indicator_name():
    observations = [obs("DEU", "GDP", 2019, 1.0), obs("USA", "GDP", 2019, 2.0)]
    assert derive_unit(observations) == "current US$"


def test_derive_unit_none_for_mixed_indicators():
    observations = [obs("DEU", "GDP", 2019, 1.0), obs("DEU", "POP", 2019, 2.0)]
    assert derive_unit(observations) is None


def test_percentage_like():
    assert is_percentage_like("annual %")
    assert is_percentage_like("Percent of GDP")
    assert is_percentage_like("per cent")
    assert not is_percentage_like("current US$")


def test_percentage_units_are_never_scaled():
    observations = [obs("DEU", "UNEMP", 2019, 5000.0)]
    scale = axis_scale(observations, 0.0, 5000.0)
    assert scale.factor == 1.0
    assert scale.title == "% of total labor force"


def test_axis_title_combinations():
    gdp = [obs("DEU", "GDP", 2019, 3.8e12)]
    assert axis_scale(gdp, 0.0, 3.8e12).title == "current US$ (trillions)"
    mixed = [obs("DEU", "GDP", 2019, 1.0), obs("DEU", "POP", 2019, 2.0)]
    assert axis_scale(mixed, 1.0, 2.0).title == "Value"
    assert axis_scale(mixed, -2.5e6, 2.0).title == "Value (millions)"


def test_map_locale_aliases_and_fallback():
    assert map_locale("de").decimal == ","
    assert map_locale("de-DE").grouping == "."
    assert map_locale("German").tag == "de"
    assert map_locale("pt_BR").tag == "pt"
    assert map_locale("fr").grouping == "\u202f"
    assert map_locale("xx").tag == "en"


def test_format_tick_precision_and_separators():
    en = map_locale("en")
    de = map_locale("de")
    assert format_tick(1234.5, en) == "1,234"
    assert format_tick(12.345, en) == "12.3"
    assert format_tick(1.2345, en) == "1.23"
    assert format_tick(-150.0, en) == "-150"
    assert format_tick(1234.5, de) == "1.234"
    assert format_tick(12.345, de) == "12,3"


def test_format_number_trims_zeros():
    en = map_locale("en")
    assert format_number(2.5, en) == "2.5"
    assert format_number(1234567.0, en) == "1,234,567"
    assert format_number(0.123456, en) == "0.1235"
    assert format_number(-0.00001, en) == "0"
    assert format_number(1234.5, map_locale("de")) == "1.234,5"


def test_left_gutter_is_clamped():
    assert left_gutter_px(0.0, 1.0) == 48
    assert left_gutter_px(-1e15, 1e15) == 140
    wide = left_gutter_px(0.0, 123456.0)
    # "123,456" at 12px = 51px + 18px padding
    assert wide == 69
