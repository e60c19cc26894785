"""Tests for approximate text measurement, wrapping and truncation."""

import pytest
from wbi_charts.visuals.text import ELLIPSIS, estimate_width, truncate, wrap


def test_estimate_width_rounds_up():
    assert estimate_width("abcde", 10) == 30
    assert estimate_width("abc", 14) == 26  # ceil(25.2)
    assert estimate_width("", 14) == 0


def test_truncate_keeps_text_that_fits():
    assert truncate("Hello world", 10, 1000) == "Hello world"


def test_truncate_appends_ellipsis():
    # 6px per character at 10px font
    assert truncate("Hello world", 10, 36) == "Hello" + ELLIPSIS


def test_truncate_returns_empty_when_nothing_fits():
    assert truncate("abc", 14, 5) == ""


def test_wrap_greedy_words():
    assert wrap("alpha beta gamma", 10, 60) == ["alpha beta", "gamma"]


def test_wrap_hard_breaks_long_word():
    assert wrap("abcdefghijklmnop", 10, 30) == ["abcde", "fghij", "klmno", "p"]


def test_wrap_continues_after_broken_word():
    assert wrap("abcdefgh ij", 10, 30) == ["abcde", "fgh", "ij"]


def test_wrap_narrow_limit_gives_single_truncated_line():
    lines = wrap("United States", 14, 12)
    assert len(lines) == 1
    assert estimate_width(lines[0], 14) <= 12


@pytest.mark.parametrize("max_width", [20, 40, 73, 140, 300])
def test_wrapped_lines_fit(max_width):
    text = "Gross domestic product per capita, PPP (constant 2017 international $)"
    lines = wrap(text, 14, max_width)
    assert lines
    assert all(estimate_width(line, 14) <= max_width for line in lines)
