"""Axis unit derivation, magnitude scaling and locale-aware number formatting."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ..core.models import Observation
from .text import estimate_width

GUTTER_PADDING_PX = 18
GUTTER_MIN_PX = 48
GUTTER_MAX_PX = 140


@dataclass(frozen=True)
class NumberLocale:
    tag: str
    grouping: str
    decimal: str


# Narrow no-break space is the French thousands separator
_LOCALES: dict[str, NumberLocale] = {
    "en": NumberLocale("en", ",", "."),
    "de": NumberLocale("de", ".", ","),
    "fr": NumberLocale("fr", "\u202f", ","),
    "es": NumberLocale("es", ".", ","),
    "it": NumberLocale("it", ".", ","),
    "pt": NumberLocale("pt", ".", ","),
    "nl": NumberLocale("nl", ".", ","),
}

_ALIASES: dict[str, str] = {
    "us": "en",
    "en_us": "en",
    "de_de": "de",
    "german": "de",
    "fr_fr": "fr",
    "es_es": "es",
    "it_it": "it",
    "pt_pt": "pt",
    "pt_br": "pt",
    "nl_nl": "nl",
}

DEFAULT_LOCALE = _LOCALES["en"]


def map_locale(tag: str) -> NumberLocale:
    """Map a user supplied locale tag onto the fixed separator table (default: en)."""
    key = tag.strip().lower().replace("-", "_")
    key = _ALIASES.get(key, key)
    return _LOCALES.get(key, DEFAULT_LOCALE)


def _localize(formatted: str, locale: NumberLocale) -> str:
    # `formatted` uses Python's "," grouping and "." decimal point
    return "".join(
        locale.grouping if ch == "," else locale.decimal if ch == "." else ch
        for ch in formatted
    )


def tick_precision(value: float) -> int:
    a = abs(value)
    if a >= 100:
        return 0
    if a >= 10:
        return 1
    return 2


def format_tick(value: float, locale: NumberLocale = DEFAULT_LOCALE) -> str:
    """Format a scaled y-axis tick; used for both drawing and gutter sizing."""
    return _localize(f"{value:,.{tick_precision(value)}f}", locale)


def format_number(value: float, locale: NumberLocale = DEFAULT_LOCALE) -> str:
    """Format a statistic with up to four decimals and trailing zeros removed."""
    s = f"{value:,.4f}".rstrip("0").rstrip(".")
    if s in ("-0", ""):
        s = "0"
    return _localize(s, locale)


def left_gutter_px(
    ymin_scaled: float,
    ymax_scaled: float,
    ticks: int = 10,
    font_px: int = 12,
    locale: NumberLocale = DEFAULT_LOCALE,
) -> int:
    """Width of the y tick label area for the given scaled value range.

    Samples ``ticks + 1`` evenly spaced values, measures the widest
    formatted label and pads it, clamped to [48, 140] px.
    """
    widest = 0
    for i in range(ticks + 1):
        t = i / ticks if ticks else 0.0
        v = ymin_scaled + (ymax_scaled - ymin_scaled) * t
        widest = max(widest, estimate_width(format_tick(v, locale), font_px))
    return max(GUTTER_MIN_PX, min(GUTTER_MAX_PX, widest + GUTTER_PADDING_PX))


def extract_unit_from_name(name: str) -> str | None:
    """``"GDP (current US$)"`` -> ``"current US$"``."""
    open_idx = name.rfind("(")
    close_idx = name.rfind(")")
    if open_idx == -1 or close_idx <= open_idx:
        return None
    inner = name[open_idx + 1 : close_idx].strip()
    return inner or None


def derive_unit(observations: Sequence[Observation]) -> str | None:
    """Pick a common axis unit.

    A single consistent API-provided unit wins; otherwise a single indicator's
    parenthesised name suffix is used; otherwise there is no unit.
    """
    units = {o.unit for o in observations if o.unit}
    if len(units) == 1:
        return next(iter(units))

    names = {o.indicator_name for o in observations}
    if len(names) == 1:
        return extract_unit_from_name(next(iter(names)))
    return None


def is_percentage_like(unit: str) -> bool:
    u = unit.lower()
    return "%" in u or "percent" in u or "per cent" in u


def choose_scale(max_abs: float) -> tuple[float, str]:
    if max_abs >= 1e12:
        return 1e12, "trillions"
    if max_abs >= 1e9:
        return 1e9, "billions"
    if max_abs >= 1e6:
        return 1e6, "millions"
    if max_abs >= 1e3:
        return 1e3, "thousands"
    return 1.0, ""


@dataclass(frozen=True)
class AxisScale:
    unit: str | None
    factor: float
    label: str

    @property
    def title(self) -> str:
        base = self.unit or "Value"
        return f"{base} ({self.label})" if self.label else base


def axis_scale(
    observations: Sequence[Observation], min_val: float, max_val: float
) -> AxisScale:
    unit = derive_unit(observations)
    if unit is not None and is_percentage_like(unit):
        return AxisScale(unit=unit, factor=1.0, label="")
    factor, label = choose_scale(max(abs(min_val), abs(max_val)))
    return AxisScale(unit=unit, factor=factor, label=label)
