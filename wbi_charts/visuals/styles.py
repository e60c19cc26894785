"""Deterministic series styling.

Every series is identified by its (country, indicator) pair. The country picks
the colour family: a hue on the continuous wheel, or a slot of the Office
palette. The indicator picks the variation inside that family (shade, marker
shape and dash pattern). Identical strings therefore always look the same,
in every chart and every process.

Hashing uses 64-bit FNV-1a over the UTF-8 bytes of the string. It is pinned
here instead of relying on ``hash()``, which is salted per process.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import LineDash, MarkerShape, StyleMode

_MASK64 = 0xFFFFFFFFFFFFFFFF
FNV64_OFFSET_BASIS = 0xCBF29CE484222325
FNV64_PRIME = 0x100000001B3

# Microsoft Office (2013+) chart series palette
OFFICE_PALETTE: tuple[tuple[int, int, int], ...] = (
    (68, 114, 196),  # blue        #4472C4
    (237, 125, 49),  # orange      #ED7D31
    (165, 165, 165),  # gray        #A5A5A5
    (255, 192, 0),  # gold        #FFC000
    (91, 155, 213),  # light blue  #5B9BD5
    (112, 173, 71),  # green       #70AD47
    (38, 68, 120),  # dark blue   #264478
    (158, 72, 14),  # dark orange #9E480E
    (99, 99, 99),  # dark gray   #636363
    (153, 115, 0),  # brownish    #997300
)

MARKERS: tuple[MarkerShape, ...] = (
    MarkerShape.CIRCLE,
    MarkerShape.SQUARE,
    MarkerShape.TRIANGLE,
    MarkerShape.DIAMOND,
    MarkerShape.CROSS,
    MarkerShape.X,
)

DASHES: tuple[LineDash, ...] = (
    LineDash.SOLID,
    LineDash.DASH,
    LineDash.DOT,
    LineDash.DASH_DOT,
)

BASE_SATURATION = 0.60
BASE_LIGHTNESS = 0.55
LIGHTNESS_SPREAD = 0.18
SATURATION_SPREAD = 0.10


def hash64(text: str) -> int:
    """64-bit FNV-1a hash of ``text`` encoded as UTF-8."""
    h = FNV64_OFFSET_BASIS
    for byte in text.encode("utf-8"):
        h ^= byte
        h = (h * FNV64_PRIME) & _MASK64
    return h


def rotl64(x: int, r: int) -> int:
    r %= 64
    return ((x << r) | (x >> (64 - r))) & _MASK64


def map_to_range(x: int, lo: float, hi: float) -> float:
    """Linearly map a 64-bit unsigned value onto ``[lo, hi]``."""
    return lo + (x / _MASK64) * (hi - lo)


def _clamp01(x: float) -> float:
    return min(1.0, max(0.0, x))


def hex_color(rgb: tuple[int, int, int]) -> str:
    return "#{:02X}{:02X}{:02X}".format(*rgb)


def office_color(idx: int) -> str:
    return hex_color(OFFICE_PALETTE[idx % len(OFFICE_PALETTE)])


def hsl_to_rgb(h_deg: float, s: float, l: float) -> tuple[int, int, int]:
    """Standard HSL -> RGB conversion, channels rounded to 0..255."""
    h = (h_deg % 360.0) / 360.0
    s = _clamp01(s)
    l = _clamp01(l)
    if s == 0.0:
        v = int(l * 255.0 + 0.5)
        return v, v, v

    q = l * (1.0 + s) if l < 0.5 else l + s - l * s
    p = 2.0 * l - q

    def channel(t: float) -> float:
        if t < 0.0:
            t += 1.0
        if t > 1.0:
            t -= 1.0
        if t < 1.0 / 6.0:
            return p + (q - p) * 6.0 * t
        if t < 1.0 / 2.0:
            return q
        if t < 2.0 / 3.0:
            return p + (q - p) * (2.0 / 3.0 - t) * 6.0
        return p

    r = channel(h + 1.0 / 3.0)
    g = channel(h)
    b = channel(h - 1.0 / 3.0)
    return int(r * 255.0 + 0.5), int(g * 255.0 + 0.5), int(b * 255.0 + 0.5)


def rgb_to_hue(rgb: tuple[int, int, int]) -> float:
    r, g, b = (c / 255.0 for c in rgb)
    hi = max(r, g, b)
    lo = min(r, g, b)
    delta = hi - lo
    if delta == 0.0:
        return 0.0
    if hi == r:
        hue = 60.0 * (((g - b) / delta) % 6.0)
    elif hi == g:
        hue = 60.0 * ((b - r) / delta + 2.0)
    else:
        hue = 60.0 * ((r - g) / delta + 4.0)
    return hue + 360.0 if hue < 0.0 else hue


@dataclass(frozen=True)
class Style:
    base_hue: float
    rgb: tuple[int, int, int]
    marker: MarkerShape
    dash: LineDash

    @property
    def hex(self) -> str:
        return hex_color(self.rgb)


class StyleAssigner:
    """Map a (country, indicator) pair to a :class:`Style`.

    The mode selects how the country colour is chosen; marker and dash always
    depend on the indicator alone. Nothing is cached.
    """

    def __init__(self, mode: StyleMode = StyleMode.CONTINUOUS):
        self.mode = StyleMode(mode)

    def style(self, country: str, indicator: str) -> Style:
        ind_hash = hash64(indicator)
        if self.mode is StyleMode.PALETTE:
            base_hue, rgb = self._palette_color(country, ind_hash)
        else:
            base_hue, rgb = self._continuous_color(country, ind_hash)
        return Style(
            base_hue=base_hue,
            rgb=rgb,
            marker=marker_for(indicator),
            dash=dash_for(indicator),
        )

    @staticmethod
    def _continuous_color(
        country: str, ind_hash: int
    ) -> tuple[float, tuple[int, int, int]]:
        hue = float(hash64(country) % 360)
        dl = map_to_range(rotl64(ind_hash, 13), -LIGHTNESS_SPREAD, LIGHTNESS_SPREAD)
        ds = map_to_range(rotl64(ind_hash, 29), -SATURATION_SPREAD, SATURATION_SPREAD)
        rgb = hsl_to_rgb(
            hue, _clamp01(BASE_SATURATION + ds), _clamp01(BASE_LIGHTNESS + dl)
        )
        return hue, rgb

    @staticmethod
    def _palette_color(
        country: str, ind_hash: int
    ) -> tuple[float, tuple[int, int, int]]:
        base = OFFICE_PALETTE[hash64(country) % len(OFFICE_PALETTE)]
        factor = 0.7 + 0.6 * ((ind_hash % 100) / 100.0)
        r, g, b = (int(min(255.0, max(0.0, c * factor))) for c in base)
        return rgb_to_hue(base), (r, g, b)


def palette_slot(country: str) -> int:
    return hash64(country) % len(OFFICE_PALETTE)


def marker_for(indicator: str) -> MarkerShape:
    return MARKERS[hash64(indicator) % len(MARKERS)]


def dash_for(indicator: str) -> LineDash:
    return DASHES[rotl64(hash64(indicator), 16) % len(DASHES)]
