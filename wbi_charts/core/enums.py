from __future__ import annotations

from enum import Enum


class LegendMode(str, Enum):
    INSIDE = "inside"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"


class PlotKind(str, Enum):
    LINE = "line"
    SCATTER = "scatter"
    LINE_POINTS = "line-points"
    AREA = "area"
    STACKED_AREA = "stacked-area"
    GROUPED_BAR = "grouped-bar"
    LOESS = "loess"


class StyleMode(str, Enum):
    CONTINUOUS = "continuous"
    PALETTE = "palette"


class MarkerShape(str, Enum):
    CIRCLE = "circle"
    SQUARE = "square"
    TRIANGLE = "triangle"
    DIAMOND = "diamond"
    CROSS = "cross"
    X = "x"


class LineDash(str, Enum):
    SOLID = "solid"
    DASH = "dash"
    DOT = "dot"
    DASH_DOT = "dash-dot"


class OutFormat(str, Enum):
    CSV = "csv"
    JSON = "json"


# Mirrors the CLI default so an untouched title still gets derived from the data
DEFAULT_TITLE = "World Bank Indicator(s)"
DEFAULT_LEGEND_MODE = LegendMode.BOTTOM
