"""Visualization package for World Bank indicator charts.

This package turns tidy observation lists (country x indicator x year -> value)
into static PNG or SVG charts. It is the presentation layer between the API
adapter / file storage and the image a reader finally sees.

Key Capabilities:
    1. Grouping observations into per-(country, indicator) series with short legend labels
    2. Axis unit derivation and magnitude scaling (thousands ... trillions)
    3. Locale-aware tick labels and a gutter sized from the widest label
    4. Deterministic, country-consistent series styling (hue or Office palette)
    5. Non-overlapping legends: right column, top/bottom bands, inside overlay
    6. Seven chart kinds, including stacked areas, grouped bars and LOESS smoothing

Main Components:
    - ChartRenderer / plot_chart: Canvas split, axes and per-kind drawing
    - LegendPacker: Legend planning shared by height estimation and drawing
    - StyleAssigner: FNV-1a based colour, marker and dash assignment
    - group_series, axis_scale: Series grouping and axis scaling

Usage:
    from wbi_charts.visuals import plot_chart
    from wbi_charts.core.enums import LegendMode, PlotKind

    layout = plot_chart(
        observations,
        "population.svg",
        legend_mode=LegendMode.RIGHT,
        kind=PlotKind.LINE,
    )

Architecture Notes:
    - Every render builds its own matplotlib Figure; pyplot is never used
    - configure_backend() is the only process-wide step and is idempotent
    - SVG output is byte-stable for identical inputs
"""

from __future__ import annotations

from .charts import ChartLayout, ChartRenderer, plot_chart
from .grouping import group_series
from .legend import LegendEntry, LegendPacker, LegendPlan
from .scaling import axis_scale
from .styles import Style, StyleAssigner

__all__ = [
    "ChartLayout",
    "ChartRenderer",
    "LegendEntry",
    "LegendPacker",
    "LegendPlan",
    "Style",
    "StyleAssigner",
    "axis_scale",
    "group_series",
    "plot_chart",
]
