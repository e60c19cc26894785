"""Chart composition: canvas split, axes, per-kind series drawing and legend."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path

import numpy as np
from matplotlib.axes import Axes
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from matplotlib.ticker import FuncFormatter, MaxNLocator

from ..core.enums import (
    DEFAULT_LEGEND_MODE,
    DEFAULT_TITLE,
    LegendMode,
    LineDash,
    MarkerShape,
    PlotKind,
    StyleMode,
)
from ..core.errors import BackendDrawError
from ..core.logging_config import get_logger
from ..core.models import Observation, Region, Series
from .backend import DPI, MPL_DASHES, MPL_MARKERS, configure_backend, px_to_pt
from .grouping import group_series
from .legend import LegendEntry, LegendPacker, LegendPlan
from .loess import loess
from .scaling import AxisScale, axis_scale, format_tick, left_gutter_px, map_locale
from .styles import StyleAssigner, office_color

logger = get_logger(__name__)

MARGIN = 16
CAPTION_FONT_PX = 24
CAPTION_GAP_PX = 8
X_LABEL_AREA_PX = 56
TICK_FONT_PX = 12
AXIS_TITLE_FONT_PX = 14
Y_TICKS = 10
MAX_X_TICKS = 12
RIGHT_PLOT_PERCENT = 85
MIN_BAND_PX = 40
MIN_PLOT_PX = 40

LINE_WIDTH_PX = 2
LOESS_LINE_WIDTH_PX = 3
MARKER_RADIUS_PX = 4
AREA_ALPHA = 0.2
STACKED_ALPHA = 0.3
BAR_GROUP_WIDTH = 0.8
LOESS_SUFFIX = " (LOESS)"
FALLBACK_TITLE = "World Bank Series"


@dataclass(frozen=True)
class ChartLayout:
    """Pixel geometry and derived metadata of one rendered chart."""

    width: int
    height: int
    title: str
    plot_region: Region
    axes_region: Region
    legend_region: Region | None
    legend_plan: LegendPlan | None
    entries: tuple[LegendEntry, ...]
    scale: AxisScale
    year_range: tuple[int, int]
    value_range: tuple[float, float]
    gutter_px: int

    @property
    def legend_labels(self) -> list[str]:
        return [e.label for e in self.entries]


@dataclass(frozen=True)
class BarRect:
    x: float
    width: float
    bottom: float
    top: float

    @property
    def height(self) -> float:
        return self.top - self.bottom


def derive_title(title: str, observations: Sequence[Observation]) -> str:
    """Use ``title`` unless it is blank or the default, else name the indicators."""
    t = title.strip()
    if t and t != DEFAULT_TITLE:
        return t
    names = sorted({o.indicator_name for o in observations})
    if not names:
        return FALLBACK_TITLE
    if len(names) == 1:
        return names[0]
    if len(names) <= 3:
        return ", ".join(names)
    return f"{names[0]} + {len(names) - 1} more"


def stack_bands(
    series: Sequence[Series],
) -> tuple[list[int], list[tuple[np.ndarray, np.ndarray]]]:
    """Cumulative (lower, upper) boundaries per series on the union year grid.

    Missing years count as 0 and negative values are floored at 0, so each
    band lies on top of the previous one.
    """
    years = sorted({year for s in series for year, _ in s.points})
    index = {year: i for i, year in enumerate(years)}
    running = np.zeros(len(years), dtype=float)
    bands: list[tuple[np.ndarray, np.ndarray]] = []
    for s in series:
        values = np.zeros(len(years), dtype=float)
        for year, value in s.points:
            values[index[year]] = max(0.0, value)
        lower = running.copy()
        running = running + values
        bands.append((lower, running.copy()))
    return years, bands


def band_polygon(
    years: Sequence[int], lower: np.ndarray, upper: np.ndarray
) -> tuple[list[float], list[float]]:
    """Lower boundary left to right followed by the upper boundary right to left."""
    xs = [float(y) for y in years] + [float(y) for y in reversed(years)]
    ys = [float(v) for v in lower] + [float(v) for v in upper[::-1]]
    return xs, ys


def grouped_bar_rects(
    points: Sequence[tuple[int, float]], index: int, count: int
) -> list[BarRect]:
    """Bars of series ``index`` out of ``count`` sharing a 0.8-year group per year."""
    bar_w = BAR_GROUP_WIDTH / count
    offset = -BAR_GROUP_WIDTH / 2 + index * bar_w
    return [
        BarRect(x=year + offset, width=bar_w, bottom=min(0.0, v), top=max(0.0, v))
        for year, v in points
    ]


def pixel_axes(fig: Figure, region: Region) -> Axes:
    """Invisible axes over ``region`` whose data coordinates are pixels.

    x grows to the right and y grows downwards from the region's top-left.
    """
    ax = fig.add_axes(_figure_rect(fig, region))
    ax.set_xlim(0, max(1, region.width))
    ax.set_ylim(max(1, region.height), 0)
    ax.set_axis_off()
    return ax


def _figure_rect(fig: Figure, region: Region) -> tuple[float, float, float, float]:
    fig_w = fig.get_figwidth() * fig.dpi
    fig_h = fig.get_figheight() * fig.dpi
    return (
        region.x / fig_w,
        1.0 - (region.y + region.height) / fig_h,
        region.width / fig_w,
        region.height / fig_h,
    )


class ChartRenderer:
    """Render observation lists to PNG or SVG with a packed legend."""

    def __init__(
        self,
        width: int = 1000,
        height: int = 600,
        locale: str = "en",
        legend_mode: LegendMode = DEFAULT_LEGEND_MODE,
        title: str = DEFAULT_TITLE,
        kind: PlotKind = PlotKind.LINE,
        loess_span: float = 0.3,
        style_mode: StyleMode | None = None,
        legend_title: str = "",
        packer: LegendPacker | None = None,
    ):
        if width <= 0 or height <= 0:
            raise ValueError(f"Canvas size must be positive, got {width}x{height}")
        if kind is PlotKind.LOESS and not 0.0 < loess_span <= 1.0:
            raise ValueError(f"LOESS span must be in (0, 1], got {loess_span}")
        self.width = width
        self.height = height
        self.locale = map_locale(locale)
        self.legend_mode = LegendMode(legend_mode)
        self.title = title
        self.kind = PlotKind(kind)
        self.loess_span = loess_span
        self.styles = StyleAssigner(style_mode) if style_mode is not None else None
        self.legend_title = legend_title
        self.packer = packer or LegendPacker()

    def render_to_file(
        self, observations: Sequence[Observation], target: str | Path
    ) -> ChartLayout:
        """Render to ``target``; a ``.svg`` suffix selects SVG, anything else PNG."""
        path = Path(target)
        fmt = "svg" if path.suffix.lower() == ".svg" else "png"
        fig, layout = self.build(observations)
        try:
            fig.savefig(path, **self._save_options(fmt))
        except (OSError, ValueError, RuntimeError) as e:
            raise BackendDrawError(f"Failed to write chart to {path}: {e}", cause=e) from e
        logger.info(
            "Chart written",
            extra={"path": str(path), "format": fmt, "series": len(layout.entries)},
        )
        return layout

    def render_bytes(self, observations: Sequence[Observation], fmt: str = "png") -> bytes:
        """Render to memory as ``"png"`` or ``"svg"`` bytes."""
        fmt = fmt.lower()
        if fmt not in ("png", "svg"):
            raise ValueError(f"Unsupported chart format: {fmt}")
        fig, _ = self.build(observations)
        buffer = BytesIO()
        try:
            fig.savefig(buffer, **self._save_options(fmt))
        except (OSError, ValueError, RuntimeError) as e:
            raise BackendDrawError(f"Failed to render {fmt} chart: {e}", cause=e) from e
        return buffer.getvalue()

    @staticmethod
    def _save_options(fmt: str) -> dict:
        options: dict = {"format": fmt, "dpi": DPI, "facecolor": "white"}
        if fmt == "svg":
            options["metadata"] = {"Date": None}
        return options

    def build(self, observations: Sequence[Observation]) -> tuple[Figure, ChartLayout]:
        """Lay out and draw the chart onto a new figure.

        Raises:
            EmptyInput, NoValidYears, NoNumericValues: Nothing plottable in input
        """
        series = group_series(observations)
        configure_backend()

        # 1) year range
        years = [o.year for o in observations if o.year != 0]
        min_year, max_year = min(years), max(years)
        if min_year == max_year:
            min_year -= 1
            max_year += 1

        # 2) value range
        min_val, max_val = self._value_range(observations, series)

        # 3) unit and magnitude
        scale = axis_scale(observations, min_val, max_val)
        y_lo, y_hi = min_val / scale.factor, max_val / scale.factor

        # 4) gutter and legend start column
        gutter = left_gutter_px(y_lo, y_hi, Y_TICKS, TICK_FONT_PX, self.locale)
        axis_x_start = MARGIN + gutter

        entries = tuple(self._legend_entries(series))

        # 5) band height before splitting
        band_h = 0
        if self.legend_mode in (LegendMode.TOP, LegendMode.BOTTOM):
            band_h = max(
                MIN_BAND_PX,
                self.packer.estimate_band_height(
                    entries,
                    axis_x_start,
                    self.width,
                    has_title=bool(self.legend_title.strip()),
                ),
            )

        # 6) split, draw
        plot_region, legend_region = self._split(band_h)
        axes_region = self._axes_region(plot_region, gutter)
        title = derive_title(self.title, observations)

        fig = Figure(
            figsize=(self.width / DPI, self.height / DPI), dpi=DPI, facecolor="white"
        )
        FigureCanvasAgg(fig)
        ax = fig.add_axes(_figure_rect(fig, axes_region))
        self._configure_axes(
            ax, scale, (min_year, max_year), (y_lo, y_hi), gutter, axes_region.width
        )
        fig.text(
            (plot_region.x + plot_region.width / 2) / self.width,
            1.0 - (plot_region.y + MARGIN) / self.height,
            title,
            fontsize=px_to_pt(CAPTION_FONT_PX, DPI),
            ha="center",
            va="top",
            parse_math=False,
        )

        self._draw_series(ax, series, scale.factor, min_val)

        plan: LegendPlan | None = None
        if self.legend_mode is LegendMode.INSIDE:
            self.packer.render(entries, LegendMode.INSIDE, ax, axes_region.width)
        elif legend_region is not None:
            legend_ax = pixel_axes(fig, legend_region)
            start_x = 0 if self.legend_mode is LegendMode.RIGHT else axis_x_start
            plan = self.packer.render(
                entries,
                self.legend_mode,
                legend_ax,
                legend_region.width,
                start_x=start_x,
                title=self.legend_title,
                max_height=legend_region.height,
            )

        layout = ChartLayout(
            width=self.width,
            height=self.height,
            title=title,
            plot_region=plot_region,
            axes_region=axes_region,
            legend_region=legend_region,
            legend_plan=plan,
            entries=entries,
            scale=scale,
            year_range=(min_year, max_year),
            value_range=(min_val, max_val),
            gutter_px=gutter,
        )
        logger.debug(
            "Chart laid out",
            extra={
                "kind": self.kind.value,
                "legend": self.legend_mode.value,
                "series": len(series),
                "band_px": band_h,
                "gutter_px": gutter,
            },
        )
        return fig, layout

    def _value_range(
        self, observations: Sequence[Observation], series: Sequence[Series]
    ) -> tuple[float, float]:
        values = [float(o.value) for o in observations if o.value is not None]
        lo, hi = min(values), max(values)
        if self.kind is PlotKind.STACKED_AREA:
            _, bands = stack_bands(series)
            top = max((float(upper.max()) for _, upper in bands if upper.size), default=0.0)
            lo, hi = min(lo, 0.0), max(hi, top)
        elif self.kind in (PlotKind.AREA, PlotKind.GROUPED_BAR):
            lo, hi = min(lo, 0.0), max(hi, 0.0)
        if abs(hi - lo) < np.finfo(float).eps:
            lo -= 1.0
            hi += 1.0
        return lo, hi

    def _split(self, band_h: int) -> tuple[Region, Region | None]:
        w, h = self.width, self.height
        if self.legend_mode is LegendMode.RIGHT:
            plot_w = w * RIGHT_PLOT_PERCENT // 100
            return Region(0, 0, plot_w, h), Region(plot_w, 0, w - plot_w, h)
        if self.legend_mode is LegendMode.TOP:
            band = min(band_h, max(0, h - MIN_PLOT_PX))
            return Region(0, band, w, h - band), Region(0, 0, w, band)
        if self.legend_mode is LegendMode.BOTTOM:
            plot_h = max(MIN_PLOT_PX, h - band_h)
            return Region(0, 0, w, plot_h), Region(0, plot_h, w, max(0, h - plot_h))
        return Region(0, 0, w, h), None

    @staticmethod
    def _axes_region(plot: Region, gutter: int) -> Region:
        left = plot.x + MARGIN + gutter
        top = plot.y + MARGIN + CAPTION_FONT_PX + CAPTION_GAP_PX
        right = plot.right - MARGIN
        bottom = plot.bottom - MARGIN - X_LABEL_AREA_PX
        return Region(left, top, max(1, right - left), max(1, bottom - top))

    def _configure_axes(
        self,
        ax: Axes,
        scale: AxisScale,
        year_range: tuple[int, int],
        y_range: tuple[float, float],
        gutter: int,
        axes_width: int,
    ) -> None:
        min_year, max_year = year_range
        pad = 0.5 if self.kind is PlotKind.GROUPED_BAR else 0.0
        ax.set_xlim(min_year - pad, max_year + pad)
        ax.set_ylim(*y_range)

        x_bins = min(MAX_X_TICKS, max_year - min_year + 1)
        ax.xaxis.set_major_locator(MaxNLocator(nbins=x_bins, integer=True))
        ax.xaxis.set_major_formatter(FuncFormatter(lambda v, _: str(int(round(v)))))
        ax.yaxis.set_major_locator(MaxNLocator(nbins=Y_TICKS))
        ax.yaxis.set_major_formatter(
            FuncFormatter(lambda v, _: format_tick(v, self.locale))
        )
        ax.tick_params(labelsize=px_to_pt(TICK_FONT_PX, DPI))

        ax.set_xlabel("Year", fontsize=px_to_pt(AXIS_TITLE_FONT_PX, DPI))
        ax.set_ylabel(
            scale.title, fontsize=px_to_pt(AXIS_TITLE_FONT_PX, DPI), parse_math=False
        )
        # centre of the rotated y title sits at the left canvas margin
        ax.yaxis.set_label_coords(-gutter / axes_width, 0.5)
        ax.grid(alpha=0.3)
        ax.set_axisbelow(True)

    def _series_look(self, idx: int, s: Series) -> tuple[str, MarkerShape, LineDash]:
        if self.styles is None:
            return office_color(idx), MarkerShape.CIRCLE, LineDash.SOLID
        style = self.styles.style(s.key.country, s.key.indicator)
        return style.hex, style.marker, style.dash

    def _legend_entries(self, series: Sequence[Series]) -> list[LegendEntry]:
        suffix = LOESS_SUFFIX if self.kind is PlotKind.LOESS else ""
        entries = []
        for idx, s in enumerate(series):
            color, marker, dash = self._series_look(idx, s)
            if self.styles is None:
                entries.append(LegendEntry(label=s.label + suffix, color=color))
            else:
                entries.append(
                    LegendEntry(label=s.label + suffix, color=color, marker=marker, dash=dash)
                )
        return entries

    def _draw_series(
        self, ax: Axes, series: Sequence[Series], factor: float, min_val: float
    ) -> None:
        kind = self.kind
        line_w = px_to_pt(LINE_WIDTH_PX, DPI)
        marker_size = px_to_pt(2 * MARKER_RADIUS_PX, DPI)

        if kind is PlotKind.STACKED_AREA:
            years, bands = stack_bands(series)
            for idx, (s, (lower, upper)) in enumerate(zip(series, bands)):
                color, _, dash = self._series_look(idx, s)
                xs, ys = band_polygon(years, lower / factor, upper / factor)
                ax.fill(xs, ys, color=color, alpha=STACKED_ALPHA, linewidth=0)
                ax.plot(
                    years,
                    upper / factor,
                    color=color,
                    linewidth=line_w,
                    linestyle=MPL_DASHES[dash],
                )
            return

        for idx, s in enumerate(series):
            color, marker, dash = self._series_look(idx, s)
            xs = s.years
            ys = [v / factor for v in s.values]
            linestyle = MPL_DASHES[dash]

            if kind is PlotKind.LINE:
                ax.plot(xs, ys, color=color, linewidth=line_w, linestyle=linestyle)
            elif kind is PlotKind.SCATTER:
                ax.plot(
                    xs,
                    ys,
                    color=color,
                    linestyle="none",
                    marker=MPL_MARKERS[marker],
                    markersize=marker_size,
                )
            elif kind is PlotKind.LINE_POINTS:
                ax.plot(
                    xs,
                    ys,
                    color=color,
                    linewidth=line_w,
                    linestyle=linestyle,
                    marker=MPL_MARKERS[marker],
                    markersize=marker_size,
                )
            elif kind is PlotKind.AREA:
                baseline = min(0.0, min_val) / factor
                ax.fill_between(
                    xs, baseline, ys, color=color, alpha=AREA_ALPHA, linewidth=0
                )
                ax.plot(xs, ys, color=color, linewidth=line_w, linestyle=linestyle)
            elif kind is PlotKind.GROUPED_BAR:
                rects = grouped_bar_rects(s.points, idx, len(series))
                ax.bar(
                    [r.x for r in rects],
                    [r.height / factor for r in rects],
                    width=BAR_GROUP_WIDTH / len(series),
                    bottom=[r.bottom / factor for r in rects],
                    align="edge",
                    color=color,
                    linewidth=0,
                )
            elif kind is PlotKind.LOESS:
                smoothed = loess(xs, s.values, self.loess_span) / factor
                ax.plot(
                    xs,
                    smoothed,
                    color=color,
                    linewidth=px_to_pt(LOESS_LINE_WIDTH_PX, DPI),
                    linestyle=linestyle,
                )


def plot_chart(
    observations: Sequence[Observation],
    target: str | Path,
    width: int = 1000,
    height: int = 600,
    locale: str = "en",
    legend_mode: LegendMode = DEFAULT_LEGEND_MODE,
    title: str = DEFAULT_TITLE,
    kind: PlotKind = PlotKind.LINE,
    loess_span: float = 0.3,
    style_mode: StyleMode | None = None,
) -> ChartLayout:
    """Render ``observations`` to ``target`` (SVG for ``.svg``, PNG otherwise).

    Raises:
        EmptyInput: No observations
        NoValidYears: No observation has a parseable year
        NoNumericValues: No observation carries a value
        BackendDrawError: The output backend failed to write the image
    """
    renderer = ChartRenderer(
        width=width,
        height=height,
        locale=locale,
        legend_mode=legend_mode,
        title=title,
        kind=kind,
        loess_span=loess_span,
        style_mode=style_mode,
    )
    return renderer.render_to_file(observations, target)
