"""Legend layout and drawing for external (Right/Top/Bottom) and inside legends.

Layout is planned once per call by :meth:`LegendPacker.plan`, which returns an
immutable :class:`LegendPlan`. Visitors walk the plan: :class:`HeightMeasurer`
only measures, :class:`MatplotlibLegendDrawer` measures and draws. The band
height used to split the canvas and the height actually drawn therefore come
from the same plan.

Top/Bottom bands use a table-like flow layout:

1. Greedy packing walks the entries left to right with a per-entry text cap of
   ``min(140px, 35% of the remaining row width)`` and starts a new row when an
   entry overflows a non-empty row. The widest row gives the column count K.
2. Each column prefers the width of its longest single-line label. When the
   preferred widths fit the band they are used unwrapped; otherwise all
   columns fall back to a uniform width and labels wrap.
3. A row is as tall as its tallest wrapped cell.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from typing import Protocol

from matplotlib.axes import Axes
from matplotlib.lines import Line2D

from ..core.enums import LegendMode, LineDash, MarkerShape
from ..core.logging_config import get_logger
from .backend import MPL_DASHES, MPL_MARKERS, escape_mathtext, px_to_pt
from .text import estimate_width, wrap

logger = get_logger(__name__)

DEFAULT_ENTRY_COLOR = "#000000"


@dataclass(frozen=True)
class LegendEntry:
    label: str
    color: str = DEFAULT_ENTRY_COLOR
    marker: MarkerShape | None = None
    dash: LineDash | None = None

    @property
    def has_glyph(self) -> bool:
        return self.marker is not None or self.dash is not None


@dataclass(frozen=True)
class LegendMetrics:
    """Pixel constants of the legend layout."""

    font_px: int = 14
    title_font_px: int = 16
    line_gap: int = 2
    row_gap: int = 4
    pad_small: int = 6
    pad_band: int = 8
    title_gap: int = 8
    marker_radius: int = 4
    marker_to_text_gap: int = 12
    trailing_gap: int = 12
    min_slot: int = 60
    min_text_cap: int = 40
    item_cap_px: int = 140
    item_cap_share: float = 0.35
    line_sample_px: int = 16
    column_pad_x: int = 6
    column_text_offset: int = 24

    @property
    def line_height(self) -> int:
        return self.font_px + self.line_gap

    @property
    def chrome(self) -> int:
        """Horizontal space of a band cell that is not label text."""
        return self.marker_to_text_gap + self.marker_radius + self.trailing_gap


@dataclass(frozen=True)
class LegendCell:
    entry: LegendEntry
    column: int
    text_x: int
    marker_x: int
    lines: tuple[str, ...]
    block_height: int
    # Line sample span for glyph entries in the right-hand column
    sample: tuple[int, int] | None = None


@dataclass(frozen=True)
class LegendRow:
    top: int
    height: int
    cells: tuple[LegendCell, ...]

    @property
    def bottom(self) -> int:
        return self.top + self.height

    @property
    def center_y(self) -> int:
        return self.top + self.height // 2


class LegendVisitor(Protocol):
    def begin(self, plan: LegendPlan) -> None: ...

    def visit_title(self, plan: LegendPlan) -> None: ...

    def visit_row(self, row: LegendRow) -> None: ...

    def visit_cell(self, cell: LegendCell, row: LegendRow) -> None: ...

    def end(self, plan: LegendPlan) -> None: ...


@dataclass(frozen=True)
class LegendPlan:
    placement: LegendMode
    metrics: LegendMetrics
    has_title: bool
    title: str
    title_x: int
    title_y: int
    content_top: int
    rows: tuple[LegendRow, ...]
    column_x: tuple[int, ...]
    wrapped: bool = False
    entries: tuple[LegendEntry, ...] = field(default=())

    @property
    def column_count(self) -> int:
        return len(self.column_x)

    @property
    def height(self) -> int:
        measurer = HeightMeasurer()
        self.accept(measurer)
        return measurer.height

    def accept(self, visitor: LegendVisitor) -> None:
        visitor.begin(self)
        if self.has_title:
            visitor.visit_title(self)
        for row in self.rows:
            visitor.visit_row(row)
            for cell in row.cells:
                visitor.visit_cell(cell, row)
        visitor.end(self)

    def truncated(self, max_height: int) -> LegendPlan:
        """Drop the rows that would end below ``max_height``."""
        limit = max_height - self.metrics.pad_band
        rows = tuple(r for r in self.rows if r.bottom <= limit)
        if len(rows) == len(self.rows):
            return self
        return replace(self, rows=rows)


class HeightMeasurer:
    """Visitor computing the vertical space a plan consumes."""

    def __init__(self) -> None:
        self.height = 0
        self._bottom = 0

    def begin(self, plan: LegendPlan) -> None:
        self._bottom = plan.content_top

    def visit_title(self, plan: LegendPlan) -> None:
        pass

    def visit_row(self, row: LegendRow) -> None:
        self._bottom = max(self._bottom, row.bottom)

    def visit_cell(self, cell: LegendCell, row: LegendRow) -> None:
        pass

    def end(self, plan: LegendPlan) -> None:
        self.height = self._bottom + plan.metrics.pad_band


class MatplotlibLegendDrawer(HeightMeasurer):
    """Visitor drawing a plan onto axes whose data coordinates are pixels.

    The axes are expected to span the legend region with x growing to the
    right and y growing downwards (see :func:`pixel_axes`).
    """

    def __init__(self, ax: Axes) -> None:
        super().__init__()
        self.ax = ax
        self.dpi = ax.figure.dpi
        self._plan: LegendPlan | None = None

    def begin(self, plan: LegendPlan) -> None:
        super().begin(plan)
        self._plan = plan

    def visit_title(self, plan: LegendPlan) -> None:
        self.ax.text(
            plan.title_x,
            plan.title_y,
            plan.title,
            fontsize=px_to_pt(plan.metrics.title_font_px, self.dpi),
            ha="left",
            va="top",
            clip_on=False,
            parse_math=False,
        )

    def visit_cell(self, cell: LegendCell, row: LegendRow) -> None:
        m = self._plan.metrics
        y_center = row.center_y
        entry = cell.entry

        if cell.sample is not None:
            x0, x1 = cell.sample
            self.ax.plot(
                [x0, x1],
                [y_center, y_center],
                color=entry.color,
                linestyle=MPL_DASHES[entry.dash or LineDash.SOLID],
                linewidth=px_to_pt(2, self.dpi),
                solid_capstyle="butt",
                clip_on=False,
            )
        self._marker(cell.marker_x, y_center, entry, m.marker_radius)

        block_top = y_center - cell.block_height // 2
        for i, line in enumerate(cell.lines):
            self.ax.text(
                cell.text_x,
                block_top + i * m.line_height + m.line_height // 2,
                line,
                fontsize=px_to_pt(m.font_px, self.dpi),
                ha="left",
                va="center",
                clip_on=False,
                parse_math=False,
            )

    def _marker(self, x: int, y: int, entry: LegendEntry, radius: int) -> None:
        shape = entry.marker or MarkerShape.CIRCLE
        self.ax.plot(
            [x],
            [y],
            marker=MPL_MARKERS[shape],
            markersize=px_to_pt(2 * radius, self.dpi),
            markeredgewidth=px_to_pt(2, self.dpi)
            if shape in (MarkerShape.CROSS, MarkerShape.X)
            else px_to_pt(1, self.dpi),
            color=entry.color,
            linestyle="none",
            clip_on=False,
        )


def _as_entries(entries: Sequence[LegendEntry | str]) -> tuple[LegendEntry, ...]:
    return tuple(e if isinstance(e, LegendEntry) else LegendEntry(label=e) for e in entries)


class LegendPacker:
    """Plan, measure and draw legends."""

    def __init__(self, metrics: LegendMetrics | None = None):
        self.metrics = metrics or LegendMetrics()

    def estimate_band_height(
        self,
        entries: Sequence[LegendEntry | str],
        start_x: int,
        total_width: int,
        has_title: bool = False,
        title_font_px: int | None = None,
        font_px: int | None = None,
    ) -> int:
        """Height in pixels a Top/Bottom band needs for ``entries``.

        Args:
            entries: Legend entries (or bare labels) in drawing order
            start_x: Pixel column of the first label, aligned with the plot's x-axis
            total_width: Full band width in pixels
            has_title: Reserve room for a legend title line
            title_font_px: Override of the title font size
            font_px: Override of the label font size

        Returns:
            Band height in pixels, identical to what rendering the band consumes
        """
        metrics = self.metrics
        if title_font_px is not None:
            metrics = replace(metrics, title_font_px=title_font_px)
        if font_px is not None:
            metrics = replace(metrics, font_px=font_px)
        plan = LegendPacker(metrics).plan_band(
            entries, start_x, total_width, has_title=has_title
        )
        measurer = HeightMeasurer()
        plan.accept(measurer)
        return measurer.height

    def plan(
        self,
        entries: Sequence[LegendEntry | str],
        placement: LegendMode,
        width: int,
        start_x: int = 0,
        title: str = "",
    ) -> LegendPlan:
        has_title = bool(title.strip())
        if placement is LegendMode.RIGHT:
            return self.plan_column(entries, width, has_title=has_title, title=title)
        if placement in (LegendMode.TOP, LegendMode.BOTTOM):
            plan = self.plan_band(
                entries, start_x, width, has_title=has_title, title=title
            )
            return replace(plan, placement=placement)
        raise ValueError(f"{placement.value} legends are not planned")

    def plan_column(
        self,
        entries: Sequence[LegendEntry | str],
        width: int,
        *,
        has_title: bool = False,
        title: str = "",
    ) -> LegendPlan:
        """Single column layout for the right-hand legend panel."""
        m = self.metrics
        items = _as_entries(entries)
        pad_x = m.column_pad_x

        title_y = m.pad_small
        content_top = (
            title_y + m.title_font_px + m.title_gap if has_title else m.pad_small + 6
        )
        y = content_top

        glyphs = any(e.has_glyph for e in items)
        if glyphs:
            glyph_width = m.line_sample_px + 2 * m.marker_radius
            text_x = pad_x + glyph_width + m.marker_to_text_gap
            marker_x = pad_x + m.line_sample_px // 2
            sample = (pad_x, pad_x + m.line_sample_px)
        else:
            text_x = pad_x + m.column_text_offset
            marker_x = pad_x + 12
            sample = None
        max_text_w = max(m.min_text_cap, width - text_x - pad_x)

        rows: list[LegendRow] = []
        for entry in items:
            lines = tuple(wrap(entry.label, m.font_px, max_text_w))
            block_h = max(1, len(lines)) * m.line_height
            cell = LegendCell(
                entry=entry,
                column=0,
                text_x=text_x,
                marker_x=marker_x,
                lines=lines,
                block_height=block_h,
                sample=sample,
            )
            rows.append(LegendRow(top=y, height=block_h, cells=(cell,)))
            y += block_h + m.row_gap

        return LegendPlan(
            placement=LegendMode.RIGHT,
            metrics=m,
            has_title=has_title,
            title=title,
            title_x=pad_x,
            title_y=title_y,
            content_top=content_top,
            rows=tuple(rows),
            column_x=(text_x,),
            wrapped=any(len(r.cells[0].lines) > 1 for r in rows),
            entries=items,
        )

    def plan_band(
        self,
        entries: Sequence[LegendEntry | str],
        start_x: int,
        total_width: int,
        *,
        has_title: bool = False,
        title: str = "",
    ) -> LegendPlan:
        """Table-like multi-row layout for Top/Bottom bands."""
        m = self.metrics
        items = _as_entries(entries)
        usable = total_width - m.pad_small

        title_y = m.pad_band
        content_top = (
            title_y + m.title_font_px + m.title_gap if has_title else m.pad_band + m.title_gap
        )

        packed = self._pack_rows(items, start_x, usable)
        k_cols = max((len(r) for r in packed), default=1)

        preferred = [m.min_slot] * k_cols
        for row in packed:
            for ci, entry in enumerate(row):
                block_w = m.chrome + estimate_width(entry.label, m.font_px)
                preferred[ci] = max(preferred[ci], block_w)

        fits = start_x + sum(preferred) <= usable
        if fits:
            slots = preferred
        else:
            slots = [max(m.min_slot, (usable - start_x) // k_cols)] * k_cols

        column_x: list[int] = []
        acc = start_x
        for sw in slots:
            column_x.append(acc)
            acc += sw
        text_caps = [max(m.min_text_cap, sw - m.chrome) for sw in slots]

        rows: list[LegendRow] = []
        y = content_top
        for row in packed:
            cells: list[LegendCell] = []
            row_h = m.line_height
            for ci, entry in enumerate(row):
                lines = tuple(wrap(entry.label, m.font_px, text_caps[ci]))
                block_h = max(1, len(lines)) * m.line_height
                row_h = max(row_h, block_h)
                cells.append(
                    LegendCell(
                        entry=entry,
                        column=ci,
                        text_x=column_x[ci],
                        marker_x=max(0, column_x[ci] - m.marker_to_text_gap),
                        lines=lines,
                        block_height=block_h,
                    )
                )
            rows.append(LegendRow(top=y, height=row_h, cells=tuple(cells)))
            y += row_h + m.row_gap

        return LegendPlan(
            placement=LegendMode.BOTTOM,
            metrics=m,
            has_title=has_title,
            title=title,
            title_x=start_x,
            title_y=title_y,
            content_top=content_top,
            rows=tuple(rows),
            column_x=tuple(column_x),
            wrapped=not fits,
            entries=items,
        )

    def _item_text_cap(self, remaining_px: int) -> int:
        m = self.metrics
        cap = min(m.item_cap_px, int(m.item_cap_share * remaining_px))
        return max(m.min_text_cap, cap)

    def _packing_width(self, label: str, text_cap: int) -> int:
        m = self.metrics
        lines = wrap(label, m.font_px, text_cap)
        widest = max((estimate_width(s, m.font_px) for s in lines), default=0)
        return m.chrome + widest

    def _pack_rows(
        self, items: Sequence[LegendEntry], start_x: int, usable: int
    ) -> list[list[LegendEntry]]:
        m = self.metrics
        rows: list[list[LegendEntry]] = []
        cur: list[LegendEntry] = []
        x = start_x
        for entry in items:
            remaining = max(usable - x, m.min_text_cap)
            block_w = max(
                m.min_slot, self._packing_width(entry.label, self._item_text_cap(remaining))
            )
            if x + block_w > usable and cur:
                rows.append(cur)
                cur = []
                x = start_x
                fresh = max(usable - start_x, m.min_text_cap)
                block_w = max(
                    m.min_slot, self._packing_width(entry.label, self._item_text_cap(fresh))
                )
            x += block_w
            cur.append(entry)
        if cur:
            rows.append(cur)
        return rows

    def render(
        self,
        entries: Sequence[LegendEntry | str],
        placement: LegendMode,
        ax: Axes,
        width: int,
        start_x: int = 0,
        title: str = "",
        max_height: int | None = None,
    ) -> LegendPlan | None:
        """Draw the legend for ``placement``.

        External placements draw on ``ax``, a pixel-space axes spanning the
        legend region, and return the plan that was drawn. Rows ending below
        ``max_height`` are left out. ``Inside`` draws an overlay on the plot
        axes and returns None.
        """
        if placement is LegendMode.INSIDE:
            self.render_inside(ax, entries)
            return None

        plan = self.plan(entries, placement, width, start_x=start_x, title=title)
        if max_height is not None:
            full_rows = len(plan.rows)
            plan = plan.truncated(max_height)
            if len(plan.rows) < full_rows:
                logger.warning(
                    "Legend rows dropped, region too small",
                    extra={
                        "placement": placement.value,
                        "rows": full_rows,
                        "kept": len(plan.rows),
                        "max_height_px": max_height,
                    },
                )
        drawer = MatplotlibLegendDrawer(ax)
        plan.accept(drawer)
        logger.debug(
            "Legend drawn",
            extra={
                "placement": placement.value,
                "rows": len(plan.rows),
                "columns": plan.column_count,
                "height_px": drawer.height,
            },
        )
        return plan

    def render_inside(self, ax: Axes, entries: Sequence[LegendEntry | str]) -> None:
        """Overlay legend in the upper-left corner of the plot, drawn over the series."""
        m = self.metrics
        items = _as_entries(entries)
        if not items:
            return
        dpi = ax.figure.dpi
        handles = [
            Line2D(
                [],
                [],
                color=e.color,
                marker=MPL_MARKERS[e.marker or MarkerShape.CIRCLE],
                markersize=px_to_pt(2 * m.marker_radius, dpi),
                linestyle=MPL_DASHES[e.dash] if e.dash else "none",
            )
            for e in items
        ]
        legend = ax.legend(
            handles,
            [escape_mathtext(e.label) for e in items],
            loc="upper left",
            fontsize=px_to_pt(m.font_px, dpi),
            frameon=True,
            framealpha=0.85,
            edgecolor="black",
            fancybox=False,
        )
        legend.set_zorder(10)
