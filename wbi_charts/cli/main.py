from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

import typer

from .. import __version__
from ..adapters.worldbank import WorldBankAdapter
from ..core.config import Settings, get_settings
from ..core.enums import DEFAULT_TITLE, LegendMode, OutFormat, PlotKind, StyleMode
from ..core.errors import RenderError, StorageError, WorldBankApiError
from ..core.logging_config import get_logger, setup_logging
from ..core.models import Observation, parse_date_spec
from ..core.presets import ChartPreset, get_preset
from ..stats.summary import grouped_summary
from ..storage.files import load_observations, save_observations
from ..visuals.charts import plot_chart
from ..visuals.scaling import format_number, map_locale
from . import output as cli_output

app = typer.Typer(help="World Bank indicator charts CLI")

logger = get_logger(__name__)

DEFAULT_WIDTH = 1000
DEFAULT_HEIGHT = 600
DEFAULT_LOESS_SPAN = 0.3
DEFAULT_CLI_LEGEND = LegendMode.RIGHT


@app.callback()
def callback(
    json_logs: bool = typer.Option(False, "--json-logs", help="Output logs in JSON format"),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)"),
) -> None:
    """Configure global CLI options."""
    setup_logging(json_output=json_logs, log_level=log_level)
    logger.debug("CLI initialized", extra={"json_logs": json_logs, "log_level": log_level})


@app.command()
def version() -> None:
    """Print version."""
    typer.echo(__version__)


def _split_codes(raw: str) -> list[str]:
    """``"DEU, USA;FRA"`` -> ``["DEU", "USA", "FRA"]``."""
    return [p.strip() for p in raw.replace(";", ",").split(",") if p.strip()]


def _resolve_preset(name: str | None, settings: Settings) -> ChartPreset | None:
    if not name:
        return None
    preset = get_preset(name, settings.presets_path)
    if preset is None:
        cli_output.error(f"Preset '{name}' not found in {settings.presets_path}")
        raise typer.Exit(code=1)
    return preset


def _chart_options(
    preset: ChartPreset | None,
    settings: Settings,
    *,
    width: int | None,
    height: int | None,
    title: str,
    locale: str | None,
    legend: LegendMode | None,
    kind: PlotKind | None,
    loess_span: float | None,
    style_mode: StyleMode | None,
) -> dict[str, Any]:
    """Merge command line flags over preset values over defaults."""

    def pick(flag: Any, preset_attr: str, default: Any) -> Any:
        if flag is not None:
            return flag
        value = getattr(preset, preset_attr) if preset else None
        return value if value is not None else default

    span = pick(loess_span, "loess_span", DEFAULT_LOESS_SPAN)
    if not 0.0 < span <= 1.0:
        cli_output.error("--loess-span must be in (0, 1].")
        raise typer.Exit(code=1)
    return {
        "width": pick(width, "width", DEFAULT_WIDTH),
        "height": pick(height, "height", DEFAULT_HEIGHT),
        "locale": pick(locale, "locale", settings.locale),
        "legend_mode": pick(legend, "legend", DEFAULT_CLI_LEGEND),
        "title": title,
        "kind": pick(kind, "kind", PlotKind.LINE),
        "loess_span": span,
        "style_mode": pick(style_mode, "style_mode", None),
    }


def _render(observations: Sequence[Observation], target: Path, options: dict[str, Any]) -> None:
    try:
        layout = plot_chart(observations, target, **options)
    except RenderError as e:
        logger.exception("Chart rendering failed", extra={"target": str(target)})
        cli_output.error(f"Plot failed: {e}")
        raise typer.Exit(code=1) from e
    cli_output.success(f"Chart written to {target} ({len(layout.entries)} series)")


def _print_stats(observations: Sequence[Observation], locale: str) -> None:
    num_locale = map_locale(locale)

    def fmt(value: float | None) -> str:
        return "-" if value is None else format_number(value, num_locale)

    cli_output.plain(
        f"{'indicator_id':<24} {'country':<8} {'count':>6} {'missing':>8} "
        f"{'min':>16} {'max':>16} {'mean':>16} {'median':>16}",
        color=cli_output.OutputColor.CYAN,
    )
    for s in grouped_summary(observations):
        cli_output.plain(
            f"{s.key.indicator_id:<24} {s.key.country_iso3:<8} {s.count:>6} {s.missing:>8} "
            f"{fmt(s.min):>16} {fmt(s.max):>16} {fmt(s.mean):>16} {fmt(s.median):>16}"
        )


@app.command("get")
def get_cmd(
    countries: str = typer.Option(..., "--countries", "-c", help="Country/region codes, comma or semicolon separated (e.g. DEU,USA)"),  # noqa: B008
    indicators: str = typer.Option(..., "--indicators", "-i", help="Indicator ids, comma or semicolon separated (e.g. SP.POP.TOTL)"),  # noqa: B008
    date: str = typer.Option("2000:2020", "--date", "-d", help="Year or inclusive range YYYY:YYYY"),  # noqa: B008
    source: int | None = typer.Option(None, help="Data source id (e.g. 2 for WDI)"),  # noqa: B008
    out: Path | None = typer.Option(None, "--out", "-o", help="Save observations to CSV or JSON"),  # noqa: B008
    out_format: OutFormat | None = typer.Option(  # noqa: B008
        None, "--format", case_sensitive=False, help="csv|json (default: from --out extension)"
    ),
    plot: Path | None = typer.Option(None, help="Render a chart (.svg for SVG, otherwise PNG)"),  # noqa: B008
    width: int | None = typer.Option(None, min=1, help=f"Chart width in px (default: {DEFAULT_WIDTH})"),  # noqa: B008
    height: int | None = typer.Option(None, min=1, help=f"Chart height in px (default: {DEFAULT_HEIGHT})"),  # noqa: B008
    title: str = typer.Option(DEFAULT_TITLE, help="Chart title; the default is derived from indicator names"),  # noqa: B008
    stats: bool = typer.Option(False, "--stats", help="Print grouped summary statistics"),  # noqa: B008
    locale: str | None = typer.Option(None, help="Number locale for axis labels (en, de, fr, ...)"),  # noqa: B008
    legend: LegendMode | None = typer.Option(  # noqa: B008
        None, case_sensitive=False, help="Legend placement: inside|right|top|bottom (default: right)"
    ),
    kind: PlotKind | None = typer.Option(  # noqa: B008
        None, case_sensitive=False, help="Chart kind (default: line)"
    ),
    loess_span: float | None = typer.Option(None, help="LOESS neighbour fraction in (0, 1] (default: 0.3)"),  # noqa: B008
    style_mode: StyleMode | None = typer.Option(  # noqa: B008
        None, case_sensitive=False, help="Country-consistent styling: continuous|palette"
    ),
    preset: str | None = typer.Option(None, help="Chart preset from configs/presets.yaml"),  # noqa: B008
) -> None:
    """Fetch indicator observations from the World Bank API.

    Optionally saves them, renders a chart and prints summary statistics.
    """
    settings = get_settings()

    country_codes = _split_codes(countries)
    indicator_codes = _split_codes(indicators)
    if not country_codes or not indicator_codes:
        cli_output.error("--countries and --indicators need at least one code each.")
        raise typer.Exit(code=1)

    date_spec = parse_date_spec(date)
    if date_spec is None:
        cli_output.error("--date must be YYYY or YYYY:YYYY.")
        raise typer.Exit(code=1)

    chart_preset = _resolve_preset(preset, settings)
    options = _chart_options(
        chart_preset,
        settings,
        width=width,
        height=height,
        title=title,
        locale=locale,
        legend=legend,
        kind=kind,
        loess_span=loess_span,
        style_mode=style_mode,
    )

    adapter = WorldBankAdapter(base_url=settings.api_base_url, timeout=settings.api_timeout)
    try:
        observations = adapter.fetch_observations(
            country_codes, indicator_codes, date=date_spec, source=source
        )
    except WorldBankApiError as e:
        logger.exception("World Bank fetch failed", extra={
            "countries": country_codes,
            "indicators": indicator_codes,
            "date": date_spec.to_query_param(),
        })
        cli_output.error(f"Fetch failed: {e}")
        raise typer.Exit(code=1) from e

    cli_output.info(f"Fetched {len(observations)} observations")

    if out is not None:
        try:
            save_observations(observations, out, out_format)
        except (StorageError, OSError) as e:
            logger.exception("Saving observations failed", extra={"path": str(out)})
            cli_output.error(f"Save failed: {e}")
            raise typer.Exit(code=1) from e
        cli_output.success(f"Saved {len(observations)} rows to {out}")

    if plot is not None:
        _render(observations, plot, options)

    if stats:
        _print_stats(observations, options["locale"])

    if out is None and plot is None and not stats:
        cli_output.warning("Nothing written; pass --out, --plot or --stats.")


@app.command("plot")
def plot_cmd(
    input_path: Path = typer.Argument(..., help="CSV or JSON file written by `get --out`"),  # noqa: B008
    out: Path = typer.Option(..., "--out", "-o", help="Chart file (.svg for SVG, otherwise PNG)"),  # noqa: B008
    width: int | None = typer.Option(None, min=1, help=f"Chart width in px (default: {DEFAULT_WIDTH})"),  # noqa: B008
    height: int | None = typer.Option(None, min=1, help=f"Chart height in px (default: {DEFAULT_HEIGHT})"),  # noqa: B008
    title: str = typer.Option(DEFAULT_TITLE, help="Chart title; the default is derived from indicator names"),  # noqa: B008
    locale: str | None = typer.Option(None, help="Number locale for axis labels (en, de, fr, ...)"),  # noqa: B008
    legend: LegendMode | None = typer.Option(  # noqa: B008
        None, case_sensitive=False, help="Legend placement: inside|right|top|bottom (default: right)"
    ),
    kind: PlotKind | None = typer.Option(  # noqa: B008
        None, case_sensitive=False, help="Chart kind (default: line)"
    ),
    loess_span: float | None = typer.Option(None, help="LOESS neighbour fraction in (0, 1] (default: 0.3)"),  # noqa: B008
    style_mode: StyleMode | None = typer.Option(  # noqa: B008
        None, case_sensitive=False, help="Country-consistent styling: continuous|palette"
    ),
    preset: str | None = typer.Option(None, help="Chart preset from configs/presets.yaml"),  # noqa: B008
) -> None:
    """Render a chart from a saved observation file."""
    settings = get_settings()
    chart_preset = _resolve_preset(preset, settings)
    options = _chart_options(
        chart_preset,
        settings,
        width=width,
        height=height,
        title=title,
        locale=locale,
        legend=legend,
        kind=kind,
        loess_span=loess_span,
        style_mode=style_mode,
    )
    observations = _load_or_exit(input_path)
    _render(observations, out, options)


@app.command("stats")
def stats_cmd(
    input_path: Path = typer.Argument(..., help="CSV or JSON file written by `get --out`"),  # noqa: B008
    locale: str | None = typer.Option(None, help="Number locale (en, de, fr, ...)"),  # noqa: B008
) -> None:
    """Print grouped summary statistics of a saved observation file."""
    settings = get_settings()
    observations = _load_or_exit(input_path)
    _print_stats(observations, locale or settings.locale)


def _load_or_exit(path: Path) -> list[Observation]:
    try:
        return load_observations(path)
    except StorageError as e:
        logger.exception("Loading observations failed", extra={"path": str(path)})
        cli_output.error(f"Cannot read {path}: {e}")
        raise typer.Exit(code=1) from e

