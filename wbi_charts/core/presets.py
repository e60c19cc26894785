from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from .config import DEFAULT_PRESETS_PATH
from .enums import LegendMode, PlotKind, StyleMode


@dataclass(frozen=True)
class ChartPreset:
    id: str
    width: int | None = None
    height: int | None = None
    legend: LegendMode | None = None
    kind: PlotKind | None = None
    locale: str | None = None
    loess_span: float | None = None
    style_mode: StyleMode | None = None


def _load_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def get_preset(preset_id: str, path: Path | None = None) -> ChartPreset | None:
    data = _load_yaml(path or Path(DEFAULT_PRESETS_PATH))
    presets = data.get("presets", {})
    cfg = presets.get(preset_id)
    if not cfg:
        return None
    legend = cfg.get("legend")
    kind = cfg.get("kind")
    style_mode = cfg.get("style_mode")
    span = cfg.get("loess_span")
    return ChartPreset(
        id=preset_id,
        width=cfg.get("width"),
        height=cfg.get("height"),
        legend=LegendMode(legend) if legend else None,
        kind=PlotKind(kind) if kind else None,
        locale=cfg.get("locale"),
        loess_span=float(span) if span is not None else None,
        style_mode=StyleMode(style_mode) if style_mode else None,
    )
