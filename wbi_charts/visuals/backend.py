"""Process-wide matplotlib setup shared by chart and legend drawing."""

from __future__ import annotations

import threading

import matplotlib

from ..core.enums import LineDash, MarkerShape
from ..core.logging_config import get_logger

logger = get_logger(__name__)

DPI = 100

# Fixed salt keeps generated SVG ids stable between runs
SVG_HASH_SALT = "wbi-charts"

MPL_MARKERS: dict[MarkerShape, str] = {
    MarkerShape.CIRCLE: "o",
    MarkerShape.SQUARE: "s",
    MarkerShape.TRIANGLE: "^",
    MarkerShape.DIAMOND: "D",
    MarkerShape.CROSS: "+",
    MarkerShape.X: "x",
}

MPL_DASHES: dict[LineDash, str] = {
    LineDash.SOLID: "-",
    LineDash.DASH: "--",
    LineDash.DOT: ":",
    LineDash.DASH_DOT: "-.",
}

_lock = threading.Lock()
_configured = False


def configure_backend() -> None:
    """Select the non-interactive Agg backend and register rc settings.

    Idempotent; safe to call from several threads before the first render.
    """
    global _configured
    with _lock:
        if _configured:
            return
        matplotlib.use("Agg")
        matplotlib.rcParams.update(
            {
                "svg.hashsalt": SVG_HASH_SALT,
                "svg.fonttype": "none",
                "font.family": "sans-serif",
                "font.sans-serif": ["DejaVu Sans"],
                "path.simplify": False,
            }
        )
        _configured = True
        logger.debug("Matplotlib backend configured", extra={"backend": "Agg"})


def px_to_pt(px: float, dpi: float = DPI) -> float:
    """Matplotlib sizes fonts and line widths in points; layout works in pixels."""
    return px * 72.0 / dpi


def escape_mathtext(text: str) -> str:
    """Keep ``$`` literal in labels handed to artists that always parse mathtext."""
    return text.replace("$", r"\$")
