"""CSV / JSON persistence of observation lists.

Writes go to a temporary file next to the target and are moved into place
with ``os.replace``, so readers never see a half-written export.
"""

from __future__ import annotations

import csv
import io
import json
import math
import os
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from ..core.enums import OutFormat
from ..core.errors import StorageError
from ..core.logging_config import get_logger
from ..core.models import Observation

logger = get_logger(__name__)

FIELDS = (
    "indicator_id",
    "indicator_name",
    "country_id",
    "country_name",
    "country_iso3",
    "year",
    "value",
    "unit",
    "obs_status",
    "decimal",
)

TEXT_FIELDS = frozenset(
    {
        "indicator_id",
        "indicator_name",
        "country_id",
        "country_name",
        "country_iso3",
        "unit",
        "obs_status",
    }
)

# Spreadsheet apps evaluate cells starting with these as formulas
FORMULA_PREFIXES = ("=", "+", "-", "@")
FORMULA_GUARD = "'"


def csv_safe_cell(text: str) -> str:
    if text.startswith(FORMULA_PREFIXES):
        return FORMULA_GUARD + text
    return text


def strip_formula_guard(text: str) -> str:
    if text.startswith(FORMULA_GUARD) and text[1:].startswith(FORMULA_PREFIXES):
        return text[1:]
    return text


def _finite_or_none(value: float | None) -> float | None:
    if value is None or not math.isfinite(value):
        return None
    return value


def _to_record(o: Observation) -> dict[str, Any]:
    return {
        "indicator_id": o.indicator_id,
        "indicator_name": o.indicator_name,
        "country_id": o.country_id,
        "country_name": o.country_name,
        "country_iso3": o.country_iso3,
        "year": o.year,
        "value": _finite_or_none(o.value),
        "unit": o.unit,
        "obs_status": o.obs_status,
        "decimal": o.decimal,
    }


def _atomic_write(path: Path, content: str) -> None:
    path = Path(path)
    parent = path.parent if str(path.parent) else Path(".")
    parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            fh.write(content)
        os.replace(tmp_name, path)
    except OSError:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def save_csv(observations: Sequence[Observation], path: str | Path) -> None:
    """Write observations as CSV with a fixed header order."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=FIELDS, lineterminator="\n")
    writer.writeheader()
    for o in observations:
        record = _to_record(o)
        row = {}
        for name in FIELDS:
            value = record[name]
            if value is None:
                row[name] = ""
            elif name in TEXT_FIELDS:
                row[name] = csv_safe_cell(str(value))
            else:
                row[name] = value
        writer.writerow(row)
    _atomic_write(Path(path), buffer.getvalue())
    logger.info("Saved CSV", extra={"path": str(path), "rows": len(observations)})


def save_json(observations: Sequence[Observation], path: str | Path) -> None:
    """Write observations as a pretty-printed JSON array (non-finite values -> null)."""
    records = [_to_record(o) for o in observations]
    _atomic_write(Path(path), json.dumps(records, indent=2, ensure_ascii=False) + "\n")
    logger.info("Saved JSON", extra={"path": str(path), "rows": len(observations)})


def infer_format(path: str | Path) -> OutFormat:
    suffix = Path(path).suffix.lower().lstrip(".")
    try:
        return OutFormat(suffix)
    except ValueError as e:
        raise StorageError(f"Unsupported file format: {path}") from e


def save_observations(
    observations: Sequence[Observation],
    path: str | Path,
    fmt: OutFormat | None = None,
) -> None:
    """Save in ``fmt``, or in the format named by the file extension."""
    fmt = OutFormat(fmt) if fmt is not None else infer_format(path)
    if fmt is OutFormat.CSV:
        save_csv(observations, path)
    else:
        save_json(observations, path)


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text != "" else None


def _from_record(record: dict[str, Any]) -> Observation:
    def text(name: str) -> str:
        return strip_formula_guard(str(record.get(name) or ""))

    unit = _optional_str(record.get("unit"))
    obs_status = _optional_str(record.get("obs_status"))
    value = record.get("value")
    decimal = record.get("decimal")
    try:
        year = int(record.get("year") or 0)
    except (TypeError, ValueError):
        year = 0
    return Observation(
        country_iso3=text("country_iso3"),
        country_name=text("country_name"),
        indicator_id=text("indicator_id"),
        indicator_name=text("indicator_name"),
        year=year,
        value=float(value) if value not in (None, "") else None,
        unit=strip_formula_guard(unit) if unit is not None else None,
        country_id=text("country_id"),
        obs_status=strip_formula_guard(obs_status) if obs_status is not None else None,
        decimal=int(decimal) if decimal not in (None, "") else None,
    )


def load_observations(path: str | Path) -> list[Observation]:
    """Read observations back from a CSV or JSON export.

    Raises:
        StorageError: Unknown extension, missing file or malformed content
    """
    path = Path(path)
    fmt = infer_format(path)
    try:
        with path.open(encoding="utf-8", newline="") as fh:
            if fmt is OutFormat.CSV:
                records = list(csv.DictReader(fh))
            else:
                records = json.load(fh)
    except (OSError, json.JSONDecodeError, csv.Error) as e:
        raise StorageError(f"Failed to read {path}: {e}") from e

    if not isinstance(records, list):
        raise StorageError(f"Expected a list of observations in {path}")
    try:
        observations = [_from_record(r) for r in records]
    except (TypeError, ValueError, AttributeError) as e:
        raise StorageError(f"Malformed observation in {path}: {e}") from e
    logger.debug("Loaded observations", extra={"path": str(path), "rows": len(observations)})
    return observations
