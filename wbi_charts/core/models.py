from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True)
class Observation:
    """One (country, indicator, year) record as returned by the indicators API.

    ``year`` is 0 when the API date could not be parsed; such rows are kept so
    persistence round-trips them, but they never reach a chart.
    """

    country_iso3: str
    country_name: str
    indicator_id: str
    indicator_name: str
    year: int
    value: float | None = None
    unit: str | None = None
    country_id: str = ""
    obs_status: str | None = None
    decimal: int | None = None

    @classmethod
    def from_api_entry(cls, entry: dict[str, Any]) -> Observation:
        indicator = entry.get("indicator") or {}
        country = entry.get("country") or {}
        try:
            year = int(str(entry.get("date", "")).strip())
        except ValueError:
            year = 0
        value = entry.get("value")
        return cls(
            country_iso3=entry.get("countryiso3code") or "",
            country_name=country.get("value") or "",
            indicator_id=indicator.get("id") or "",
            indicator_name=indicator.get("value") or "",
            year=year,
            value=float(value) if value is not None else None,
            unit=entry.get("unit"),
            country_id=country.get("id") or "",
            obs_status=entry.get("obs_status"),
            decimal=entry.get("decimal"),
        )

    def with_unit(self, unit: str) -> Observation:
        return replace(self, unit=unit)


@dataclass(frozen=True, order=True)
class SeriesKey:
    country: str
    indicator: str


@dataclass(frozen=True)
class Series:
    key: SeriesKey
    country_name: str
    indicator_name: str
    label: str
    points: tuple[tuple[int, float], ...]

    @property
    def years(self) -> list[int]:
        return [y for y, _ in self.points]

    @property
    def values(self) -> list[float]:
        return [v for _, v in self.points]


@dataclass(frozen=True)
class DateSpec:
    start: int
    end: int | None = None

    def to_query_param(self) -> str:
        if self.end is None:
            return str(self.start)
        return f"{self.start}:{self.end}"


def parse_date_spec(text: str) -> DateSpec | None:
    """Parse ``YYYY`` or ``YYYY:YYYY``; returns None on malformed input."""
    text = text.strip()
    try:
        if ":" in text:
            a, b = text.split(":", 1)
            return DateSpec(start=int(a), end=int(b))
        return DateSpec(start=int(text))
    except ValueError:
        return None


@dataclass(frozen=True)
class Region:
    """Pixel rectangle on the canvas, origin at the top-left corner."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height
