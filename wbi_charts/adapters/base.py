"""Base adapter interface for indicator data sources."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from ..core.models import DateSpec, Observation


class BaseAdapter(ABC):
    """Abstract base class for observation sources.

    Subclasses talk to one HTTP API and return tidy :class:`Observation`
    lists that the chart, storage and statistics layers consume unchanged.

    Attributes:
        BASE_URL: Default API root (must be set by subclass)
        timeout: Per-request timeout in seconds
    """

    BASE_URL: str = ""  # Must be overridden by subclass

    def __init__(self, base_url: str | None = None, timeout: int = 30):
        """Initialize adapter.

        Args:
            base_url: Override of the class-level API root
            timeout: Request timeout in seconds (default: 30)
        """
        if not self.BASE_URL:
            raise NotImplementedError(
                f"{self.__class__.__name__} must define BASE_URL class attribute"
            )
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout

    @abstractmethod
    def fetch_observations(
        self,
        countries: Sequence[str],
        indicators: Sequence[str],
        date: DateSpec | None = None,
        source: int | None = None,
    ) -> list[Observation]:
        """Fetch observations for every country x indicator pair.

        Args:
            countries: ISO2/ISO3 country or aggregate codes
            indicators: Indicator ids, e.g. ``SP.POP.TOTL``
            date: Single year or inclusive range
            source: Optional data source id

        Returns:
            Observations in API order

        Raises:
            WorldBankApiError: On HTTP or API errors (caller handles retries)

        Notes:
            - Implementations handle pagination internally
            - Raise exceptions on API errors; don't implement retry logic here
        """
        pass

    def _safe_int(self, value: Any, default: int = 0) -> int:
        """Safely convert value to int, returning default on failure."""
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _safe_float(self, value: Any, default: float | None = None) -> float | None:
        """Safely convert value to float, returning default on failure."""
        try:
            return float(value)
        except (TypeError, ValueError):
            return default
