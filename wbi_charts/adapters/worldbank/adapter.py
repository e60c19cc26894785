"""World Bank Indicators API v2 adapter."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any
from urllib.parse import quote

import requests

from ..base import BaseAdapter
from ...core.errors import WorldBankApiError
from ...core.logging_config import get_logger
from ...core.models import DateSpec, Observation

logger = get_logger(__name__)

PER_PAGE = 1000
MAX_PAGES = 1000


def encode_codes(codes: Sequence[str]) -> str:
    """Trim, percent-encode (keeping ``-_.``) and ``;``-join API path codes."""
    return ";".join(quote(code.strip(), safe="-_.") for code in codes)


class WorldBankAdapter(BaseAdapter):
    """Adapter for the World Bank Indicators API (``/v2``)."""

    BASE_URL = "https://api.worldbank.org/v2"

    def fetch_observations(
        self,
        countries: Sequence[str],
        indicators: Sequence[str],
        date: DateSpec | None = None,
        source: int | None = None,
    ) -> list[Observation]:
        """Fetch observations from the country/indicator endpoint.

        Several indicators without ``source`` are fetched one indicator at a
        time and merged, since the API only accepts multi-indicator requests
        for a single source. See BaseAdapter.fetch_observations for the rest.
        """
        if not countries:
            raise ValueError("at least one country/region code required")
        if not indicators:
            raise ValueError("at least one indicator code required")

        if len(indicators) > 1 and source is None:
            merged: list[Observation] = []
            for indicator in indicators:
                merged.extend(self.fetch_observations(countries, [indicator], date, None))
            return merged

        endpoint = (
            f"{self.base_url}/country/{encode_codes(countries)}"
            f"/indicator/{encode_codes(indicators)}"
        )
        params: dict[str, str | int] = {"format": "json", "per_page": PER_PAGE}
        if date is not None:
            params["date"] = date.to_query_param()
        if source is not None:
            params["source"] = source

        out: list[Observation] = []
        page = 1
        while True:
            if page > MAX_PAGES:
                raise WorldBankApiError(f"page limit exceeded ({MAX_PAGES})")
            meta, rows = self._get_page(endpoint, {**params, "page": page})
            out.extend(Observation.from_api_entry(row) for row in rows)

            total_pages = self._safe_int(meta.get("pages"), default=1)
            logger.debug(
                "Fetched observations page",
                extra={"endpoint": endpoint, "page": page, "pages": total_pages},
            )
            if page >= total_pages:
                break
            page += 1

        if any(not (o.unit or "").strip() for o in out):
            out = self._enrich_units(out, indicators)
        return out

    def fetch_indicator_units(self, indicators: Sequence[str]) -> dict[str, str]:
        """Map indicator id -> unit from the indicator metadata endpoint.

        Indicators without a (non-blank) unit are left out.
        """
        endpoint = f"{self.base_url}/indicator/{encode_codes(indicators)}"
        _, rows = self._get_page(endpoint, {"format": "json", "per_page": PER_PAGE})
        units: dict[str, str] = {}
        for row in rows:
            unit = (row.get("unit") or "").strip()
            if unit and row.get("id"):
                units[row["id"]] = unit
        return units

    def _enrich_units(
        self, observations: list[Observation], indicators: Sequence[str]
    ) -> list[Observation]:
        try:
            units = self.fetch_indicator_units(indicators)
        except (WorldBankApiError, requests.RequestException) as e:
            logger.warning(
                "Indicator unit lookup failed, continuing without units",
                extra={"indicators": list(indicators), "error": str(e)},
            )
            return observations
        return [
            o.with_unit(units[o.indicator_id])
            if not (o.unit or "").strip() and o.indicator_id in units
            else o
            for o in observations
        ]

    def _get_page(
        self, endpoint: str, params: dict[str, str | int]
    ) -> tuple[dict[str, Any], list[dict[str, Any]]]:
        """GET one page and split the ``[meta, rows]`` payload.

        Raises:
            WorldBankApiError: Non-200 status, undecodable body or an API
                ``message`` payload
        """
        try:
            resp = requests.get(endpoint, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise WorldBankApiError(f"network error: {e}") from e

        if resp.status_code != 200:
            raise WorldBankApiError(
                f"request failed with HTTP {resp.status_code}: {resp.text[:200]}"
            )
        try:
            payload = resp.json()
        except ValueError as e:
            raise WorldBankApiError("response is not valid JSON") from e

        if not isinstance(payload, list):
            raise WorldBankApiError("unexpected response shape: not a top-level array")
        if not payload:
            raise WorldBankApiError("unexpected response: empty array")

        meta = payload[0] if isinstance(payload[0], dict) else {}
        if "message" in meta:
            raise WorldBankApiError(f"world bank api error: {meta['message']}")
        rows = payload[1] if len(payload) > 1 and isinstance(payload[1], list) else []
        return meta, rows
