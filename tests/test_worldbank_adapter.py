"""Tests for the World Bank Indicators API adapter."""

from __future__ import annotations

from typing import Any

import pytest
import requests
from wbi_charts.adapters.worldbank import adapter as wb
from wbi_charts.adapters.worldbank.adapter import WorldBankAdapter, encode_codes
from wbi_charts.core.errors import WorldBankApiError
from wbi_charts.core.models import DateSpec


class FakeResponse:
    def __init__(self, payload: Any, status_code: int = 200, text: str = ""):
        self._payload = payload
        self.status_code = status_code
        self.text = text

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


def entry(iso3: str, indicator: str, year: str, value: float | None, unit: str = "") -> dict:
    return {
        "indicator": {"id": indicator, "value": f"{indicator} name"},
        "country": {"id": iso3[:2], "value": f"{iso3} name"},
        "countryiso3code": iso3,
        "date": year,
        "value": value,
        "unit": unit,
        "obs_status": "",
        "decimal": 0,
    }


class FakeApi:
    """Records calls and serves data pages and indicator metadata."""

    def __init__(self, pages: dict[str, list[list[dict]]], units: dict[str, str] | None = None):
        self.pages = pages
        self.units = units or {}
        self.calls: list[tuple[str, dict]] = []
        self.fail_units = False

    def get(self, url: str, params: dict | None = None, timeout: int | None = None):
        params = dict(params or {})
        self.calls.append((url, params))
        if "/country/" not in url:
            if self.fail_units:
                raise requests.ConnectionError("metadata down")
            ids = url.rsplit("/", 1)[-1].split(";")
            rows = [{"id": i, "unit": self.units.get(i, "")} for i in ids]
            return FakeResponse([{"page": 1, "pages": 1}, rows])
        indicator = url.rsplit("/", 1)[-1]
        pages = self.pages[indicator]
        page = params["page"]
        meta = {"page": page, "pages": len(pages), "per_page": "1000", "total": 0}
        return FakeResponse([meta, pages[page - 1]])


@pytest.fixture
def api(monkeypatch):
    fake = FakeApi(
        {
            "SP.POP.TOTL": [
                [entry("DEU", "SP.POP.TOTL", "2019", 83.0), entry("DEU", "SP.POP.TOTL", "2020", None)],
                [entry("USA", "SP.POP.TOTL", "2019", 328.0)],
            ],
            "NY.GDP.MKTP.CD": [[entry("DEU", "NY.GDP.MKTP.CD", "2019", 3.8e12, unit="US$")]],
        },
        units={"SP.POP.TOTL": "people"},
    )
    monkeypatch.setattr(wb.requests, "get", fake.get)
    return fake


def test_encode_codes():
    assert encode_codes([" DEU ", "USA"]) == "DEU;USA"
    assert encode_codes(["SP.POP.TOTL"]) == "SP.POP.TOTL"
    assert encode_codes(["a b/c"]) == "a%20b%2Fc"


def test_fetch_paginates_and_parses(api):
    adapter = WorldBankAdapter()
    observations = adapter.fetch_observations(
        ["DEU", "USA"], ["SP.POP.TOTL"], date=DateSpec(2019, 2020)
    )
    assert [(o.country_iso3, o.year, o.value) for o in observations] == [
        ("DEU", 2019, 83.0),
        ("DEU", 2020, None),
        ("USA", 2019, 328.0),
    ]
    data_calls = [c for c in api.calls if "/country/" in c[0]]
    assert [c[1]["page"] for c in data_calls] == [1, 2]
    url, params = data_calls[0]
    assert url == "https://api.worldbank.org/v2/country/DEU;USA/indicator/SP.POP.TOTL"
    assert params["format"] == "json"
    assert params["per_page"] == 1000
    assert params["date"] == "2019:2020"
    assert "source" not in params


def test_missing_units_are_enriched(api):
    observations = WorldBankAdapter().fetch_observations(["DEU"], ["SP.POP.TOTL"])
    assert {o.unit for o in observations} == {"people"}


def test_enrichment_failure_is_ignored(api):
    api.fail_units = True
    observations = WorldBankAdapter().fetch_observations(["DEU"], ["SP.POP.TOTL"])
    assert len(observations) == 3
    assert all(not o.unit for o in observations)


def test_multiple_indicators_without_source_are_fetched_separately(api):
    observations = WorldBankAdapter().fetch_observations(
        ["DEU"], ["SP.POP.TOTL", "NY.GDP.MKTP.CD"]
    )
    indicators = [c[0].rsplit("/", 1)[-1] for c in api.calls if "/country/" in c[0]]
    assert indicators == ["SP.POP.TOTL", "SP.POP.TOTL", "NY.GDP.MKTP.CD"]
    assert [o.indicator_id for o in observations][-1] == "NY.GDP.MKTP.CD"
    assert observations[-1].unit == "US$"


def test_source_is_forwarded(monkeypatch):
    seen = {}

    def fake_get(url, params=None, timeout=None):
        seen.update(params)
        seen["timeout"] = timeout
        return FakeResponse([{"page": 1, "pages": 1}, [entry("DEU", "A", "2019", 1.0, unit="u")]])

    monkeypatch.setattr(wb.requests, "get", fake_get)
    WorldBankAdapter(timeout=7).fetch_observations(["DEU"], ["A", "B"], source=2)
    assert seen["source"] == 2
    assert seen["timeout"] == 7


def test_api_error_message(monkeypatch):
    payload = [{"message": [{"id": "120", "key": "Invalid value", "value": "bad"}]}]
    monkeypatch.setattr(wb.requests, "get", lambda *a, **k: FakeResponse(payload))
    with pytest.raises(WorldBankApiError, match="world bank api error"):
        WorldBankAdapter().fetch_observations(["XXX"], ["SP.POP.TOTL"])


@pytest.mark.parametrize(
    ("response", "match"),
    [
        (FakeResponse(None, status_code=503, text="unavailable"), "HTTP 503"),
        (FakeResponse(ValueError("no json")), "not valid JSON"),
        (FakeResponse({"oops": 1}), "not a top-level array"),
        (FakeResponse([]), "empty array"),
    ],
)
def test_bad_responses(monkeypatch, response, match):
    monkeypatch.setattr(wb.requests, "get", lambda *a, **k: response)
    with pytest.raises(WorldBankApiError, match=match):
        WorldBankAdapter().fetch_observations(["DEU"], ["SP.POP.TOTL"])


def test_network_error_is_not_retried(monkeypatch):
    calls = []

    def boom(*args, **kwargs):
        calls.append(args)
        raise requests.Timeout("slow")

    monkeypatch.setattr(wb.requests, "get", boom)
    with pytest.raises(WorldBankApiError, match="network error"):
        WorldBankAdapter().fetch_observations(["DEU"], ["SP.POP.TOTL"])
    assert len(calls) == 1


def test_page_limit(monkeypatch):
    monkeypatch.setattr(wb, "MAX_PAGES", 2)
    monkeypatch.setattr(
        wb.requests,
        "get",
        lambda *a, **k: FakeResponse([{"page": 1, "pages": 50}, []]),
    )
    with pytest.raises(WorldBankApiError, match="page limit"):
        WorldBankAdapter().fetch_observations(["DEU"], ["SP.POP.TOTL"])


def test_requires_codes():
    with pytest.raises(ValueError):
        WorldBankAdapter().fetch_observations([], ["SP.POP.TOTL"])
    with pytest.raises(ValueError):
        WorldBankAdapter().fetch_observations(["DEU"], [])
