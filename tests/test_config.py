"""Tests for settings and chart presets."""

from pathlib import Path

from wbi_charts.core.config import DEFAULT_API_BASE_URL, get_settings
from wbi_charts.core.enums import LegendMode, PlotKind, StyleMode
from wbi_charts.core.presets import get_preset

PRESETS = Path(__file__).resolve().parents[1] / "configs" / "presets.yaml"


def test_defaults():
    settings = get_settings()
    assert settings.api_base_url == DEFAULT_API_BASE_URL
    assert settings.api_timeout == 30
    assert settings.locale == "en"
    assert settings.presets_path == Path("configs/presets.yaml")


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("WBI_API_BASE_URL", "http://localhost:8080/v2/")
    monkeypatch.setenv("API_TIMEOUT", "5")
    monkeypatch.setenv("WBI_LOCALE", "de")
    settings = get_settings()
    assert settings.api_base_url == "http://localhost:8080/v2"
    assert settings.api_timeout == 5
    assert settings.locale == "de"


def test_env_file_is_read_but_environment_wins(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text(
        "# local overrides\nWBI_LOCALE='fr'\nWBI_API_TIMEOUT=oops\nWBI_PRESETS_PATH=my.yaml\n",
        encoding="utf-8",
    )
    settings = get_settings()
    assert settings.locale == "fr"
    assert settings.api_timeout == 30
    assert settings.presets_path == Path("my.yaml")

    monkeypatch.setenv("WBI_LOCALE", "ja")
    assert get_settings().locale == "ja"


def test_bundled_presets():
    trend = get_preset("trend", PRESETS)
    assert trend.kind is PlotKind.LOESS
    assert trend.legend is LegendMode.TOP
    assert trend.loess_span == 0.4
    assert trend.style_mode is StyleMode.CONTINUOUS

    report = get_preset("report-de", PRESETS)
    assert report.locale == "de"
    assert report.kind is PlotKind.LINE_POINTS


def test_unknown_preset_or_missing_file(tmp_path):
    assert get_preset("nope", PRESETS) is None
    assert get_preset("trend", tmp_path / "absent.yaml") is None
