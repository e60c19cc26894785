"""Tests for CSV / JSON observation persistence."""

import json
import math

import pytest
from wbi_charts.core.enums import OutFormat
from wbi_charts.core.errors import StorageError
from wbi_charts.storage import files
from wbi_charts.storage.files import (
    FIELDS,
    csv_safe_cell,
    infer_format,
    load_observations,
    save_observations,
    strip_formula_guard,
)

from tests.factories import obs


def test_csv_header_order(tmp_path, population_observations):
    path = tmp_path / "pop.csv"
    save_observations(population_observations, path)
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == ",".join(FIELDS)
    assert len(lines) == 1 + len(population_observations)


def test_csv_round_trip(tmp_path, mixed_observations):
    path = tmp_path / "mixed.csv"
    save_observations(mixed_observations, path)
    assert load_observations(path) == mixed_observations


def test_json_round_trip(tmp_path, mixed_observations):
    path = tmp_path / "out" / "mixed.json"
    save_observations(mixed_observations, path)
    assert load_observations(path) == mixed_observations


def test_formula_cells_are_guarded(tmp_path):
    risky = obs("DEU", "POP", 2020, -5.0, country_name="=HYPERLINK(\"x\")", unit="+1")
    path = tmp_path / "risky.csv"
    save_observations([risky], path)
    body = path.read_text(encoding="utf-8")
    assert "'=HYPERLINK" in body
    assert "'+1" in body
    # numeric columns are written as numbers
    assert ",-5.0," in body
    assert load_observations(path) == [risky]


def test_guard_helpers():
    assert csv_safe_cell("@cmd") == "'@cmd"
    assert csv_safe_cell("Germany") == "Germany"
    assert strip_formula_guard("'-x") == "-x"
    assert strip_formula_guard("'quoted") == "'quoted"


def test_json_writes_null_for_non_finite(tmp_path):
    path = tmp_path / "nan.json"
    save_observations(
        [obs("DEU", "POP", 2019, math.nan), obs("DEU", "POP", 2020, math.inf)], path
    )
    records = json.loads(path.read_text(encoding="utf-8"))
    assert [r["value"] for r in records] == [None, None]
    assert list(records[0]) == list(FIELDS)


def test_explicit_format_overrides_extension(tmp_path, population_observations):
    path = tmp_path / "data.txt"
    save_observations(population_observations, path, OutFormat.JSON)
    assert isinstance(json.loads(path.read_text(encoding="utf-8")), list)


def test_infer_format():
    assert infer_format("a.CSV") is OutFormat.CSV
    assert infer_format("a.json") is OutFormat.JSON
    with pytest.raises(StorageError):
        infer_format("a.xlsx")


def test_failed_write_leaves_no_temp_file(tmp_path, monkeypatch, population_observations):
    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(files.os, "replace", broken_replace)
    with pytest.raises(OSError):
        save_observations(population_observations, tmp_path / "pop.csv")
    assert list(tmp_path.iterdir()) == []


def test_load_errors(tmp_path):
    with pytest.raises(StorageError):
        load_observations(tmp_path / "missing.csv")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(StorageError):
        load_observations(broken)

    not_a_list = tmp_path / "object.json"
    not_a_list.write_text('{"value": 1}', encoding="utf-8")
    with pytest.raises(StorageError):
        load_observations(not_a_list)

    bad_value = tmp_path / "bad.csv"
    bad_value.write_text(",".join(FIELDS) + "\nP,Pop,DE,Germany,DEU,2020,abc,,,\n", encoding="utf-8")
    with pytest.raises(StorageError):
        load_observations(bad_value)
