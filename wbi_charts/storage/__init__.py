"""Observation persistence (CSV and JSON files)."""

from __future__ import annotations

from .files import load_observations, save_csv, save_json, save_observations

__all__ = ["load_observations", "save_csv", "save_json", "save_observations"]
