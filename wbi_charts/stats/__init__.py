"""Summary statistics."""

from __future__ import annotations

from .summary import GroupKey, Summary, grouped_summary

__all__ = ["GroupKey", "Summary", "grouped_summary"]
