"""Data source adapters producing observation lists."""

from __future__ import annotations

from .base import BaseAdapter
from .worldbank import WorldBankAdapter

__all__ = ["BaseAdapter", "WorldBankAdapter"]
