"""World Bank Indicators API v2 adapter."""

from __future__ import annotations

from .adapter import WorldBankAdapter

__all__ = ["WorldBankAdapter"]
