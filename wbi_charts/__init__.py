"""Chart composition and legend layout for World Bank indicator data."""

from __future__ import annotations

__version__ = "0.1.0"
