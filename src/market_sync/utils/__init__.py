"""Utility modules."""

from market_sync.utils.market_clock import get_market_state
from market_sync.utils.provenance import build_error_response, build_meta
from market_sync.utils.sanitize import sanitize_text

__all__ = [
    "build_error_response",
    "build_meta",
    "get_market_state",
    "sanitize_text",
]
