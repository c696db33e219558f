"""Metadata and error envelopes attached to every tool response."""

from typing import Any

from market_sync import SCHEMA_VERSION, SERVER_VERSION
from market_sync.utils.market_clock import get_market_state


def build_meta(tool: str, duration_ms: float | None = None) -> dict[str, Any]:
    """
    Build the meta block for a tool response.

    Besides version info it records the A-share session state at response
    time, so consumers can tell a flat quote at lunch from a stalled feed.

    Args:
        tool: Tool producing this response
        duration_ms: Wall time spent in the tool, if measured
    """
    market = get_market_state()
    meta: dict[str, Any] = {
        "server_version": SERVER_VERSION,
        "schema_version": SCHEMA_VERSION,
        "tool": tool,
        "market_state": market["state"],
        "generated_at": market["checked_at"],
    }
    if duration_ms is not None:
        meta["duration_ms"] = round(duration_ms, 1)
    return meta


def build_error_response(error_type: str, message: str, tool: str = "error") -> dict[str, Any]:
    """Error envelope; error_type is an ErrorKind value or "data_unavailable"."""
    return {
        "error": True,
        "error_type": error_type,
        "message": message,
        "meta": build_meta(tool),
    }
