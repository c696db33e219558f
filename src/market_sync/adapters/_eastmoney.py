"""Field helpers shared by the Eastmoney push2 adapters."""

from typing import Any

from market_sync.errors import ErrorKind, SourceError

# push2 returns prices and percentages as integers scaled by this factor
# unless fltt=2 is requested
PRICE_SCALE = 100


def scaled(row: dict[str, Any], field: str, source: str) -> float:
    """Read a scaled integer field and divide it back to a decimal value."""
    raw = row.get(field)
    # Suspended instruments report "-" instead of a number
    if raw is None or raw == "-":
        raise SourceError(f"{source}: field {field} missing", ErrorKind.FATAL, source=source)
    try:
        return int(raw) / PRICE_SCALE
    except (TypeError, ValueError):
        raise SourceError(
            f"{source}: field {field} not numeric ({raw!r})", ErrorKind.FATAL, source=source
        ) from None


def to_secid(symbol: str) -> str:
    """
    Map an A-share code to an Eastmoney secid.

    600000 -> 1.600000 (Shanghai), 000001 -> 0.000001 (Shenzhen). SH/SZ
    prefixes are honoured; values already in secid form pass through.
    """
    code = symbol.strip().upper()
    if "." in code:
        return code
    if code.startswith("SH"):
        return f"1.{code[2:]}"
    if code.startswith("SZ"):
        return f"0.{code[2:]}"
    return f"1.{code}" if code.startswith("6") else f"0.{code}"


def diff_rows(payload: Any, source: str) -> list[dict[str, Any]]:
    """Extract data.diff rows; push2 sends either a list or an index-keyed dict."""
    data = payload.get("data") if isinstance(payload, dict) else None
    if not data:
        raise SourceError(f"{source}: empty payload", ErrorKind.FATAL, source=source)
    diff = data.get("diff") or []
    if isinstance(diff, dict):
        diff = [diff[k] for k in sorted(diff, key=lambda k: int(k))]
    return list(diff)
