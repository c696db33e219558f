"""Trading-session clock for the mainland A-share market."""

from datetime import datetime

import pytz

SHANGHAI_TZ = "Asia/Shanghai"


def get_market_state(tz: str = SHANGHAI_TZ) -> dict[str, str]:
    """
    Determine market state. Clock-based only (no holiday calendar).

    Sessions: call auction 09:15-09:30, morning 09:30-11:30, lunch break,
    afternoon 13:00-15:00, Monday to Friday.

    Returns:
        Dict with state, method, and checked_at timestamp
    """
    zone = pytz.timezone(tz)
    now = datetime.now(zone)

    if now.weekday() >= 5:
        state = "closed"
    else:
        time_minutes = now.hour * 60 + now.minute

        if time_minutes < 9 * 60 + 15:
            state = "closed"
        elif time_minutes < 9 * 60 + 30:
            state = "call_auction"
        elif time_minutes < 11 * 60 + 30:
            state = "morning_session"
        elif time_minutes < 13 * 60:
            state = "lunch_break"
        elif time_minutes < 15 * 60:
            state = "afternoon_session"
        else:
            state = "closed"

    return {
        "state": state,
        "method": "clock_only_no_holidays",
        "checked_at": now.isoformat(),
    }


def is_market_open(tz: str = SHANGHAI_TZ) -> bool:
    """True while quotes are moving (auction or continuous trading)."""
    return get_market_state(tz)["state"] in ("call_auction", "morning_session", "afternoon_session")
