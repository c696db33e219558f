"""UI-visible dashboard state and the reducer that advances it."""

from dataclasses import dataclass, replace
from datetime import datetime, timezone

from market_sync.models import MarketIndex, NewsItem, PollResult, Post, SectorData
from market_sync.services.unread import UnreadTracker


@dataclass(frozen=True)
class DashboardState:
    news: tuple[NewsItem, ...] = ()
    indices: tuple[MarketIndex, ...] = ()
    posts: tuple[Post, ...] = ()
    sectors: tuple[SectorData, ...] = ()
    unread: int = 0
    last_seen_id: str | None = None
    online: bool = True
    last_updated: datetime | None = None
    cycle: int = 0


def apply_poll_result(
    state: DashboardState,
    result: PollResult,
    *,
    now: datetime | None = None,
) -> DashboardState:
    """
    Merge one poll cycle into the state.

    Every collection is replaced wholesale; the unread count is recomputed
    against the state's last-seen marker. A news page made only of fallback
    items keeps the previous marker and count.
    """
    tracker = UnreadTracker(state.last_seen_id, state.unread)
    unread = tracker.update(result.news)
    return replace(
        state,
        news=tuple(result.news),
        indices=tuple(result.indices),
        posts=tuple(result.posts),
        sectors=tuple(result.sectors),
        unread=unread,
        last_seen_id=tracker.last_seen_id,
        last_updated=now or datetime.now(timezone.utc),
        cycle=state.cycle + 1,
    )


def mark_news_seen(state: DashboardState, latest_id: str | None = None) -> DashboardState:
    """Acknowledge the feed up to latest_id (default: the current head)."""
    tracker = UnreadTracker(state.last_seen_id)
    tracker.update(state.news)
    tracker.mark_seen(latest_id)
    return replace(state, unread=0, last_seen_id=tracker.last_seen_id)


def set_online(state: DashboardState, online: bool) -> DashboardState:
    return state if state.online == online else replace(state, online=online)
