"""Unread counts over a newest-first news list."""

from collections.abc import Sequence

from market_sync.models import NewsItem, is_fallback_id


def compute_unread(items: Sequence[NewsItem], last_seen_id: str | None) -> int:
    """
    Number of items newer than the last acknowledged one.

    Returns 0 when the marker is the head, len(items) when the marker is not
    in the list (more than a page of updates happened).
    """
    for index, item in enumerate(items):
        if item.id == last_seen_id:
            return index
    return len(items)


class UnreadTracker:
    """
    Holds the last-acknowledged marker and the current count.

    Fallback (seed) items never become the marker and are never counted:
    a page served from seeds leaves the tracker untouched.
    """

    def __init__(self, last_seen_id: str | None = None, unread: int = 0):
        self.last_seen_id = None if is_fallback_id(last_seen_id) else last_seen_id
        self.unread = unread
        self._head_id: str | None = None

    def update(self, items: Sequence[NewsItem]) -> int:
        """Recompute against the latest fetched list."""
        live = [item for item in items if not item.is_fallback]
        if not live:
            return self.unread

        self._head_id = live[0].id
        if self.last_seen_id is None:
            # Nothing acknowledged yet: the first live page is the baseline
            self.last_seen_id = self._head_id
            self.unread = 0
        else:
            self.unread = compute_unread(live, self.last_seen_id)
        return self.unread

    def mark_seen(self, latest_id: str | None = None) -> None:
        """Acknowledge everything up to latest_id (default: the current head)."""
        marker = latest_id if latest_id is not None else self._head_id
        if marker is not None and not is_fallback_id(marker):
            self.last_seen_id = marker
        self.unread = 0
