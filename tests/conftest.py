"""Pytest configuration and fixtures."""

import json
from typing import Any
from unittest.mock import MagicMock

import pytest
import requests

from market_sync.data.cache import TTLCache
from market_sync.data.retry import RetryPolicy
from market_sync.data.transport import HttpTransport
from market_sync.models import NewsCategory, NewsItem, Sentiment


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def make_response(status_code: int = 200, payload: Any = None, text: str | None = None) -> MagicMock:
    """Build a stand-in for requests.Response."""
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    if text is None:
        text = json.dumps(payload, ensure_ascii=False) if payload is not None else ""
    response.text = text
    response.content = text.encode("utf-8")
    if payload is not None:
        response.json.return_value = payload
    else:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    return response


def make_news(*ids: str) -> list[NewsItem]:
    """Newest-first news items with the given ids."""
    return [
        NewsItem(
            id=item_id,
            title=f"headline {item_id}",
            source="test",
            url="#",
            timestamp=None,
            category=NewsCategory.MACRO,
            sentiment=Sentiment.NEUTRAL,
        )
        for item_id in ids
    ]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(tmp_path, clock: FakeClock) -> TTLCache:
    store = TTLCache(cache_dir=str(tmp_path / "cache"), default_ttl=300, clock=clock)
    yield store
    store.close()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def retry(recording_sleep: RecordingSleep) -> RetryPolicy:
    return RetryPolicy(max_attempts=3, base_delay=1.0, sleep=recording_sleep)


@pytest.fixture
def session() -> MagicMock:
    return MagicMock(spec=requests.Session)


@pytest.fixture
def transport(session: MagicMock) -> HttpTransport:
    t = HttpTransport(session=session, max_workers=2, timeout=1.0)
    yield t
    t.close()


@pytest.fixture
def response_factory():
    return make_response


@pytest.fixture
def news_factory():
    return make_news
