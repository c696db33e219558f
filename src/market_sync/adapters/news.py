"""Sina 7x24 live news feed."""

from datetime import datetime
from typing import Any

import pytz

from market_sync.data.transport import HttpTransport
from market_sync.errors import ErrorKind, SourceError
from market_sync.models import NewsCategory, NewsItem, Sentiment
from market_sync.utils.market_clock import SHANGHAI_TZ
from market_sync.utils.sanitize import sanitize_text

SOURCE = "sina.news"
SOURCE_LABEL = "新浪财经"

POSITIVE_KEYWORDS = {
    "利好", "大涨", "上涨", "涨停", "增长", "突破", "新高", "净流入",
    "回升", "超预期", "增持", "降准", "降息", "扭亏",
}
NEGATIVE_KEYWORDS = {
    "利空", "大跌", "下跌", "跌停", "暴跌", "亏损", "净流出", "下滑",
    "新低", "减持", "违约", "处罚", "立案", "不及预期",
}

# Checked in order; the first category with a matching keyword wins
CATEGORY_KEYWORDS: tuple[tuple[NewsCategory, tuple[str, ...]], ...] = (
    (NewsCategory.ADR, ("中概", "美股上市", "纳斯达克中国", "ADR")),
    (NewsCategory.HK_SHARE, ("港股", "恒生", "恒指", "港交所", "南向")),
    (NewsCategory.A_SHARE, ("A股", "沪指", "深成指", "创业板", "科创板", "两市", "北向", "沪深")),
)


def classify_category(text: str) -> NewsCategory:
    """Keyword heuristic; upstream does not categorize items."""
    for category, keywords in CATEGORY_KEYWORDS:
        if any(k in text for k in keywords):
            return category
    return NewsCategory.MACRO


def score_sentiment(text: str) -> Sentiment:
    """Simple keyword-based sentiment scoring."""
    pos = sum(1 for w in POSITIVE_KEYWORDS if w in text)
    neg = sum(1 for w in NEGATIVE_KEYWORDS if w in text)

    if pos > neg:
        return Sentiment.POSITIVE
    elif neg > pos:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


def parse_feed_time(value: str | None) -> datetime | None:
    """Localize an upstream "YYYY-MM-DD HH:MM:SS" Shanghai wall-clock time."""
    if not value:
        return None
    try:
        naive = datetime.strptime(value.strip(), "%Y-%m-%d %H:%M:%S")
    except ValueError:
        return None
    return pytz.timezone(SHANGHAI_TZ).localize(naive)


def _normalize(item: dict[str, Any]) -> NewsItem | None:
    item_id = item.get("id")
    if item_id is None:
        return None
    raw_text = item.get("content") or item.get("rich_text") or item.get("title") or ""
    title = sanitize_text(raw_text, max_length=300) or ""
    if not title:
        return None
    return NewsItem(
        id=str(item_id),
        title=title,
        source=SOURCE_LABEL,
        url=item.get("doc_url") or item.get("docurl") or "#",
        timestamp=parse_feed_time(item.get("createtime") or item.get("create_time")),
        category=classify_category(title),
        sentiment=score_sentiment(title),
    )


class NewsAdapter:
    """Latest page of the live feed, newest first."""

    def __init__(
        self,
        transport: HttpTransport,
        feed_url: str = "https://zhibo.sina.com.cn/api/zhibo/feed",
        zhibo_id: int = 152,
        page_size: int = 20,
    ):
        self._transport = transport
        self._url = feed_url
        self._zhibo_id = zhibo_id
        self._page_size = page_size

    async def fetch_latest(self) -> list[NewsItem]:
        """
        Fetch the first page of the feed.

        Upstream order is preserved; items without an id or text are skipped.

        Raises:
            SourceError: On transport failure or an unexpected payload shape
        """
        payload = await self._transport.request_json(
            SOURCE,
            "GET",
            self._url,
            params={"page": 1, "page_size": self._page_size, "zhibo_id": self._zhibo_id},
        )
        try:
            rows = payload["result"]["data"]["feed"]["list"]
        except (KeyError, TypeError):
            raise SourceError(f"{SOURCE}: unexpected payload shape", ErrorKind.FATAL, source=SOURCE) from None
        if not isinstance(rows, list):
            raise SourceError(f"{SOURCE}: feed list is not a list", ErrorKind.FATAL, source=SOURCE)

        items: list[NewsItem] = []
        for row in rows[: self._page_size]:
            if not isinstance(row, dict):
                continue
            item = _normalize(row)
            if item is not None:
                items.append(item)
        return items
