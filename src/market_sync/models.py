"""Domain value types returned to the dashboard."""

from dataclasses import asdict, dataclass, field, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any

# Ids of fixed fallback items; never upstream ids
FALLBACK_ID_PREFIX = "seed-"


def is_fallback_id(item_id: str | None) -> bool:
    return item_id is not None and item_id.startswith(FALLBACK_ID_PREFIX)


class NewsCategory(str, Enum):
    A_SHARE = "A-share"
    HK_SHARE = "HK-share"
    ADR = "ADR"
    MACRO = "Macro"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class CacheEntry:
    """A cached payload and the time it was stored (epoch seconds)."""

    key: str
    payload: Any
    stored_at: float
    ttl: float

    def is_fresh(self, now: float) -> bool:
        return now - self.stored_at < self.ttl


@dataclass(frozen=True)
class MarketIndex:
    name: str
    value: float
    change_percent: float
    change_absolute: float
    code: str | None = None


@dataclass(frozen=True)
class NewsItem:
    """
    A single live-feed headline.

    Items arrive newest-first from the upstream and that order is kept;
    it is what the unread tracker counts against.
    """

    id: str
    title: str
    source: str
    url: str
    timestamp: datetime | None
    category: NewsCategory
    sentiment: Sentiment

    @property
    def is_fallback(self) -> bool:
        return is_fallback_id(self.id)

    @property
    def display_time(self) -> str:
        """Wall-clock HH:MM shown next to the headline."""
        if self.timestamp is None:
            return "--:--"
        return self.timestamp.strftime("%H:%M")


@dataclass(frozen=True)
class HistoryPoint:
    time: str
    value: float


@dataclass(frozen=True)
class StockSnapshot:
    """
    Point quote plus an intraday series for charting.

    history_source is "intraday" when the series comes from the upstream
    minute trend and "synthesized" when it was interpolated from the quote.
    """

    symbol: str
    name: str
    price: float
    change_percent: float
    change_absolute: float
    history: tuple[HistoryPoint, ...] = ()
    history_source: str = "intraday"


@dataclass(frozen=True)
class SectorData:
    name: str
    change_percent: float
    hot_stock: str
    icon: str = "📈"


@dataclass(frozen=True)
class Post:
    id: str
    author: str
    title: str
    content: str
    timestamp: str
    likes: int = 0
    comments: int = 0
    views: int = 0
    tags: tuple[str, ...] = ()
    is_featured: bool = False


@dataclass(frozen=True)
class SocietyApplication:
    name: str
    phone: str
    invest_years: str = ""
    missing_abilities: str = ""
    learning_expectation: str = ""


@dataclass(frozen=True)
class SubmissionResult:
    success: bool
    message: str


@dataclass(frozen=True)
class ChatTurn:
    role: Role
    content: str


@dataclass(frozen=True)
class GroundingSource:
    title: str
    uri: str


@dataclass(frozen=True)
class ChatReply:
    text: str
    history: tuple[ChatTurn, ...]
    sources: tuple[GroundingSource, ...] = ()


@dataclass(frozen=True)
class PollResult:
    """Everything fetched by one poll cycle, applied to state in one step."""

    news: list[NewsItem] = field(default_factory=list)
    indices: list[MarketIndex] = field(default_factory=list)
    posts: list[Post] = field(default_factory=list)
    sectors: list[SectorData] = field(default_factory=list)


def to_dict(value: Any) -> Any:
    """Convert dataclasses (or lists of them) into JSON-ready structures."""
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, (list, tuple)):
        return [to_dict(v) for v in value]
    return value
