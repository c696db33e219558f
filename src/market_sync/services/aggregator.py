"""Public read/write operations behind the dashboard."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from market_sync.adapters import (
    ContentStoreAdapter,
    NewsAdapter,
    QuotesAdapter,
    SectorsAdapter,
    StockDetailAdapter,
    StockQuote,
)
from market_sync.data.cache import TTLCache
from market_sync.data.retry import RetryPolicy
from market_sync.errors import RecordRejectedError, SourceError
from market_sync.models import (
    HistoryPoint,
    MarketIndex,
    NewsItem,
    PollResult,
    Post,
    SectorData,
    SocietyApplication,
    StockSnapshot,
    SubmissionResult,
)
from market_sync.services import seeds

logger = logging.getLogger(__name__)

T = TypeVar("T")

NEWS_KEY = "news"
INDICES_KEY = "market_indices"
SECTORS_KEY = "sectors"
POSTS_KEY = "posts"

SUBMITTED_MESSAGE = "Application received. A mentor will reach out within 24 hours."
SOFT_WARNING_MESSAGE = (
    "Application received. Our records service is busy right now, "
    "so confirmation may take a little longer than usual."
)
REJECTED_MESSAGE = "Application rejected: please check the submitted details and try again."

# The store answered without applying the insert; anything else (timeouts,
# dropped connections, gateway errors) may have committed it
WRITE_RESEND_STATUS = frozenset({429, 503})


def safe_to_resend(error: Exception) -> bool:
    return isinstance(error, SourceError) and error.status_code in WRITE_RESEND_STATUS


def stock_key(symbol: str) -> str:
    return f"stock:{symbol.strip().upper()}"


def synthesize_history(quote: StockQuote) -> tuple[HistoryPoint, ...]:
    """Two-point series from previous close to the last price."""
    previous_close = round(quote.price - quote.change_absolute, 2)
    return (
        HistoryPoint(time="prev_close", value=previous_close),
        HistoryPoint(time="latest", value=quote.price),
    )


class DataAggregator:
    """
    Cache-checked, retry-wrapped access to every upstream.

    Reads never raise: on failure they serve the last cached value (even
    past its TTL) or a fixed seed set. Admin writes raise; application
    submission always resolves to a SubmissionResult.
    """

    def __init__(
        self,
        cache: TTLCache,
        retry: RetryPolicy,
        *,
        quotes: QuotesAdapter,
        news: NewsAdapter,
        stock: StockDetailAdapter,
        sectors: SectorsAdapter,
        content: ContentStoreAdapter,
    ):
        self._cache = cache
        self._retry = retry
        self._quotes = quotes
        self._news = news
        self._stock = stock
        self._sectors = sectors
        self._content = content

    async def _read(
        self,
        key: str,
        operation_name: str,
        load: Callable[[], Awaitable[T]],
        fallback: Callable[[], T],
    ) -> T:
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        try:
            result = await load()
        except Exception as e:
            stale = self._cache.get_stale(key)
            if stale is not None:
                logger.warning(f"{operation_name}: serving stale cache ({e})")
                return stale
            logger.warning(f"{operation_name}: serving fallback data ({e})")
            return fallback()

        self._cache.set(key, result)
        return result

    async def fetch_news(self) -> list[NewsItem]:
        """Latest headlines, newest first, in upstream order."""
        return await self._read(
            NEWS_KEY,
            "fetch_news",
            lambda: self._retry.run("fetch_news", self._news.fetch_latest),
            lambda: list(seeds.SEED_NEWS),
        )

    async def fetch_market_indices(self) -> list[MarketIndex]:
        """The index board; replaced as a whole or not at all."""
        return await self._read(
            INDICES_KEY,
            "fetch_market_indices",
            lambda: self._retry.run("fetch_market_indices", self._quotes.fetch_indices),
            lambda: list(seeds.SEED_INDICES),
        )

    async def fetch_sectors(self, limit: int = 4) -> list[SectorData]:
        return await self._read(
            f"{SECTORS_KEY}:{limit}",
            f"fetch_sectors({limit})",
            lambda: self._retry.run("fetch_sectors", lambda: self._sectors.fetch_sectors(limit)),
            lambda: list(seeds.SEED_SECTORS[:limit]),
        )

    async def fetch_posts(self) -> list[Post]:
        """Published community posts; seed posts when the store is unavailable."""
        return await self._read(
            POSTS_KEY,
            "fetch_posts",
            lambda: self._retry.run("fetch_posts", self._content.select_posts),
            lambda: list(seeds.SEED_POSTS),
        )

    async def fetch_stock_data(self, symbol: str) -> StockSnapshot | None:
        """
        Quote plus intraday series for one symbol.

        A failed trend call does not fail the snapshot; the history is then
        synthesized from the quote and flagged as such.

        Returns:
            StockSnapshot, or None for an unknown symbol with no cached or
            seed data
        """
        normalized = symbol.strip().upper()

        async def _load() -> StockSnapshot:
            quote = await self._retry.run(
                f"fetch_quote({normalized})", lambda: self._stock.fetch_quote(normalized)
            )
            try:
                history = await self._retry.run(
                    f"fetch_trend({normalized})", lambda: self._stock.fetch_trend(normalized)
                )
                history_source = "intraday"
            except Exception as e:
                logger.info(f"fetch_trend({normalized}): synthesizing history ({e})")
                history = synthesize_history(quote)
                history_source = "synthesized"
            return StockSnapshot(
                symbol=normalized,
                name=quote.name,
                price=quote.price,
                change_percent=quote.change_percent,
                change_absolute=quote.change_absolute,
                history=history,
                history_source=history_source,
            )

        return await self._read(
            stock_key(normalized),
            f"fetch_stock_data({normalized})",
            _load,
            lambda: seeds.seed_stock(normalized),
        )

    async def poll(self) -> PollResult:
        """
        One dashboard refresh: all reads run concurrently.

        The result is only returned once every read has settled so callers
        can apply it to UI state in a single step.
        """
        news, indices, posts, sectors = await asyncio.gather(
            self.fetch_news(),
            self.fetch_market_indices(),
            self.fetch_posts(),
            self.fetch_sectors(),
        )
        return PollResult(news=news, indices=indices, posts=posts, sectors=sectors)

    async def submit_application(self, app: SocietyApplication) -> SubmissionResult:
        """
        Persist a public application.

        Only an explicit rejection (missing required fields, or the store
        refusing the record) yields success=False. Store outages still report
        success with a softer message so the public flow is never blocked.
        """
        missing = [name for name in ("name", "phone") if not getattr(app, name).strip()]
        if missing:
            return SubmissionResult(success=False, message=REJECTED_MESSAGE)

        try:
            await self._retry.run(
                "submit_application",
                lambda: self._content.insert_application(app),
                retry_if=safe_to_resend,
            )
        except RecordRejectedError as e:
            logger.warning(f"submit_application: rejected by store ({e})")
            return SubmissionResult(success=False, message=REJECTED_MESSAGE)
        except Exception as e:
            logger.error(f"submit_application: store unavailable, not persisted ({e})")
            return SubmissionResult(success=True, message=SOFT_WARNING_MESSAGE)

        return SubmissionResult(success=True, message=SUBMITTED_MESSAGE)

    async def create_post(self, fields: dict[str, Any]) -> Post:
        """Admin-only. Raises on any failure; resent only when the store refused it."""
        return await self._retry.run(
            "create_post", lambda: self._content.insert_post(fields), retry_if=safe_to_resend
        )

    async def delete_post(self, post_id: str) -> None:
        """Admin-only. Raises on any failure."""
        await self._retry.run(f"delete_post({post_id})", lambda: self._content.delete_post(post_id))
