"""Explicit wiring of one cache, transport, aggregator, chat service and scheduler."""

import asyncio
import logging
from dataclasses import dataclass

import requests

from market_sync.adapters import (
    ContentStoreAdapter,
    GenerativeChatAdapter,
    NewsAdapter,
    QuotesAdapter,
    SectorsAdapter,
    StockDetailAdapter,
)
from market_sync.config import Settings
from market_sync.data.cache import TTLCache
from market_sync.data.retry import RetryPolicy
from market_sync.data.transport import HttpTransport
from market_sync.services.aggregator import DataAggregator
from market_sync.services.chat import ChatService
from market_sync.services.connectivity import ConnectivityMonitor
from market_sync.services.scheduler import PollingScheduler

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Application-lifetime collaborators, built once and passed down."""

    settings: Settings
    cache: TTLCache
    transport: HttpTransport
    connectivity: ConnectivityMonitor
    retry: RetryPolicy
    aggregator: DataAggregator
    chat: ChatService
    scheduler: PollingScheduler

    async def aclose(self, timeout: float = 5.0) -> None:
        """
        Stop polling, release the thread pool and close the cache.

        A cycle still in flight writes to the cache, so it is given up to
        timeout seconds to settle before the cache is closed.
        """
        await self.scheduler.stop()
        try:
            await asyncio.wait_for(self.scheduler.wait_idle(), timeout)
        except asyncio.TimeoutError:
            logger.warning(f"shutdown: poll cycle still running after {timeout:.1f}s, closing anyway")
        self.transport.close()
        self.cache.close()


def build_services(settings: Settings, session: requests.Session | None = None) -> Services:
    transport = HttpTransport(
        session=session,
        max_workers=settings.http_max_workers,
        timeout=settings.http_timeout,
    )

    connectivity = ConnectivityMonitor()
    if settings.connectivity_probe_url:
        probe_url = settings.connectivity_probe_url

        async def _probe() -> bool:
            return await transport.probe(probe_url)

        connectivity = ConnectivityMonitor(probe=_probe)
    retry = RetryPolicy(
        max_attempts=settings.retry_max_attempts,
        base_delay=settings.retry_base_delay,
        multiplier=settings.retry_multiplier,
        max_delay=settings.retry_max_delay,
        is_online=connectivity.is_online,
    )
    cache = TTLCache(cache_dir=settings.cache_dir, default_ttl=settings.cache_ttl)

    aggregator = DataAggregator(
        cache,
        retry,
        quotes=QuotesAdapter(transport, settings.quote_base_url),
        news=NewsAdapter(
            transport,
            settings.news_feed_url,
            zhibo_id=settings.news_zhibo_id,
            page_size=settings.news_page_size,
        ),
        stock=StockDetailAdapter(transport, settings.quote_base_url, settings.history_base_url),
        sectors=SectorsAdapter(transport, settings.quote_base_url),
        content=ContentStoreAdapter(transport, settings.supabase_url, settings.supabase_key),
    )
    chat = ChatService(
        GenerativeChatAdapter(
            transport,
            settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
        ),
        retry,
        system_instruction=settings.system_instruction,
        disclaimer=settings.disclaimer,
        grounding=settings.chat_grounding,
    )
    scheduler = PollingScheduler(
        aggregator,
        connectivity,
        interval=settings.poll_interval,
        closed_interval=settings.poll_closed_interval,
    )

    if not settings.supabase_url:
        logger.warning("SUPABASE_URL not set: posts use seed data, applications are not persisted")
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY not set: chat requests will report a configuration error")

    return Services(
        settings=settings,
        cache=cache,
        transport=transport,
        connectivity=connectivity,
        retry=retry,
        aggregator=aggregator,
        chat=chat,
        scheduler=scheduler,
    )
