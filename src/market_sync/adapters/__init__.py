"""Source adapters: one class per upstream service."""

from market_sync.adapters.content_store import ContentStoreAdapter
from market_sync.adapters.generative import GenerationResult, GenerativeChatAdapter
from market_sync.adapters.news import NewsAdapter
from market_sync.adapters.quotes import INDEX_INSTRUMENTS, QuotesAdapter
from market_sync.adapters.sectors import SectorsAdapter
from market_sync.adapters.stock_detail import StockDetailAdapter, StockQuote

__all__ = [
    "INDEX_INSTRUMENTS",
    "ContentStoreAdapter",
    "GenerationResult",
    "GenerativeChatAdapter",
    "NewsAdapter",
    "QuotesAdapter",
    "SectorsAdapter",
    "StockDetailAdapter",
    "StockQuote",
]
