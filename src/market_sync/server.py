"""Dashboard data MCP server using FastMCP."""

import json
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from time import perf_counter
from typing import Any

from fastmcp import FastMCP

from market_sync import SCHEMA_VERSION, SERVER_VERSION
from market_sync.config import Settings
from market_sync.errors import SyncError
from market_sync.models import ChatTurn, Role, SocietyApplication, to_dict
from market_sync.services import Services, build_services
from market_sync.utils.provenance import build_error_response, build_meta

logger = logging.getLogger(__name__)


def _dumps(result: dict[str, Any]) -> str:
    return json.dumps(result, indent=2, default=str, ensure_ascii=False)


def _failure(tool: str, error: Exception) -> dict[str, Any]:
    if isinstance(error, SyncError):
        return build_error_response(error.kind.value, error.message, tool=tool)
    logger.error(f"{tool}: {type(error).__name__}: {error}")
    return build_error_response("fatal", str(error), tool=tool)


class DashboardTools:
    """
    Tool implementations over one Services container.

    Every tool returns a JSON document with a meta block. Failures come back
    as error envelopes; nothing is raised to the MCP client.
    """

    def __init__(self, services: Services):
        self._services = services

    # ========================================================================
    # READS (never fail; serve cached or seed data on upstream errors)
    # ========================================================================

    async def get_news(self) -> str:
        """
        Get the latest live-feed headlines, newest first.

        Returns:
            JSON with articles (category, sentiment, timestamp) and the
            dashboard's unread count
        """
        start = perf_counter()
        news = await self._services.aggregator.fetch_news()
        return _dumps({
            "meta": build_meta("get_news", (perf_counter() - start) * 1000),
            "article_count": len(news),
            "unread": self._services.scheduler.dashboard.unread,
            "articles": [
                {**to_dict(item), "display_time": item.display_time} for item in news
            ],
        })

    async def get_market_indices(self) -> str:
        """
        Get the market index board (value, percent and absolute change).

        Returns:
            JSON with one entry per tracked index
        """
        start = perf_counter()
        indices = await self._services.aggregator.fetch_market_indices()
        return _dumps({
            "meta": build_meta("get_market_indices", (perf_counter() - start) * 1000),
            "indices": to_dict(indices),
        })

    async def get_stock(self, symbol: str) -> str:
        """
        Get a stock quote with its intraday series.

        Args:
            symbol: A-share code, e.g. 600519 or SZ300059

        Returns:
            JSON snapshot; history_source tells whether the series is the
            real intraday trend or synthesized from the quote
        """
        start = perf_counter()
        snapshot = await self._services.aggregator.fetch_stock_data(symbol)
        if snapshot is None:
            return _dumps(build_error_response(
                "data_unavailable", f"No data available for {symbol}", tool="get_stock"
            ))
        return _dumps({
            "meta": build_meta("get_stock", (perf_counter() - start) * 1000),
            "stock": to_dict(snapshot),
        })

    async def get_sectors(self) -> str:
        """Get the best-performing industry boards with their leading stock."""
        start = perf_counter()
        sectors = await self._services.aggregator.fetch_sectors()
        return _dumps({
            "meta": build_meta("get_sectors", (perf_counter() - start) * 1000),
            "sectors": to_dict(sectors),
        })

    async def get_posts(self) -> str:
        """Get published community posts, newest first."""
        start = perf_counter()
        posts = await self._services.aggregator.fetch_posts()
        return _dumps({
            "meta": build_meta("get_posts", (perf_counter() - start) * 1000),
            "posts": to_dict(posts),
        })

    async def get_dashboard(self) -> str:
        """
        Get the state assembled by the background poller.

        Returns:
            JSON with scheduler state, connectivity, unread count and the
            latest news/indices/posts/sectors
        """
        state = self._services.scheduler.dashboard
        return _dumps({
            "meta": build_meta("get_dashboard"),
            "scheduler": self._services.scheduler.state.value,
            "online": state.online,
            "unread": state.unread,
            "cycle": state.cycle,
            "last_updated": state.last_updated,
            "news": to_dict(state.news),
            "indices": to_dict(state.indices),
            "posts": to_dict(state.posts),
            "sectors": to_dict(state.sectors),
        })

    async def mark_news_seen(self, latest_id: str | None = None) -> str:
        """
        Acknowledge the news feed and reset the unread counter.

        Args:
            latest_id: Newest item the user has seen (default: current head)
        """
        state = self._services.scheduler.mark_news_seen(latest_id)
        return _dumps({
            "meta": build_meta("mark_news_seen"),
            "unread": state.unread,
            "last_seen_id": state.last_seen_id,
        })

    async def report_connectivity(self, online: bool) -> str:
        """
        Report a host connectivity change. Polling pauses while offline.

        Args:
            online: Whether the host currently has network access
        """
        self._services.connectivity.set_online(online)
        return _dumps({
            "meta": build_meta("report_connectivity"),
            "online": self._services.connectivity.online,
            "scheduler": self._services.scheduler.state.value,
        })

    # ========================================================================
    # WRITES
    # ========================================================================

    async def submit_application(
        self,
        name: str,
        phone: str,
        invest_years: str = "",
        missing_abilities: str = "",
        learning_expectation: str = "",
    ) -> str:
        """
        Submit a membership application.

        Always returns success/message; storage outages do not block the
        applicant.
        """
        result = await self._services.aggregator.submit_application(
            SocietyApplication(
                name=name,
                phone=phone,
                invest_years=invest_years,
                missing_abilities=missing_abilities,
                learning_expectation=learning_expectation,
            )
        )
        return _dumps({"meta": build_meta("submit_application"), **to_dict(result)})

    async def create_post(
        self,
        title: str,
        content: str,
        author: str,
        tags: list[str] | None = None,
        is_featured: bool = False,
    ) -> str:
        """Admin: publish a post. Reports an error payload on any failure."""
        fields = {
            "title": title,
            "content": content,
            "author": author,
            "tags": tags or [],
            "is_featured": is_featured,
            "status": "published",
        }
        try:
            post = await self._services.aggregator.create_post(fields)
        except Exception as e:
            return _dumps(_failure("create_post", e))
        return _dumps({"meta": build_meta("create_post"), "post": to_dict(post)})

    async def delete_post(self, post_id: str) -> str:
        """Admin: delete a post by id. Reports an error payload on any failure."""
        try:
            await self._services.aggregator.delete_post(post_id)
        except Exception as e:
            return _dumps(_failure("delete_post", e))
        return _dumps({"meta": build_meta("delete_post"), "deleted": post_id})

    # ========================================================================
    # CHAT
    # ========================================================================

    async def chat(self, message: str, history: list[dict[str, str]] | None = None) -> str:
        """
        Ask the market assistant a question.

        Args:
            message: The user's question
            history: Prior turns as [{"role": "user"|"assistant", "content": "..."}]

        Returns:
            JSON with the reply text (sources and disclaimer appended), the
            updated history and the grounding sources
        """
        start = perf_counter()
        try:
            turns = tuple(
                ChatTurn(role=Role(turn["role"]), content=turn["content"]) for turn in history or []
            )
        except (KeyError, TypeError, ValueError) as e:
            return _dumps(
                build_error_response("invalid_history", f"Invalid history: {e}", tool="chat")
            )

        try:
            reply = await self._services.chat.chat(message, turns)
        except Exception as e:
            return _dumps(_failure("chat", e))
        return _dumps({
            "meta": build_meta("chat", (perf_counter() - start) * 1000),
            "text": reply.text,
            "history": to_dict(reply.history),
            "sources": to_dict(reply.sources),
        })


TOOL_NAMES = (
    "get_news",
    "get_market_indices",
    "get_stock",
    "get_sectors",
    "get_posts",
    "get_dashboard",
    "mark_news_seen",
    "report_connectivity",
    "submit_application",
    "create_post",
    "delete_post",
    "chat",
)


def create_server(services: Services) -> FastMCP:
    """Register DashboardTools on a FastMCP server that owns the poller lifecycle."""

    @asynccontextmanager
    async def lifespan(server: FastMCP) -> AsyncIterator[None]:
        await services.scheduler.start()
        try:
            yield
        finally:
            await services.aclose()

    mcp = FastMCP(name="market-sync", lifespan=lifespan)
    tools = DashboardTools(services)
    for name in TOOL_NAMES:
        mcp.tool(getattr(tools, name))
    return mcp


# ============================================================================
# ENTRY POINT
# ============================================================================


def main() -> None:
    """Run the MCP server."""
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=getattr(logging, log_level, logging.INFO))

    settings = Settings.from_env()
    services = build_services(settings)
    logger.info(f"Starting market-sync server v{SERVER_VERSION} (schema v{SCHEMA_VERSION})")
    create_server(services).run()


if __name__ == "__main__":
    main()
