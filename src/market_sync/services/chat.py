"""Conversational requests to the generative model."""

import logging
from collections.abc import Iterable, Sequence

from market_sync.adapters.generative import GenerativeChatAdapter
from market_sync.config import DEFAULT_DISCLAIMER, DEFAULT_SYSTEM_INSTRUCTION
from market_sync.data.retry import RetryPolicy
from market_sync.models import ChatReply, ChatTurn, GroundingSource, Role

logger = logging.getLogger(__name__)

EMPTY_REPLY = "Sorry, no analysis could be generated this time."
SOURCES_HEADING = "**Sources:**"


def dedupe_sources(sources: Iterable[GroundingSource]) -> tuple[GroundingSource, ...]:
    """Drop repeated (title, uri) pairs, keeping first-seen order."""
    seen: set[tuple[str, str]] = set()
    unique: list[GroundingSource] = []
    for source in sources:
        key = (source.title, source.uri)
        if key in seen:
            continue
        seen.add(key)
        unique.append(source)
    return tuple(unique)


def format_sources(sources: Sequence[GroundingSource]) -> str:
    links = "; ".join(f"[{s.title}]({s.uri})" for s in sources)
    return f"---\n{SOURCES_HEADING}\n{links}"


def ensure_disclaimer(text: str, disclaimer: str) -> str:
    """Append the disclaimer unless the text already ends with it."""
    stripped = text.rstrip()
    if stripped.endswith(disclaimer):
        return stripped
    return f"{stripped}\n\n{disclaimer}" if stripped else disclaimer


class ChatService:
    """
    Stateless chat: the caller passes the full history on every call.

    Every reply ends with the configured disclaimer, added here rather than
    requested from the model.
    """

    def __init__(
        self,
        adapter: GenerativeChatAdapter,
        retry: RetryPolicy,
        *,
        system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION,
        disclaimer: str = DEFAULT_DISCLAIMER,
        grounding: bool = True,
    ):
        self._adapter = adapter
        self._retry = retry
        self._system_instruction = system_instruction
        self._disclaimer = disclaimer
        self._grounding = grounding

    async def chat(self, message: str, history: Sequence[ChatTurn] = ()) -> ChatReply:
        """
        Send one user message.

        Args:
            message: The new user message
            history: Prior turns, oldest first

        Returns:
            ChatReply with the visible text, the extended history and the
            de-duplicated grounding sources

        Raises:
            SyncError: Quota, configuration or connectivity failures with a
                user-readable message
        """
        turns = (*history, ChatTurn(role=Role.USER, content=message))

        result = await self._retry.run(
            "chat",
            lambda: self._adapter.generate(self._system_instruction, turns, self._grounding),
        )

        raw_text = result.text.strip() or EMPTY_REPLY
        sources = dedupe_sources(result.sources)

        visible = raw_text
        if sources:
            visible = f"{visible}\n\n{format_sources(sources)}"
        visible = ensure_disclaimer(visible, self._disclaimer)

        logger.debug(f"chat: {len(raw_text)} chars, {len(sources)} sources")
        return ChatReply(
            text=visible,
            history=(*turns, ChatTurn(role=Role.ASSISTANT, content=raw_text)),
            sources=sources,
        )
