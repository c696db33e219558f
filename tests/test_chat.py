"""Tests for the chat service."""

import asyncio

import pytest

from market_sync.adapters.generative import GenerationResult
from market_sync.data.retry import CONFIG_MESSAGE, QUOTA_MESSAGE
from market_sync.errors import ErrorKind, SourceError, SyncError
from market_sync.models import ChatTurn, GroundingSource, Role
from market_sync.services.chat import (
    EMPTY_REPLY,
    ChatService,
    dedupe_sources,
    ensure_disclaimer,
    format_sources,
)

DISCLAIMER = "Not investment advice."


class FakeGenerator:
    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls: list[tuple] = []

    async def generate(self, system_instruction, turns, grounding=True):
        self.calls.append((system_instruction, tuple(turns), grounding))
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def make_service(generator, retry) -> ChatService:
    return ChatService(generator, retry, system_instruction="sys", disclaimer=DISCLAIMER)


class TestHelpers:
    def test_dedupe_keeps_first_seen_order(self) -> None:
        a = GroundingSource("A", "https://a")
        b = GroundingSource("B", "https://b")
        assert dedupe_sources([a, b, a, GroundingSource("A", "https://a")]) == (a, b)

    def test_format_sources(self) -> None:
        text = format_sources([GroundingSource("A", "https://a"), GroundingSource("B", "https://b")])
        assert text == "---\n**Sources:**\n[A](https://a); [B](https://b)"

    def test_disclaimer_not_duplicated(self) -> None:
        once = ensure_disclaimer("Answer.", DISCLAIMER)
        assert once == f"Answer.\n\n{DISCLAIMER}"
        assert ensure_disclaimer(once, DISCLAIMER) == once

    def test_disclaimer_on_empty_text(self) -> None:
        assert ensure_disclaimer("  ", DISCLAIMER) == DISCLAIMER


class TestChatService:
    """Tests for ChatService.chat."""

    def test_reply_with_sources_and_disclaimer(self, retry) -> None:
        sources = (GroundingSource("A", "https://a"), GroundingSource("A", "https://a"))
        generator = FakeGenerator(GenerationResult(text="Index is up.", sources=sources))

        reply = asyncio.run(make_service(generator, retry).chat("How is the market?"))

        assert reply.text.startswith("Index is up.\n\n---\n**Sources:**\n[A](https://a)")
        assert reply.text.endswith(DISCLAIMER)
        assert reply.text.count("[A](https://a)") == 1
        assert reply.sources == (GroundingSource("A", "https://a"),)

    def test_history_is_extended(self, retry) -> None:
        generator = FakeGenerator(GenerationResult(text="Second answer"))
        history = (ChatTurn(Role.USER, "q1"), ChatTurn(Role.ASSISTANT, "a1"))

        reply = asyncio.run(make_service(generator, retry).chat("q2", history))

        sent_turns = generator.calls[0][1]
        assert [t.content for t in sent_turns] == ["q1", "a1", "q2"]
        assert [t.content for t in reply.history] == ["q1", "a1", "q2", "Second answer"]
        assert reply.history[-1].role is Role.ASSISTANT

    def test_empty_model_text(self, retry) -> None:
        generator = FakeGenerator(GenerationResult(text="   "))
        reply = asyncio.run(make_service(generator, retry).chat("hi"))
        assert reply.text == f"{EMPTY_REPLY}\n\n{DISCLAIMER}"

    def test_rate_limit_retried_then_recovers(self, retry, recording_sleep) -> None:
        generator = FakeGenerator(
            SourceError("429", ErrorKind.RATE_LIMITED),
            GenerationResult(text="ok"),
        )
        reply = asyncio.run(make_service(generator, retry).chat("hi"))
        assert reply.text.startswith("ok")
        assert len(generator.calls) == 2
        assert recording_sleep.delays == [1.0]

    def test_quota_exhausted(self, retry) -> None:
        generator = FakeGenerator(SourceError("quota", ErrorKind.QUOTA_EXHAUSTED))
        with pytest.raises(SyncError) as exc_info:
            asyncio.run(make_service(generator, retry).chat("hi"))
        assert exc_info.value.message == QUOTA_MESSAGE
        assert len(generator.calls) == 3

    def test_missing_key(self, retry) -> None:
        generator = FakeGenerator(SourceError("no key", ErrorKind.AUTH_MISSING))
        with pytest.raises(SyncError) as exc_info:
            asyncio.run(make_service(generator, retry).chat("hi"))
        assert exc_info.value.message == CONFIG_MESSAGE
        assert len(generator.calls) == 1
