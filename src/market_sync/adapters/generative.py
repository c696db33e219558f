"""Gemini generateContent with Google Search grounding."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from market_sync.data.transport import HttpTransport
from market_sync.errors import ErrorKind, SourceError
from market_sync.models import ChatTurn, GroundingSource, Role

SOURCE = "gemini"

# Gemini names the assistant role "model"
_ROLE_MAP = {Role.USER: "user", Role.ASSISTANT: "model"}


@dataclass(frozen=True)
class GenerationResult:
    text: str
    sources: tuple[GroundingSource, ...] = ()


def build_request(
    system_instruction: str,
    turns: Sequence[ChatTurn],
    grounding: bool,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "systemInstruction": {"parts": [{"text": system_instruction}]},
        "contents": [
            {"role": _ROLE_MAP[Role(turn.role)], "parts": [{"text": turn.content}]}
            for turn in turns
        ],
    }
    if grounding:
        body["tools"] = [{"google_search": {}}]
    return body


def parse_response(payload: Any) -> GenerationResult:
    """Join the first candidate's text parts and collect its web citations."""
    candidates = payload.get("candidates") if isinstance(payload, dict) else None
    if not candidates:
        return GenerationResult(text="")

    candidate = candidates[0] or {}
    parts = (candidate.get("content") or {}).get("parts") or []
    text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))

    chunks = (candidate.get("groundingMetadata") or {}).get("groundingChunks") or []
    sources = tuple(
        GroundingSource(title=web.get("title") or web["uri"], uri=web["uri"])
        for web in (chunk.get("web") for chunk in chunks if isinstance(chunk, dict))
        if web and web.get("uri")
    )
    return GenerationResult(text=text, sources=sources)


class GenerativeChatAdapter:
    """One generateContent call per invocation."""

    def __init__(
        self,
        transport: HttpTransport,
        api_key: str,
        model: str = "gemini-2.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
    ):
        self._transport = transport
        self._api_key = api_key
        self._url = f"{base_url.rstrip('/')}/models/{model}:generateContent"

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def generate(
        self,
        system_instruction: str,
        turns: Sequence[ChatTurn],
        grounding: bool = True,
    ) -> GenerationResult:
        """
        Generate a reply for the given conversation.

        Raises:
            SourceError: AUTH_MISSING without an API key (no network call),
                otherwise the transport's classified failure
        """
        if not self._api_key:
            raise SourceError(
                f"{SOURCE}: API key is not configured", ErrorKind.AUTH_MISSING, source=SOURCE
            )
        payload = await self._transport.request_json(
            SOURCE,
            "POST",
            self._url,
            headers={"x-goog-api-key": self._api_key, "Content-Type": "application/json"},
            json_body=build_request(system_instruction, turns, grounding),
        )
        return parse_response(payload)
