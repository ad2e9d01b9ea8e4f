from __future__ import annotations

from typing import Any, Sequence

import pytest

from learning_assistant.core.credentials import ApiCredentials
from learning_assistant.tools.definitions import CompletionResponse, ProviderMessage, ToolSpec


class DummyEndpoint:
    """Replays scripted responses and records what each round sent."""

    name = "dummy"

    def __init__(self, responses: list[Any]) -> None:
        self._responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    def send(
        self,
        system_prompt: str,
        transcript: Sequence[ProviderMessage],
        tools: Sequence[ToolSpec],
        tool_choice: str = "auto",
    ) -> CompletionResponse:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "transcript": list(transcript),
                "tools": list(tools),
                "tool_choice": tool_choice,
            }
        )
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class DummyLookup:
    def __init__(self, items: list[dict[str, Any]] | None = None, error: Exception | None = None):
        self._items = items or []
        self._error = error
        self.queries: list[tuple[str, int]] = []

    def search(self, query: str, max_results: int = 10) -> list[dict[str, Any]]:
        self.queries.append((query, max_results))
        if self._error is not None:
            raise self._error
        return list(self._items)


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


@pytest.fixture
def credentials() -> ApiCredentials:
    return ApiCredentials(
        openai_api_key="sk-openai",
        anthropic_api_key="sk-ant",
        gemini_api_key="gm-key",
        youtube_api_key="yt-key",
        google_search_api_key="gs-key",
        google_search_engine_id="cx-id",
    )
