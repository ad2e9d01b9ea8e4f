from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Sequence

from learning_assistant.core.errors import ConfigurationError
from learning_assistant.core.interfaces import AUTO, REQUIRED, CompletionEndpoint
from learning_assistant.providers.http import post_json
from learning_assistant.tools.definitions import (
    ASSISTANT,
    TOOL,
    USER,
    CompletionResponse,
    ProviderMessage,
    ToolCallRequest,
    ToolSpec,
)

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"

_TOOL_CHOICE = {AUTO: {"type": "auto"}, REQUIRED: {"type": "any"}}


@dataclass(frozen=True)
class AnthropicEndpointConfig:
    api_key: str
    model: str = "claude-sonnet-4-5"
    temperature: float = 0.7
    max_tokens: int = 3000
    base_url: str = "https://api.anthropic.com/v1"

    @staticmethod
    def from_env(api_key: str) -> "AnthropicEndpointConfig":
        if not api_key:
            raise ConfigurationError("Anthropic API key not configured. Please add it in Settings.")

        model = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-5").strip()
        temperature = float(os.getenv("ANTHROPIC_TEMPERATURE", "0.7"))
        max_tokens = int(os.getenv("ANTHROPIC_MAX_TOKENS", "3000"))
        return AnthropicEndpointConfig(
            api_key=api_key, model=model, temperature=temperature, max_tokens=max_tokens
        )


def build_tool_schemas(tools: Sequence[ToolSpec]) -> list[dict[str, Any]]:
    return [
        {"name": t.name, "description": t.description, "input_schema": t.json_schema()}
        for t in tools
    ]


def to_anthropic_messages(transcript: Sequence[ProviderMessage]) -> list[dict[str, Any]]:
    messages: list[dict[str, Any]] = []
    for m in transcript:
        if m.role == TOOL:
            blocks = []
            for r in m.tool_results:
                block: dict[str, Any] = {
                    "type": "tool_result",
                    "tool_use_id": r.call_id,
                    "content": r.content(),
                }
                if not r.ok:
                    block["is_error"] = True
                blocks.append(block)
            # Tool results travel back as a user turn
            messages.append({"role": USER, "content": blocks})
        elif m.tool_calls and m.raw is not None:
            messages.append({"role": ASSISTANT, "content": m.raw})
        else:
            messages.append({"role": m.role, "content": m.content})
    return messages


class AnthropicEndpoint(CompletionEndpoint):
    """
    Anthropic Messages API with client tools.
    Uses the /v1/messages endpoint.
    """

    name = "claude"

    def __init__(self, config: AnthropicEndpointConfig, timeout_s: float = 30.0) -> None:
        self._cfg = config
        self._timeout_s = timeout_s

    def send(
        self,
        system_prompt: str,
        transcript: Sequence[ProviderMessage],
        tools: Sequence[ToolSpec],
        tool_choice: str = AUTO,
    ) -> CompletionResponse:
        url = f"{self._cfg.base_url.rstrip('/')}/messages"
        headers = {
            "content-type": "application/json",
            "x-api-key": self._cfg.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }
        payload = {
            "model": self._cfg.model,
            "max_tokens": self._cfg.max_tokens,
            "temperature": self._cfg.temperature,
            "system": system_prompt,
            "messages": to_anthropic_messages(transcript),
            "tools": build_tool_schemas(tools),
            "tool_choice": _TOOL_CHOICE[tool_choice],
        }

        data = post_json(self.name, url, payload, headers=headers, timeout_s=self._timeout_s)
        return parse_response(data)


def parse_response(data: dict[str, Any]) -> CompletionResponse:
    blocks = [b for b in (data.get("content") or []) if isinstance(b, dict)]

    tool_calls = [
        ToolCallRequest(id=b["id"], name=b["name"], arguments=b.get("input") or {})
        for b in blocks
        if b.get("type") == "tool_use" and b.get("id") and b.get("name")
    ]
    text = next((b.get("text") for b in blocks if b.get("type") == "text"), None)

    return CompletionResponse(
        text=text,
        tool_calls=tool_calls,
        raw_message=blocks if tool_calls else None,
    )
