from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import openai
from openai import OpenAI

from learning_assistant.core.errors import ConfigurationError, UpstreamRequestError
from learning_assistant.core.interfaces import AUTO, REQUIRED, CompletionEndpoint
from learning_assistant.tools.definitions import (
    ASSISTANT,
    TOOL,
    CompletionResponse,
    ProviderMessage,
    ToolCallRequest,
    ToolSpec,
)

logger = logging.getLogger(__name__)

_TOOL_CHOICE = {AUTO: "auto", REQUIRED: "required"}


@dataclass(frozen=True)
class OpenAIEndpointConfig:
    api_key: str
    model: str = "gpt-4o-mini"
    temperature: float = 0.7
    max_tokens: int = 3000

    @staticmethod
    def from_env(api_key: str) -> "OpenAIEndpointConfig":
        if not api_key:
            raise ConfigurationError("OpenAI API key not configured. Please add it in Settings.")

        model = os.getenv("OPENAI_MODEL", "gpt-4o-mini").strip()
        temperature = float(os.getenv("OPENAI_TEMPERATURE", "0.7"))
        max_tokens = int(os.getenv("OPENAI_MAX_TOKENS", "3000"))
        return OpenAIEndpointConfig(
            api_key=api_key, model=model, temperature=temperature, max_tokens=max_tokens
        )


def build_tool_schemas(tools: Sequence[ToolSpec]) -> list[dict[str, Any]]:
    return [
        {
            "type": "function",
            "function": {
                "name": t.name,
                "description": t.description,
                "parameters": t.json_schema(),
            },
        }
        for t in tools
    ]


def to_openai_messages(
    system_prompt: str, transcript: Sequence[ProviderMessage]
) -> list[dict[str, Any]]:
    messages: list[dict[str, Any]] = [{"role": "system", "content": system_prompt}]
    for m in transcript:
        if m.role == TOOL:
            # One message per call, keyed by the provider's call id
            for r in m.tool_results:
                messages.append({"role": "tool", "tool_call_id": r.call_id, "content": r.content()})
        elif m.tool_calls and isinstance(m.raw, dict):
            messages.append(m.raw)
        else:
            messages.append({"role": m.role, "content": m.content})
    return messages


class OpenAIEndpoint(CompletionEndpoint):
    """
    OpenAI chat completions with function tools.
    """

    name = "openai"

    def __init__(
        self, config: OpenAIEndpointConfig, timeout_s: float = 30.0, client: Optional[Any] = None
    ) -> None:
        self._cfg = config
        # The SDK retries by default; failures surface to the caller instead.
        self._client = client or OpenAI(api_key=config.api_key, timeout=timeout_s, max_retries=0)

    def send(
        self,
        system_prompt: str,
        transcript: Sequence[ProviderMessage],
        tools: Sequence[ToolSpec],
        tool_choice: str = AUTO,
    ) -> CompletionResponse:
        try:
            resp = self._client.chat.completions.create(
                model=self._cfg.model,
                messages=to_openai_messages(system_prompt, transcript),
                temperature=self._cfg.temperature,
                max_tokens=self._cfg.max_tokens,
                tools=build_tool_schemas(tools),
                tool_choice=_TOOL_CHOICE[tool_choice],
            )
        except openai.APIStatusError as e:
            raise UpstreamRequestError(self.name, e.message, status_code=e.status_code) from e
        except openai.APIError as e:
            raise UpstreamRequestError(
                self.name, f"Failed to reach OpenAI API ({type(e).__name__})"
            ) from e

        if not resp.choices:
            return CompletionResponse()

        message = resp.choices[0].message
        raw_calls = message.tool_calls or []
        tool_calls = [
            ToolCallRequest(
                id=tc.id,
                name=tc.function.name,
                arguments=_decode_arguments(tc.function.name, tc.function.arguments),
            )
            for tc in raw_calls
        ]

        raw_message = None
        if raw_calls:
            raw_message = {
                "role": ASSISTANT,
                "content": message.content,
                "tool_calls": [tc.model_dump(exclude_none=True) for tc in raw_calls],
            }
        return CompletionResponse(
            text=message.content, tool_calls=tool_calls, raw_message=raw_message
        )


def _decode_arguments(tool_name: str, arguments: Optional[str]) -> dict[str, Any]:
    try:
        decoded = json.loads(arguments or "{}")
    except json.JSONDecodeError:
        logger.warning("Discarding malformed arguments for %s: %r", tool_name, arguments)
        return {}
    return decoded if isinstance(decoded, dict) else {}
