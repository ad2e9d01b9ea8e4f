from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Sequence

from learning_assistant.core.errors import ConfigurationError
from learning_assistant.core.interfaces import AUTO, REQUIRED, CompletionEndpoint
from learning_assistant.providers.http import post_json
from learning_assistant.tools.definitions import (
    TOOL,
    USER,
    CompletionResponse,
    ProviderMessage,
    ToolCallRequest,
    ToolSpec,
)

logger = logging.getLogger(__name__)

MODEL_ROLE = "model"

_TOOL_CHOICE = {AUTO: "AUTO", REQUIRED: "ANY"}


@dataclass(frozen=True)
class GeminiEndpointConfig:
    api_key: str
    model: str = "gemini-flash-latest"
    temperature: float = 0.7
    max_tokens: int = 3000
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"

    @staticmethod
    def from_env(api_key: str) -> "GeminiEndpointConfig":
        if not api_key:
            raise ConfigurationError("Gemini API key not configured. Please add it in Settings.")

        model = os.getenv("GEMINI_MODEL", "gemini-flash-latest").strip()
        temperature = float(os.getenv("GEMINI_TEMPERATURE", "0.7"))
        max_tokens = int(os.getenv("GEMINI_MAX_TOKENS", "3000"))
        return GeminiEndpointConfig(
            api_key=api_key, model=model, temperature=temperature, max_tokens=max_tokens
        )


def build_tool_schemas(tools: Sequence[ToolSpec]) -> list[dict[str, Any]]:
    return [
        {
            "functionDeclarations": [
                {"name": t.name, "description": t.description, "parameters": t.json_schema()}
                for t in tools
            ]
        }
    ]


def to_gemini_contents(transcript: Sequence[ProviderMessage]) -> list[dict[str, Any]]:
    contents: list[dict[str, Any]] = []
    # Only ids Gemini handed out are echoed back; synthesized ones stay local.
    provider_ids: set[str] = set()

    for m in transcript:
        if m.role == TOOL:
            parts = []
            for r in m.tool_results:
                response: dict[str, Any] = {
                    "name": r.tool_name,
                    "response": {"result": r.payload()},
                }
                if r.call_id in provider_ids:
                    response["id"] = r.call_id
                parts.append({"functionResponse": response})
            contents.append({"role": USER, "parts": parts})
        elif m.tool_calls and isinstance(m.raw, dict):
            for part in m.raw.get("parts") or []:
                call_id = (part.get("functionCall") or {}).get("id")
                if call_id:
                    provider_ids.add(call_id)
            contents.append(m.raw)
        else:
            role = USER if m.role == USER else MODEL_ROLE
            contents.append({"role": role, "parts": [{"text": m.content}]})
    return contents


class GeminiEndpoint(CompletionEndpoint):
    """
    Gemini generateContent with function declarations.
    """

    name = "gemini"

    def __init__(self, config: GeminiEndpointConfig, timeout_s: float = 30.0) -> None:
        self._cfg = config
        self._timeout_s = timeout_s

    def send(
        self,
        system_prompt: str,
        transcript: Sequence[ProviderMessage],
        tools: Sequence[ToolSpec],
        tool_choice: str = AUTO,
    ) -> CompletionResponse:
        url = f"{self._cfg.base_url.rstrip('/')}/models/{self._cfg.model}:generateContent"
        payload = {
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "contents": to_gemini_contents(transcript),
            "tools": build_tool_schemas(tools),
            "toolConfig": {"functionCallingConfig": {"mode": _TOOL_CHOICE[tool_choice]}},
            "generationConfig": {
                "temperature": self._cfg.temperature,
                "maxOutputTokens": self._cfg.max_tokens,
            },
        }

        data = post_json(
            self.name,
            url,
            payload,
            headers={
                "Content-Type": "application/json",
                "x-goog-api-key": self._cfg.api_key,
            },
            timeout_s=self._timeout_s,
        )
        return parse_response(data)


def parse_response(data: dict[str, Any]) -> CompletionResponse:
    candidates = data.get("candidates") or []
    if not candidates:
        logger.warning("Gemini returned no candidates")
        return CompletionResponse()

    content = candidates[0].get("content") or {}
    parts = [p for p in (content.get("parts") or []) if isinstance(p, dict)]

    tool_calls: list[ToolCallRequest] = []
    for index, part in enumerate(parts):
        call = part.get("functionCall")
        if not call or not call.get("name"):
            continue
        tool_calls.append(
            ToolCallRequest(
                id=call.get("id") or f"{call['name']}-{index}",
                name=call["name"],
                arguments=call.get("args") or {},
            )
        )

    text = next((p["text"] for p in parts if p.get("text")), None)

    raw_message = None
    if tool_calls:
        raw_message = {"role": MODEL_ROLE, "parts": parts}
    return CompletionResponse(text=text, tool_calls=tool_calls, raw_message=raw_message)
