from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional

USER = "user"
ASSISTANT = "assistant"
TOOL = "tool"

_MISSING = object()


@dataclass(frozen=True)
class ToolParameter:
    type: str
    description: str
    default: Any = _MISSING

    def json_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": self.type, "description": self.description}
        if self.default is not _MISSING:
            schema["default"] = self.default
        return schema


@dataclass(frozen=True)
class ToolSpec:
    """Definition of a tool the LLM can invoke."""

    name: str
    description: str
    parameters: dict[str, ToolParameter]
    required: tuple[str, ...] = ()

    def json_schema(self) -> dict[str, Any]:
        """JSON Schema for the function parameters, shared by every provider."""
        return {
            "type": "object",
            "properties": {k: p.json_schema() for k, p in self.parameters.items()},
            "required": list(self.required),
        }


@dataclass(frozen=True)
class ToolCallRequest:
    """A single tool invocation requested by the LLM."""

    id: str
    name: str
    arguments: dict[str, Any]


@dataclass(frozen=True)
class ToolExecutionResult:
    """Outcome of one tool call, success or error marker."""

    call_id: str
    tool_name: str
    items: list[dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def payload(self) -> Any:
        if self.error is not None:
            return {"error": self.error}
        return self.items

    def content(self) -> str:
        return json.dumps(self.payload(), ensure_ascii=False)


@dataclass(frozen=True)
class ToolTrace:
    """Record of a tool execution for display in the UI."""

    tool_name: str
    arguments: dict[str, Any]
    ok: bool
    result_count: int
    elapsed_ms: float
    error: Optional[str] = None


@dataclass(frozen=True)
class ProviderMessage:
    """
    One transcript entry in provider-neutral form.

    Plain turns carry text content. An assistant tool-request turn carries
    the normalized tool_calls plus the provider's own message in raw so it
    can be resubmitted unchanged. A tool turn carries tool_results.
    """

    role: str
    content: str = ""
    tool_calls: tuple[ToolCallRequest, ...] = ()
    tool_results: tuple[ToolExecutionResult, ...] = ()
    raw: Any = None

    @staticmethod
    def from_history(entry: Any) -> "ProviderMessage":
        """Accept a ProviderMessage or a {"role", "content"} mapping."""
        if isinstance(entry, ProviderMessage):
            return entry
        role = USER if entry.get("role") == USER else ASSISTANT
        return ProviderMessage(role=role, content=str(entry.get("content") or ""))


@dataclass
class CompletionResponse:
    """Structured response from an LLM that may contain tool calls."""

    text: Optional[str] = None
    tool_calls: list[ToolCallRequest] = field(default_factory=list)
    raw_message: Any = None  # Provider-specific message for conversation threading
