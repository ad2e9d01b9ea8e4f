from learning_assistant.tools.definitions import (
    CompletionResponse,
    ProviderMessage,
    ToolCallRequest,
    ToolExecutionResult,
    ToolParameter,
    ToolSpec,
    ToolTrace,
)
from learning_assistant.tools.video_search import VIDEO_SEARCH, VIDEO_SEARCH_TOOL_SPEC
from learning_assistant.tools.web_search import WEB_SEARCH, WEB_SEARCH_TOOL_SPEC

TOOL_CATALOG: tuple[ToolSpec, ...] = (VIDEO_SEARCH_TOOL_SPEC, WEB_SEARCH_TOOL_SPEC)

__all__ = [
    "CompletionResponse",
    "ProviderMessage",
    "ToolCallRequest",
    "ToolExecutionResult",
    "ToolParameter",
    "ToolSpec",
    "ToolTrace",
    "TOOL_CATALOG",
    "VIDEO_SEARCH",
    "VIDEO_SEARCH_TOOL_SPEC",
    "WEB_SEARCH",
    "WEB_SEARCH_TOOL_SPEC",
]
