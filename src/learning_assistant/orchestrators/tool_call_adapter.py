from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Sequence

from learning_assistant.core.credentials import ApiCredentials
from learning_assistant.core.errors import ConfigurationError, ToolExecutionError, UpstreamRequestError
from learning_assistant.core.factory import (
    get_article_lookup,
    get_completion_endpoint,
    get_video_lookup,
    normalize_provider,
)
from learning_assistant.core.interfaces import AUTO, REQUIRED, CompletionEndpoint
from learning_assistant.core.metrics import Timer
from learning_assistant.core.settings import AppSettings
from learning_assistant.orchestrators.prompts import SYSTEM_PROMPT
from learning_assistant.tools import TOOL_CATALOG, VIDEO_SEARCH, WEB_SEARCH
from learning_assistant.tools.definitions import (
    ASSISTANT,
    TOOL,
    USER,
    CompletionResponse,
    ProviderMessage,
    ToolCallRequest,
    ToolExecutionResult,
    ToolSpec,
    ToolTrace,
)

logger = logging.getLogger(__name__)

FALLBACK_TEXT = "Sorry, I could not generate a response."
DEFAULT_MAX_RESULTS = 10

EndpointFactory = Callable[[str, ApiCredentials, AppSettings], CompletionEndpoint]
LookupFactory = Callable[[ApiCredentials, AppSettings], Any]


@dataclass(frozen=True)
class AssistantProfile:
    """System instruction and tool catalog, built once and shared."""

    system_prompt: str
    tools: tuple[ToolSpec, ...] = TOOL_CATALOG


DEFAULT_PROFILE = AssistantProfile(system_prompt=SYSTEM_PROMPT)


@dataclass(frozen=True)
class ChatResult:
    assistant_text: str
    video_results: list[dict[str, Any]] = field(default_factory=list)
    article_results: list[dict[str, Any]] = field(default_factory=list)
    rounds: int = 1
    tool_traces: list[ToolTrace] = field(default_factory=list)
    metrics: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.assistant_text,
            "videoResults": self.video_results,
            "articleResults": self.article_results,
        }


class ToolCallAdapter:
    """
    One chat turn against any provider: a forced-tool round, local execution
    of the requested lookups, then a second round that answers in prose.

    Stateless between calls. History and credentials are passed to run().
    """

    def __init__(
        self,
        profile: AssistantProfile = DEFAULT_PROFILE,
        settings: Optional[AppSettings] = None,
        endpoint_factory: EndpointFactory = get_completion_endpoint,
        video_lookup_factory: LookupFactory = get_video_lookup,
        article_lookup_factory: LookupFactory = get_article_lookup,
        max_workers: int = 2,
    ) -> None:
        self._profile = profile
        self._settings = settings or AppSettings()
        self._endpoint_factory = endpoint_factory
        self._video_lookup_factory = video_lookup_factory
        self._article_lookup_factory = article_lookup_factory
        self._max_workers = max(1, max_workers)

    def run(
        self,
        provider: str,
        user_message: str,
        history: Optional[Sequence[Any]],
        credentials: ApiCredentials,
    ) -> ChatResult:
        user_message = (user_message or "").strip()
        if not user_message:
            raise ValueError("Message is required.")

        provider_id = normalize_provider(provider)
        if not credentials.key_for(provider_id):
            raise ConfigurationError(
                f"{provider_id} API key not configured. Please add it in Settings."
            )

        endpoint = self._endpoint_factory(provider_id, credentials, self._settings)
        timer = Timer()

        transcript = [ProviderMessage.from_history(h) for h in history or []]
        transcript.append(ProviderMessage(role=USER, content=user_message))

        first = timer.measure(
            "round_1_ms", lambda: self._send(endpoint, transcript, REQUIRED, "first")
        )
        if not first.tool_calls:
            logger.info("%s answered without tool calls", provider_id)
            return ChatResult(
                assistant_text=first.text or FALLBACK_TEXT, rounds=1, metrics=timer.summary()
            )

        lookups = {
            VIDEO_SEARCH: self._video_lookup_factory(credentials, self._settings),
            WEB_SEARCH: self._article_lookup_factory(credentials, self._settings),
        }
        executed = timer.measure(
            "tools_ms", lambda: self._execute_all(first.tool_calls, lookups)
        )
        results = [result for result, _ in executed]

        video_results: list[dict[str, Any]] = []
        article_results: list[dict[str, Any]] = []
        # Request order decides the winner when a tool is called twice.
        for result in results:
            if not result.ok:
                continue
            if result.tool_name == VIDEO_SEARCH:
                video_results = result.items
            elif result.tool_name == WEB_SEARCH:
                article_results = result.items

        transcript.append(
            ProviderMessage(
                role=ASSISTANT,
                content=first.text or "",
                tool_calls=tuple(first.tool_calls),
                raw=first.raw_message,
            )
        )
        transcript.append(ProviderMessage(role=TOOL, tool_results=tuple(results)))

        second = timer.measure(
            "round_2_ms", lambda: self._send(endpoint, transcript, AUTO, "second")
        )
        return ChatResult(
            assistant_text=second.text or FALLBACK_TEXT,
            video_results=video_results,
            article_results=article_results,
            rounds=2,
            tool_traces=[trace for _, trace in executed],
            metrics=timer.summary(),
        )

    def _send(
        self,
        endpoint: CompletionEndpoint,
        transcript: Sequence[ProviderMessage],
        tool_choice: str,
        round_name: str,
    ) -> CompletionResponse:
        logger.info("Sending %s round to %s (%d messages)", round_name, endpoint.name, len(transcript))
        try:
            return endpoint.send(
                self._profile.system_prompt, list(transcript), self._profile.tools, tool_choice
            )
        except UpstreamRequestError as e:
            e.round = round_name
            logger.error("%s", e)
            raise

    def _execute_all(
        self, calls: Sequence[ToolCallRequest], lookups: Mapping[str, Any]
    ) -> list[tuple[ToolExecutionResult, ToolTrace]]:
        workers = min(len(calls), self._max_workers)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(lambda call: self._execute_one(call, lookups), calls))

    def _execute_one(
        self, call: ToolCallRequest, lookups: Mapping[str, Any]
    ) -> tuple[ToolExecutionResult, ToolTrace]:
        logger.info("Executing %s with %s", call.name, call.arguments)
        start = time.perf_counter()
        try:
            service = lookups.get(call.name)
            if service is None:
                raise ToolExecutionError(call.name, f"Unknown tool: {call.name}")
            max_results = int(call.arguments.get("maxResults") or DEFAULT_MAX_RESULTS)
            items = service.search(call.arguments.get("query", ""), max_results)
            result = ToolExecutionResult(call_id=call.id, tool_name=call.name, items=list(items))
            error = None
        except Exception as e:
            # The provider sees an error payload and can answer without this tool.
            logger.warning("Tool execution error for %s: %s", call.name, e)
            result = ToolExecutionResult(
                call_id=call.id, tool_name=call.name, error=f"Failed to execute {call.name}"
            )
            error = f"{type(e).__name__}: {e}"
        elapsed_ms = (time.perf_counter() - start) * 1000.0

        trace = ToolTrace(
            tool_name=call.name,
            arguments=call.arguments,
            ok=result.ok,
            result_count=len(result.items),
            elapsed_ms=elapsed_ms,
            error=error,
        )
        return result, trace
