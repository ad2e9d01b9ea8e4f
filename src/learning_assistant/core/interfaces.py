from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from learning_assistant.tools.definitions import CompletionResponse, ProviderMessage, ToolSpec

AUTO = "auto"
REQUIRED = "required"


class CompletionEndpoint(Protocol):
    """One provider's chat completion API with tool calling."""

    name: str

    def send(
        self,
        system_prompt: str,
        transcript: Sequence[ProviderMessage],
        tools: Sequence[ToolSpec],
        tool_choice: str = AUTO,
    ) -> CompletionResponse:
        """
        Submit the transcript with the tool catalog attached.

        tool_choice is AUTO or REQUIRED; each endpoint maps it to its own
        literal. Raises UpstreamRequestError on any non-success outcome.
        """
        ...


class VideoLookupService(Protocol):
    """Video search backing the video_search tool."""

    def search(self, query: str, max_results: int = 10) -> list[dict[str, Any]]:
        ...


class ArticleLookupService(Protocol):
    """Web search backing the web_search tool."""

    def search(self, query: str, max_results: int = 10) -> list[dict[str, Any]]:
        ...


class CredentialStore(Protocol):
    """Caller-owned persistence for encrypted credential blobs."""

    def get(self, name: str) -> Optional[str]:
        ...

    def set(self, name: str, blob: str) -> None:
        ...

    def delete(self, name: str) -> None:
        ...
