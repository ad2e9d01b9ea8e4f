from __future__ import annotations

from typing import Optional


class AssistantError(RuntimeError):
    pass


class ConfigurationError(AssistantError):
    """A required credential or setting is missing. Not retryable."""


class UpstreamRequestError(AssistantError):
    """
    A completion endpoint returned a non-success status or was unreachable.

    Endpoints raise it with the provider and status; the adapter stamps
    which round failed before it propagates to the caller.
    """

    def __init__(
        self,
        provider: str,
        detail: str,
        status_code: Optional[int] = None,
        round: Optional[str] = None,
    ) -> None:
        super().__init__(detail)
        self.provider = provider
        self.detail = detail
        self.status_code = status_code
        self.round = round

    def __str__(self) -> str:
        where = f"{self.provider} ({self.round} round)" if self.round else self.provider
        status = f" {self.status_code}" if self.status_code is not None else ""
        return f"{where} request failed{status}: {self.detail}"


class ToolExecutionError(AssistantError):
    """A single lookup failed. Contained per call by the adapter."""

    def __init__(self, tool_name: str, detail: str) -> None:
        super().__init__(f"{tool_name}: {detail}")
        self.tool_name = tool_name


class DecryptionError(AssistantError):
    """Raised for any undecryptable blob. The message never says why."""

    def __init__(self) -> None:
        super().__init__("Failed to decrypt credential.")
