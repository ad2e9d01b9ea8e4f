from __future__ import annotations

from typing import Optional

from learning_assistant.core.credentials import ApiCredentials
from learning_assistant.core.errors import ConfigurationError
from learning_assistant.core.interfaces import (
    ArticleLookupService,
    CompletionEndpoint,
    VideoLookupService,
)
from learning_assistant.core.settings import AppSettings
from learning_assistant.providers.llm_anthropic import AnthropicEndpoint, AnthropicEndpointConfig
from learning_assistant.providers.llm_gemini import GeminiEndpoint, GeminiEndpointConfig
from learning_assistant.providers.llm_openai import OpenAIEndpoint, OpenAIEndpointConfig
from learning_assistant.providers.search_google import GoogleSearchConfig, GoogleWebSearch
from learning_assistant.providers.video_youtube import YouTubeSearchConfig, YouTubeVideoSearch

PROVIDERS = ("openai", "claude", "gemini")

_ALIASES = {
    "openai": "openai",
    "gpt": "openai",
    "claude": "claude",
    "anthropic": "claude",
    "gemini": "gemini",
    "google": "gemini",
}


def normalize_provider(name: str) -> str:
    key = (name or "").strip().lower()
    try:
        return _ALIASES[key]
    except KeyError:
        raise ConfigurationError(f"Invalid AI provider: {name}") from None


def get_completion_endpoint(
    name: str, credentials: ApiCredentials, settings: Optional[AppSettings] = None
) -> CompletionEndpoint:
    settings = settings or AppSettings()
    key = normalize_provider(name)
    api_key = credentials.key_for(key)

    if key == "openai":
        return OpenAIEndpoint(OpenAIEndpointConfig.from_env(api_key), timeout_s=settings.http_timeout_s)

    if key == "claude":
        return AnthropicEndpoint(
            AnthropicEndpointConfig.from_env(api_key), timeout_s=settings.http_timeout_s
        )

    return GeminiEndpoint(GeminiEndpointConfig.from_env(api_key), timeout_s=settings.http_timeout_s)


def get_video_lookup(
    credentials: ApiCredentials, settings: Optional[AppSettings] = None
) -> VideoLookupService:
    settings = settings or AppSettings()
    cfg = YouTubeSearchConfig(
        api_key=credentials.youtube_api_key, relevance_language=settings.search_language
    )
    return YouTubeVideoSearch(cfg, timeout_s=settings.http_timeout_s)


def get_article_lookup(
    credentials: ApiCredentials, settings: Optional[AppSettings] = None
) -> ArticleLookupService:
    settings = settings or AppSettings()
    cfg = GoogleSearchConfig(
        api_key=credentials.google_search_api_key,
        search_engine_id=credentials.google_search_engine_id,
    )
    return GoogleWebSearch(cfg, timeout_s=settings.http_timeout_s)
