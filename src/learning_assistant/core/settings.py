from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_ENCRYPTION_KEY = "default-encryption-key-change-me"


@dataclass(frozen=True)
class AppSettings:
    encryption_key: str = DEFAULT_ENCRYPTION_KEY
    default_provider: str = "openai"
    http_timeout_s: float = 30.0
    search_language: str = "ko"

    @staticmethod
    def from_env() -> "AppSettings":
        encryption_key = os.getenv("ENCRYPTION_KEY", "").strip() or DEFAULT_ENCRYPTION_KEY
        if encryption_key == DEFAULT_ENCRYPTION_KEY:
            logger.warning(
                "Using the default encryption key. Set ENCRYPTION_KEY to protect stored API keys."
            )

        default_provider = os.getenv("DEFAULT_PROVIDER", "openai").strip().lower()
        http_timeout_s = float(os.getenv("HTTP_TIMEOUT_S", "30"))
        search_language = os.getenv("SEARCH_LANGUAGE", "ko").strip()
        return AppSettings(
            encryption_key=encryption_key,
            default_provider=default_provider,
            http_timeout_s=http_timeout_s,
            search_language=search_language,
        )
