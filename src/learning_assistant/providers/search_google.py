from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

import requests

from learning_assistant.core.errors import ConfigurationError, ToolExecutionError
from learning_assistant.core.interfaces import ArticleLookupService
from learning_assistant.tools.web_search import WEB_SEARCH

logger = logging.getLogger(__name__)

MAX_RESULTS = 10


def extract_domain(url: str) -> str:
    """Bare hostname for display, without the www. prefix."""
    try:
        hostname = urlparse(url).hostname
    except (TypeError, ValueError):
        hostname = None
    if not hostname:
        return "Unknown"
    return hostname[4:] if hostname.startswith("www.") else hostname


@dataclass(frozen=True)
class GoogleSearchConfig:
    api_key: str
    search_engine_id: str
    base_url: str = "https://www.googleapis.com/customsearch/v1"


class GoogleWebSearch(ArticleLookupService):
    """Google Programmable Search (Custom Search JSON API)."""

    def __init__(self, config: GoogleSearchConfig, timeout_s: float = 30.0) -> None:
        self._cfg = config
        self._timeout_s = timeout_s

    def search(self, query: str, max_results: int = 10) -> list[dict[str, Any]]:
        if not self._cfg.api_key or not self._cfg.search_engine_id:
            raise ConfigurationError(
                "Google Search API key not configured. Please add it in Settings."
            )

        query = (query or "").strip()
        if not query:
            raise ToolExecutionError(WEB_SEARCH, "query is required")

        params = {
            "key": self._cfg.api_key,
            "cx": self._cfg.search_engine_id,
            "q": query,
            "num": str(max(1, min(int(max_results), MAX_RESULTS))),
            "safe": "active",
        }
        try:
            resp = requests.get(self._cfg.base_url, params=params, timeout=self._timeout_s)
        except requests.RequestException as e:
            raise ToolExecutionError(
                WEB_SEARCH, f"Google search request failed ({type(e).__name__})"
            ) from None

        if resp.status_code >= 400:
            logger.warning("Google Custom Search error %s: %s", resp.status_code, resp.text[:200])
            raise ToolExecutionError(WEB_SEARCH, "Google search request failed")

        data = resp.json()
        stamp = int(time.time() * 1000)
        return [_to_article(item, index, stamp) for index, item in enumerate(data.get("items") or [])]


def _to_article(item: dict[str, Any], index: int, stamp: int) -> dict[str, Any]:
    link = item.get("link", "")
    article = {
        "id": f"search-{index}-{stamp}",
        "title": item.get("title", ""),
        "snippet": item.get("snippet", ""),
        "url": link,
        "source": extract_domain(link),
    }
    metatags = (item.get("pagemap") or {}).get("metatags") or [{}]
    published = metatags[0].get("article:published_time")
    if published:
        article["publishedDate"] = published
    return article
