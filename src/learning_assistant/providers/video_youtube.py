from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

import requests

from learning_assistant.core.errors import ConfigurationError, ToolExecutionError
from learning_assistant.core.interfaces import VideoLookupService
from learning_assistant.tools.video_search import VIDEO_SEARCH

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")
_ONE_DECIMAL = Decimal("0.1")


def format_duration(duration: Optional[str]) -> str:
    """ISO-8601 duration to H:MM:SS or M:SS, e.g. "PT15M33S" -> "15:33"."""
    match = _DURATION_RE.search(duration or "")
    if not match:
        return ""

    hours, minutes, seconds = (int(g) if g else 0 for g in match.groups())
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def format_view_count(count: Any) -> str:
    """Compact view count, e.g. 1500 -> "1.5K", 2500000 -> "2.5M"."""
    try:
        num = int(count)
    except (TypeError, ValueError):
        return ""

    for threshold, suffix in ((1_000_000, "M"), (1_000, "K")):
        if num >= threshold:
            # Round the float quotient, not the exact ratio: 1150 -> "1.1K".
            scaled = Decimal(num / threshold).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP)
            return f"{scaled}{suffix}"
    return str(num)


@dataclass(frozen=True)
class YouTubeSearchConfig:
    api_key: str
    relevance_language: str = "ko"
    base_url: str = "https://www.googleapis.com/youtube/v3"


class YouTubeVideoSearch(VideoLookupService):
    """
    YouTube Data API v3 search followed by a details lookup for duration and stats.
    """

    def __init__(self, config: YouTubeSearchConfig, timeout_s: float = 30.0) -> None:
        self._cfg = config
        self._timeout_s = timeout_s

    def search(self, query: str, max_results: int = 10) -> list[dict[str, Any]]:
        if not self._cfg.api_key:
            raise ConfigurationError("YouTube API key not configured. Please add it in Settings.")

        query = (query or "").strip()
        if not query:
            raise ToolExecutionError(VIDEO_SEARCH, "query is required")

        search_data = self._get(
            "search",
            {
                "q": query,
                "part": "snippet",
                "type": "video",
                "maxResults": str(max(1, min(int(max_results), 50))),
                "relevanceLanguage": self._cfg.relevance_language,
                "safeSearch": "strict",
                "videoEmbeddable": "true",
            },
        )
        video_ids = [
            item["id"]["videoId"]
            for item in search_data.get("items") or []
            if (item.get("id") or {}).get("videoId")
        ]
        if not video_ids:
            return []

        details = self._get(
            "videos", {"id": ",".join(video_ids), "part": "contentDetails,statistics,snippet"}
        )
        return [_to_video(item) for item in details.get("items") or []]

    def _get(self, path: str, params: dict[str, str]) -> dict[str, Any]:
        url = f"{self._cfg.base_url.rstrip('/')}/{path}"
        try:
            resp = requests.get(
                url, params={"key": self._cfg.api_key, **params}, timeout=self._timeout_s
            )
        except requests.RequestException as e:
            # The URL in str(e) includes the key query parameter.
            raise ToolExecutionError(
                VIDEO_SEARCH, f"YouTube {path} request failed ({type(e).__name__})"
            ) from None

        if resp.status_code >= 400:
            logger.warning("YouTube %s API error %s: %s", path, resp.status_code, resp.text[:200])
            raise ToolExecutionError(VIDEO_SEARCH, f"YouTube {path} request failed")
        return resp.json()


def _to_video(item: dict[str, Any]) -> dict[str, Any]:
    snippet = item.get("snippet") or {}
    thumbnails = snippet.get("thumbnails") or {}
    thumbnail = thumbnails.get("medium") or thumbnails.get("default") or {}
    video_id = item.get("id", "")
    return {
        "id": video_id,
        "title": snippet.get("title", ""),
        "description": snippet.get("description", ""),
        "thumbnailUrl": thumbnail.get("url", ""),
        "channelTitle": snippet.get("channelTitle", ""),
        "publishedAt": snippet.get("publishedAt", ""),
        "durationText": format_duration((item.get("contentDetails") or {}).get("duration")),
        "viewCountText": format_view_count((item.get("statistics") or {}).get("viewCount")),
        "url": f"https://www.youtube.com/watch?v={video_id}",
    }
