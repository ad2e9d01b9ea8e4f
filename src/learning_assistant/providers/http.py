from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from learning_assistant.core.errors import UpstreamRequestError

logger = logging.getLogger(__name__)


def post_json(
    provider: str,
    url: str,
    payload: dict[str, Any],
    *,
    headers: Optional[dict[str, str]] = None,
    timeout_s: float = 30.0,
) -> dict[str, Any]:
    """POST a JSON body and return the decoded response, or raise UpstreamRequestError."""
    try:
        resp = requests.post(url, headers=headers, json=payload, timeout=timeout_s)
    except requests.RequestException as e:
        # str(e) carries the request URL, which can hold a query-string key.
        raise UpstreamRequestError(
            provider, f"Failed to reach {provider} API ({type(e).__name__})"
        ) from None

    if resp.status_code >= 400:
        detail = resp.text[:500] if resp.text else f"HTTP {resp.status_code}"
        raise UpstreamRequestError(provider, detail, status_code=resp.status_code)

    try:
        data = resp.json()
    except ValueError as e:
        raise UpstreamRequestError(
            provider, "Response body was not JSON", status_code=resp.status_code
        ) from e

    if not isinstance(data, dict):
        raise UpstreamRequestError(
            provider, "Response body was not a JSON object", status_code=resp.status_code
        )
    logger.debug("%s responded with keys %s", provider, sorted(data))
    return data
