"""Client utilities for the Google Custom Search JSON API."""

import logging
from typing import Any, Dict, List

import requests

from omnisearch.vendors.search_provider import SearchProviderError

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://www.googleapis.com/customsearch/v1"
MAX_PAGE_SIZE = 10


def search_page(query: str, api_key: str, cx: str, num: int = 10, start: int = 1) -> List[Dict[str, Any]]:
    """Fetch one page of results; ``start`` is the 1-based offset of the first item."""
    params = {
        "key": api_key,
        "cx": cx,
        "q": query,
        "num": min(num, MAX_PAGE_SIZE),
        "start": start,
    }
    response = _SESSION.get(_BASE_URL, params=params, timeout=10)
    if response.status_code == 429:
        logger.warning("Custom Search rate limited for q=%s start=%s", query, start)
        raise SearchProviderError("rate limited (HTTP 429)")
    response.raise_for_status()
    payload = response.json()
    error = payload.get("error")
    if error:
        message = error.get("message") if isinstance(error, dict) else error
        logger.error("Custom Search failed: q=%s error=%s", query, message)
        raise SearchProviderError(str(message))
    return payload.get("items") or []
