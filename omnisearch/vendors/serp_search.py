"""SerpAPI Google web search helpers, an alternative to Custom Search."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from serpapi import GoogleSearch

from omnisearch.vendors.search_provider import SearchProviderError

logger = logging.getLogger(__name__)


def build_serpapi_params(query: str, api_key: str, num: int = 10, start: int = 1) -> Dict[str, Any]:
    """Construct SerpAPI request parameters for the Google web engine.

    ``start`` follows the Custom Search convention (1-based); SerpAPI is 0-based.
    """
    if not query or not query.strip():
        raise ValueError("Query must be provided for SerpAPI lookups.")

    return {
        "engine": "google",
        "q": query.strip(),
        "api_key": api_key,
        "num": num,
        "start": max(start - 1, 0),
    }


def search_page(query: str, api_key: str, num: int = 10, start: int = 1) -> List[Dict[str, Any]]:
    """Call SerpAPI once and return organic results shaped like Custom Search items.

    SerpAPI charges per request; no retries are attempted here.
    """
    params = build_serpapi_params(query, api_key, num=num, start=start)
    logger.debug("Calling SerpAPI for q=%s start=%s", query, params["start"])
    data = GoogleSearch(params).get_dict()
    if not data:
        raise SearchProviderError("SerpAPI returned an empty payload.")
    if "error" in data:
        message = data.get("error") or data
        # SerpAPI reports an empty result page as an error string.
        if isinstance(message, str) and "hasn't returned any results" in message:
            return []
        raise SearchProviderError(f"SerpAPI returned an error response: {message}")
    return parse_organic_results(data)


def parse_organic_results(data: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Extract organic results into ``{title, link, snippet, pagemap}`` items."""
    if not data:
        return []

    raw_items = data.get("organic_results")
    if not isinstance(raw_items, list):
        logger.warning("SerpAPI response missing organic_results. keys=%s", list(data.keys())[:10])
        return []

    items: List[Dict[str, Any]] = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            continue
        link = _strip_or_none(raw.get("link"))
        if not link:
            continue

        pagemap: Dict[str, Any] = {}
        thumbnail = _strip_or_none(raw.get("thumbnail"))
        if thumbnail:
            pagemap["cse_image"] = [{"src": thumbnail}]

        items.append(
            {
                "title": _strip_or_none(raw.get("title")) or "",
                "link": link,
                "snippet": _strip_or_none(raw.get("snippet")) or "",
                "pagemap": pagemap,
            }
        )
    return items


def _strip_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    value_str = str(value).strip()
    return value_str or None
