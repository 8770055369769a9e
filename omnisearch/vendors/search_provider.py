"""Selects the configured web search provider behind a single page-fetch callable."""

import logging
from typing import Any, Callable, Dict, List, Optional

from omnisearch.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

SearchPageFn = Callable[[str, int, int], List[Dict[str, Any]]]


class SearchProviderError(RuntimeError):
    """Raised when a search provider is misconfigured or returns an error payload."""


def build_search_page_fn(settings: Optional[Settings] = None) -> SearchPageFn:
    """Return ``fn(query, num, start) -> items`` bound to the configured provider.

    Items always carry ``title``, ``link``, ``snippet`` and ``pagemap`` keys so the
    rest of the pipeline never needs to know which provider answered.
    """
    settings = settings or get_settings()

    if settings.search_provider == "serpapi":
        from omnisearch.vendors import serp_search

        def _serpapi_page(query: str, num: int, start: int) -> List[Dict[str, Any]]:
            if not settings.serpapi_api_key:
                raise SearchProviderError("SERPAPI_API_KEY is not configured")
            return serp_search.search_page(query, settings.serpapi_api_key, num=num, start=start)

        return _serpapi_page

    from omnisearch.vendors import google_cse

    def _cse_page(query: str, num: int, start: int) -> List[Dict[str, Any]]:
        if not settings.google_search_api_key or not settings.google_search_cx:
            raise SearchProviderError("GOOGLE_SEARCH_API_KEY and GOOGLE_SEARCH_CX are required")
        return google_cse.search_page(
            query,
            api_key=settings.google_search_api_key,
            cx=settings.google_search_cx,
            num=num,
            start=start,
        )

    return _cse_page
