"""Concurrent paginated search across phrases and strategies."""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from omnisearch.core.models import CHANNEL_DIRECT, CHANNEL_LISTING, ErrorLog, RawHit, SearchPhrase, Strategy

logger = logging.getLogger(__name__)

PLATFORM_DIRECT = Strategy("platform-direct", "site:instagram.com {phrase}", pages=4, channel=CHANNEL_DIRECT)
OPEN_WEB = Strategy("open-web", "{phrase} instagram", pages=1, channel=CHANNEL_LISTING)
LISTING_DISCOVERY = Strategy(
    "listing-discovery",
    '{phrase} ("top" OR "best" OR "list of")',
    pages=2,
    channel=CHANNEL_LISTING,
)

PagesOverride = Union[int, Mapping[str, int], None]


def default_strategies(direct_pages: int = PLATFORM_DIRECT.pages) -> List[Strategy]:
    return [
        Strategy(PLATFORM_DIRECT.name, PLATFORM_DIRECT.template, direct_pages, PLATFORM_DIRECT.channel),
        OPEN_WEB,
        LISTING_DISCOVERY,
    ]


class SearchFanout:
    """Launches every (phrase, strategy, page) request at once and joins them.

    ``search_page_fn(query, num, start)`` is a blocking provider call; it runs in a
    worker thread so the event loop is never blocked.
    """

    def __init__(self, search_page_fn: Callable[[str, int, int], List[Dict[str, Any]]], page_size: int = 10) -> None:
        self.search_page_fn = search_page_fn
        self.page_size = page_size

    def page_offsets(self, pages: int) -> List[int]:
        return [1 + index * self.page_size for index in range(max(pages, 0))]

    @staticmethod
    def _pages_for(strategy: Strategy, override: PagesOverride) -> int:
        if isinstance(override, int):
            return override
        if override and strategy.name in override:
            return override[strategy.name]
        return strategy.pages

    async def search(
        self,
        phrases: Sequence[SearchPhrase],
        strategies: Sequence[Strategy],
        pages_per_strategy: PagesOverride = None,
        errors: Optional[ErrorLog] = None,
    ) -> List[RawHit]:
        tasks = []
        for phrase in phrases:
            for strategy in strategies:
                for start in self.page_offsets(self._pages_for(strategy, pages_per_strategy)):
                    tasks.append(self._fetch_page(phrase, strategy, start, errors))

        logger.info(
            "Fanning out %d page requests (%d phrases x %d strategies)",
            len(tasks),
            len(phrases),
            len(strategies),
        )
        pages = await asyncio.gather(*tasks)
        hits = [hit for page in pages for hit in page]
        logger.info("Fan-out returned %d raw hits", len(hits))
        return hits

    async def _fetch_page(
        self,
        phrase: SearchPhrase,
        strategy: Strategy,
        start: int,
        errors: Optional[ErrorLog],
    ) -> List[RawHit]:
        query = strategy.compose(phrase.text)
        try:
            items = await asyncio.to_thread(self.search_page_fn, query, self.page_size, start)
        except Exception as exc:  # noqa: BLE001
            message = f"search [{strategy.name}/{phrase.layer}] {query!r} page {start} failed: {exc}"
            logger.warning(message)
            if errors is not None:
                errors.add(message)
            return []

        hits: List[RawHit] = []
        for item in items or []:
            if not isinstance(item, dict) or not item.get("link"):
                continue
            hits.append(
                RawHit(
                    title=item.get("title") or "",
                    link=item["link"],
                    snippet=item.get("snippet") or "",
                    pagemap=item.get("pagemap") or {},
                    phrase=phrase.text,
                    layer=phrase.layer,
                    strategy=strategy.name,
                    channel=strategy.channel,
                    start=start,
                )
            )
        logger.debug("[%s/%s] page %d -> %d hits", strategy.name, phrase.layer, start, len(hits))
        return hits
