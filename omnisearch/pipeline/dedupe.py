"""First-seen-wins deduplication of raw hits by canonical URL."""

import logging
from typing import Any, Dict, Iterable, List, Optional, Set

from omnisearch.core.models import Candidate, RawHit

logger = logging.getLogger(__name__)


def _first(pagemap: Dict[str, Any], key: str) -> Dict[str, Any]:
    values = pagemap.get(key)
    if isinstance(values, list) and values and isinstance(values[0], dict):
        return values[0]
    return {}


def to_candidate(hit: RawHit) -> Candidate:
    """Normalize page metadata: og:image, else cse_image; description defaults to ''."""
    pagemap = hit.pagemap if isinstance(hit.pagemap, dict) else {}
    metatags = _first(pagemap, "metatags")
    cse_image = _first(pagemap, "cse_image").get("src")

    return Candidate(
        title=hit.title,
        link=hit.link,
        snippet=hit.snippet,
        og_description=metatags.get("og:description") or "",
        logo_url=metatags.get("og:image") or cse_image or None,
        phrase=hit.phrase,
        layer=hit.layer,
        strategy=hit.strategy,
        channel=hit.channel,
    )


class Deduplicator:
    """Keeps one candidate per URL across every channel it is fed.

    The seen-set lives on the instance, so feeding the direct channel and then the
    listing channel through the same Deduplicator attributes a shared URL to the
    channel that reached it first.
    """

    def __init__(self, seen: Optional[Set[str]] = None) -> None:
        self.seen: Set[str] = seen if seen is not None else set()

    def dedupe(self, hits: Iterable[RawHit]) -> List[Candidate]:
        unique: List[Candidate] = []
        total = 0
        for hit in hits:
            total += 1
            if not hit.link or hit.link in self.seen:
                continue
            self.seen.add(hit.link)
            unique.append(to_candidate(hit))
        logger.info("Deduplicated %d raw hits -> %d unique candidates", total, len(unique))
        return unique


def dedupe(hits: Iterable[RawHit], seen: Optional[Set[str]] = None) -> List[Candidate]:
    return Deduplicator(seen).dedupe(hits)
