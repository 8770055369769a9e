"""Omni-search pipeline entrypoint: expand, fan out, dedupe, classify, merge."""

import argparse
import asyncio
import json
import logging
import time
from typing import Any, Dict, Iterable, List, Optional, Sequence

from omnisearch.core.config import Settings, get_settings
from omnisearch.core.models import (
    CHANNEL_DIRECT,
    CHANNEL_LISTING,
    Candidate,
    ErrorLog,
    Expansion,
    SearchPhrase,
    SearchResponse,
    Strategy,
)
from omnisearch.pipeline.classifier import BatchClassifier, direct_channel, listing_channel
from omnisearch.pipeline.dedupe import Deduplicator
from omnisearch.pipeline.expander import QueryExpander
from omnisearch.pipeline.fanout import SearchFanout, default_strategies
from omnisearch.pipeline.merger import merge
from omnisearch.vendors.llm import GenerativeClient
from omnisearch.vendors.search_provider import SearchPageFn, build_search_page_fn

logger = logging.getLogger(__name__)


def _split_channels(candidates: Iterable[Candidate]) -> Dict[str, List[Candidate]]:
    channels: Dict[str, List[Candidate]] = {CHANNEL_DIRECT: [], CHANNEL_LISTING: []}
    for candidate in candidates:
        channels.setdefault(candidate.channel, []).append(candidate)
    return channels


def _build_meta(
    expansion: Expansion,
    phrases: Sequence[SearchPhrase],
    strategies: Sequence[Strategy],
    candidates: Sequence[Candidate],
    started: float,
) -> Dict[str, Any]:
    return {
        "query": expansion.query,
        "location": expansion.location,
        "intent": expansion.intent,
        "candidates_scanned": len(candidates),
        "queries_used": len(phrases),
        "layers_used": len({phrase.layer for phrase in phrases}),
        "strategies_used": [strategy.name for strategy in strategies],
        "degraded_expansion": expansion.degraded,
        "elapsed_ms": int((time.monotonic() - started) * 1000),
    }


def _empty_hint(settings: Settings) -> Dict[str, Any]:
    status = settings.credential_status()
    missing = [name for name, present in status.items() if not present]
    if missing:
        hint = "No candidates found; check configuration, missing: " + ", ".join(missing)
    else:
        hint = "No candidates found for this query; configuration looks complete."
    return {"hint": hint, "config": status}


async def run_search_async(
    query: str,
    *,
    settings: Optional[Settings] = None,
    search_page_fn: Optional[SearchPageFn] = None,
    client: Any = None,
    strategies: Optional[Sequence[Strategy]] = None,
    extra_phrases: Sequence[SearchPhrase] = (),
) -> SearchResponse:
    """Run the full discovery pipeline for one query.

    Only a blank query raises (``ValueError``); every provider or model failure is
    absorbed per page or per batch and reported in ``SearchResponse.errors``.
    """
    query = (query or "").strip()
    if not query:
        raise ValueError("Query required")

    settings = settings or get_settings()
    started = time.monotonic()
    errors = ErrorLog()
    owns_client = client is None
    client = client or GenerativeClient.from_settings(settings)
    strategies = list(strategies or default_strategies(settings.pagination_pages))

    logger.info("OMNI-SEARCH: %r", query)
    try:
        expander = QueryExpander(
            client,
            settings.primary_model,
            settings.fallback_model,
            phrase_count=settings.expansion_phrase_count,
        )
        expansion = await expander.expand(query, errors)
        phrases = list(expansion.phrases) + list(extra_phrases)

        fanout = SearchFanout(search_page_fn or build_search_page_fn(settings), page_size=settings.search_page_size)
        hits = await fanout.search(phrases, strategies, errors=errors)

        # One pass over the joined hits: a URL found by both channels stays with the first.
        candidates = Deduplicator().dedupe(hits)
        meta = _build_meta(expansion, phrases, strategies, candidates, started)
        if not candidates:
            meta.update(_empty_hint(settings))
            logger.warning("No candidates for %r: %s", query, meta["hint"])
            return SearchResponse(meta=meta, results=[], errors=errors.as_list())

        channels = _split_channels(candidates)
        direct = BatchClassifier(
            client,
            settings.primary_model,
            settings.fallback_model,
            direct_channel(settings.direct_batch_size),
        )
        listing = BatchClassifier(
            client,
            settings.primary_model,
            settings.fallback_model,
            listing_channel(settings.listing_batch_size),
        )
        confirmed, inferred = await asyncio.gather(
            direct.classify(channels[CHANNEL_DIRECT], query, expansion.location, errors),
            listing.classify(channels[CHANNEL_LISTING], query, expansion.location, errors),
        )

        results = merge(confirmed, inferred, candidates)
    finally:
        if owns_client:
            await client.aclose()

    meta["elapsed_ms"] = int((time.monotonic() - started) * 1000)
    meta["channels"] = {name: len(items) for name, items in channels.items()}
    logger.info(
        "Identified %d entities from %d candidates in %dms (%d non-fatal errors)",
        len(results),
        len(candidates),
        meta["elapsed_ms"],
        len(errors),
    )
    return SearchResponse(meta=meta, results=results, errors=errors.as_list())


def run_search(query: str, **kwargs: Any) -> SearchResponse:
    """Synchronous wrapper for callers without a running event loop."""
    return asyncio.run(run_search_async(query, **kwargs))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Discover fitness communities for a query")
    parser.add_argument("query", help="Free-text query, e.g. 'run clubs in Vizag'")
    parser.add_argument(
        "--persist",
        action="store_true",
        help="Upsert discovered entities with a handle into the clubs table",
    )
    return parser


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    args = build_parser().parse_args()

    response = run_search(args.query)
    print(json.dumps(response.to_dict(), indent=2, ensure_ascii=False))

    if args.persist:
        from omnisearch.etl.load import save_entities

        saved, failed = save_entities(response.results, city=response.meta.get("location"))
        logger.info("Persisted %d entities (%d failed)", saved, failed)


if __name__ == "__main__":
    main()
