"""CLI job that sweeps a city across many fitness topics and persists every entity found."""

import argparse
import logging
import time
from typing import Dict, List, Optional, Sequence

from omnisearch.core.models import MergedEntity, SearchPhrase, normalize_handle
from omnisearch.etl.load import save_entities
from omnisearch.jobs.run_search import run_search

logger = logging.getLogger(__name__)

DEFAULT_TOPICS = (
    "run club",
    "running community",
    "cycling club",
    "bikers group",
    "gym",
    "crossfit",
    "yoga",
    "marathon",
    "badminton",
    "tennis",
    "sports academy",
    "wellness",
    "fitness events",
)


def _entity_key(entity: MergedEntity) -> str:
    return normalize_handle(entity.handle) or f"name:{entity.name.strip().lower()}"


def run_dragnet_job(
    *,
    city: str,
    topics: Sequence[str] = DEFAULT_TOPICS,
    known_handles: Sequence[str] = (),
    persist: bool = True,
) -> Dict[str, int]:
    """Run one search per topic for ``city`` and upsert the union of the results.

    Nothing is filtered: every entity with a handle is saved, and curation happens
    in the database afterwards using ``signal_score``.
    Known handles ride along with the first topic whose search succeeds.
    """
    city = (city or "").strip()
    if not city:
        raise ValueError("city is required")

    started = time.monotonic()
    known = [SearchPhrase(handle.lstrip("@"), "Known") for handle in known_handles if handle.strip("@ ")]
    logger.info("Dragnet over %s: %d topics, %d known handles", city, len(topics), len(known))

    collected: Dict[str, MergedEntity] = {}
    pending_known = known
    succeeded = 0
    failed = 0
    for index, topic in enumerate(topics):
        query = f"{topic} in {city}"
        try:
            response = run_search(query, extra_phrases=pending_known)
        except Exception as exc:  # noqa: BLE001
            logger.error("[%d/%d] %r failed: %s", index + 1, len(topics), query, exc)
            failed += 1
            continue

        succeeded += 1
        pending_known = []
        new = 0
        for entity in response.results:
            key = _entity_key(entity)
            if key not in collected:
                collected[key] = entity
                new += 1
        logger.info(
            "[%d/%d] %r -> %d entities, +%d new (total %d)",
            index + 1,
            len(topics),
            query,
            len(response.results),
            new,
            len(collected),
        )

    saved = errors = 0
    if persist and collected:
        saved, errors = save_entities(collected.values(), city=city)

    report = {
        "topics_scanned": len(topics),
        "topics_succeeded": succeeded,
        "topics_failed": failed,
        "unique_entities": len(collected),
        "saved": saved,
        "errors": errors,
        "duration_seconds": int(time.monotonic() - started),
    }
    logger.info("Dragnet complete: %s", report)
    return report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sweep a city for fitness communities and persist them")
    parser.add_argument("--city", required=True, help="City to sweep, e.g. Visakhapatnam")
    parser.add_argument(
        "--topic",
        dest="topics",
        action="append",
        help="Topic seed (repeatable); defaults to a broad fitness/sports list",
    )
    parser.add_argument(
        "--handle",
        dest="known_handles",
        action="append",
        default=[],
        help="Known club handle searched directly (repeatable)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Search only, do not write to the database")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    args = build_parser().parse_args(argv)

    run_dragnet_job(
        city=args.city,
        topics=args.topics or DEFAULT_TOPICS,
        known_handles=args.known_handles,
        persist=not args.dry_run,
    )


if __name__ == "__main__":
    main()
