"""Writes merged entities to the clubs table."""

import logging
from typing import Iterable, Optional, Tuple

import psycopg2

from omnisearch.core.db import init_pool, upsert_club
from omnisearch.core.models import MergedEntity
from omnisearch.etl.transform import to_club_row

logger = logging.getLogger(__name__)


def save_entities(entities: Iterable[MergedEntity], city: Optional[str] = None) -> Tuple[int, int]:
    """Upsert every entity that has a handle; returns ``(saved, failed)``.

    Entities without a handle have no upsert key and are skipped. A failing row is
    logged and counted, never raised. When the database is unreachable or not
    configured, every keyed row counts as failed.
    """
    rows = []
    for entity in entities:
        row = to_club_row(entity, fallback_city=city)
        if not row["instagram_handle"]:
            logger.debug("Skipping %r without a handle", entity.name)
            continue
        rows.append(row)

    try:
        init_pool()
    except (RuntimeError, psycopg2.Error) as exc:
        logger.error("Database unavailable, %d rows not saved: %s", len(rows), exc)
        return 0, len(rows)

    saved = 0
    failed = 0
    for row in rows:
        try:
            upsert_club(row)
        except Exception as exc:  # noqa: BLE001
            logger.error("Failed to upsert @%s: %s", row["instagram_handle"], exc)
            failed += 1
            continue
        saved += 1
        logger.info(
            "Saved @%s | score %d | %d followers",
            row["instagram_handle"],
            row["signal_score"],
            row["followers"],
        )
    return saved, failed
