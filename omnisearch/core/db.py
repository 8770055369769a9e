"""Database helpers for persisting discovered clubs."""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Optional

from psycopg2 import pool

from omnisearch.core.config import get_settings

logger = logging.getLogger(__name__)

_connection_pool: Optional[pool.SimpleConnectionPool] = None
_MAX_CONNECTIONS = 4


def init_pool() -> pool.SimpleConnectionPool:
    """Return the shared pool, creating it on first use; raises when unconfigured."""
    global _connection_pool
    if _connection_pool is None:
        settings = get_settings()
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL is required for database connections")
        _connection_pool = pool.SimpleConnectionPool(
            1,
            _MAX_CONNECTIONS,
            dsn=settings.database_url,
            connect_timeout=10,
        )
        logger.info("Database connection pool initialised")
    return _connection_pool


@contextmanager
def transaction():
    """Yield a cursor on a pooled connection; commit on success, roll back on error."""
    pg_pool = init_pool()
    conn = pg_pool.getconn()
    try:
        with conn.cursor() as cur:
            yield cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        pg_pool.putconn(conn)


_CLUB_COLUMNS = (
    "instagram_handle",
    "name",
    "bio",
    "followers",
    "city",
    "category",
    "subcategory",
    "logo_url",
    "profile_url",
    "signal_score",
    "source_layer",
    "trust",
)


def _prepare_params(row: Dict[str, Any]) -> Dict[str, Any]:
    params = {column: row.get(column) for column in _CLUB_COLUMNS}
    params["followers"] = int(params["followers"] or 0)
    params["signal_score"] = int(params["signal_score"] or 0)
    return params


_UPSERT_CLUB = """
INSERT INTO clubs (
    instagram_handle,
    name,
    bio,
    followers,
    city,
    category,
    subcategory,
    logo_url,
    profile_url,
    signal_score,
    source_layer,
    trust,
    updated_at
) VALUES (
    %(instagram_handle)s,
    %(name)s,
    %(bio)s,
    %(followers)s,
    %(city)s,
    %(category)s,
    %(subcategory)s,
    %(logo_url)s,
    %(profile_url)s,
    %(signal_score)s,
    %(source_layer)s,
    %(trust)s,
    NOW()
)
ON CONFLICT (instagram_handle) DO UPDATE SET
    name = EXCLUDED.name,
    bio = EXCLUDED.bio,
    followers = EXCLUDED.followers,
    city = COALESCE(EXCLUDED.city, clubs.city),
    category = EXCLUDED.category,
    subcategory = EXCLUDED.subcategory,
    logo_url = COALESCE(EXCLUDED.logo_url, clubs.logo_url),
    profile_url = COALESCE(EXCLUDED.profile_url, clubs.profile_url),
    signal_score = EXCLUDED.signal_score,
    source_layer = EXCLUDED.source_layer,
    trust = EXCLUDED.trust,
    updated_at = NOW();
"""


def upsert_club(row: Dict[str, Any]) -> None:
    """Persist a club dictionary, performing an idempotent upsert keyed by handle."""
    params = _prepare_params(row)
    if not params["instagram_handle"] or not params["name"]:
        raise ValueError("instagram_handle and name are required for upsert")

    with transaction() as cur:
        cur.execute(_UPSERT_CLUB, params)
    logger.debug("Upserted club @%s", params["instagram_handle"])
