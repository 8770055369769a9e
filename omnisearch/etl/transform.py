"""Utilities for transforming discovered entities into database rows."""

import logging
import re
from typing import Any, Dict, Optional

from omnisearch.core.models import UNKNOWN_LOCATION, MergedEntity, normalize_handle

logger = logging.getLogger(__name__)

# Keywords feed the signal score only; they never filter anything out.
SCORE_KEYWORDS = (
    "club", "group", "community", "gym", "fitness", "studio", "training", "arena",
    "workout", "health", "sports", "exercise", "fit", "wellness", "crossfit",
    "yoga", "zumba", "pilates", "martial", "boxing", "running", "cycling",
    "academy", "association", "team", "squad", "warriors", "riders", "walkers",
    "collective", "crew", "movement", "run", "marathon", "triathlon",
    "💪", "🏋️", "🏃", "🧘", "🥊", "🚴", "🏸", "🎾",
)
FOLLOWER_TIERS = ((10000, 30), (5000, 20), (1000, 10), (500, 5))
_FOLLOWERS_RE = re.compile(r"(\d[\d,]*(?:\.\d+)?)\s*(?:([kmb])(?![a-z]))?", re.IGNORECASE)
_MULTIPLIERS = {"k": 1_000, "m": 1_000_000, "b": 1_000_000_000}


def parse_follower_count(value: Any) -> int:
    """Turn '12.5k', '1.2M', '800' or 1500 into an integer; 0 when unknown."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    match = _FOLLOWERS_RE.search(str(value))
    if not match:
        return 0
    number = float(match.group(1).replace(",", ""))
    suffix = (match.group(2) or "").lower()
    return int(number * _MULTIPLIERS.get(suffix, 1))


def _scored_text(name: Optional[str], bio: Optional[str]) -> str:
    return f"{name or ''} {bio or ''}".lower()


def count_keywords(name: Optional[str], bio: Optional[str]) -> int:
    text = _scored_text(name, bio)
    return sum(1 for keyword in SCORE_KEYWORDS if keyword.lower() in text)


def calculate_signal_score(name: Optional[str], bio: Optional[str], followers: int) -> int:
    score = count_keywords(name, bio) * 5
    for threshold, points in FOLLOWER_TIERS:
        if followers >= threshold:
            score += points
            break
    return min(score, 100)


def truncate_for_db(text: Any, max_length: int = 95) -> str:
    if text is None:
        return ""
    value = str(text)
    if len(value) <= max_length:
        return value
    return value[:max_length] + "..."


def to_club_row(entity: MergedEntity, fallback_city: Optional[str]) -> Dict[str, Any]:
    handle = normalize_handle(entity.handle)
    bio = entity.reasoning or ""
    followers = parse_follower_count(entity.followers)
    city = fallback_city if fallback_city and fallback_city != UNKNOWN_LOCATION else None

    return {
        "instagram_handle": handle,
        "name": truncate_for_db(entity.name or handle, 95),
        "bio": truncate_for_db(bio, 500),
        "followers": followers,
        "city": truncate_for_db(city, 95) if city else None,
        "category": entity.category,
        "subcategory": entity.subcategory,
        "logo_url": entity.logo,
        "profile_url": entity.url,
        "signal_score": calculate_signal_score(entity.name, bio, followers),
        "source_layer": entity.layer,
        "trust": entity.trust,
    }
