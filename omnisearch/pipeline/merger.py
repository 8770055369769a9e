"""Reconciles confirmed (direct) and inferred (listing) entity streams."""

import logging
from typing import Iterable, List, Optional, Sequence, Set

from omnisearch.core.models import Candidate, ClassifiedEntity, MergedEntity, UNKNOWN_LAYER, normalize_handle

logger = logging.getLogger(__name__)


def _name_key(name: Optional[str]) -> str:
    return (name or "").strip().lower()


def find_source_candidate(entity: ClassifiedEntity, candidates: Iterable[Candidate]) -> Optional[Candidate]:
    """First candidate whose link equals the entity URL or contains its handle."""
    handle = normalize_handle(entity.handle)
    for candidate in candidates:
        if entity.url and candidate.link == entity.url:
            return candidate
        if handle and handle in candidate.link.lower():
            return candidate
    return None


def merge(
    primary: Sequence[ClassifiedEntity],
    secondary: Sequence[ClassifiedEntity],
    source_candidates: Sequence[Candidate],
) -> List[MergedEntity]:
    merged: List[MergedEntity] = []
    seen_handles: Set[str] = set()
    seen_names: Set[str] = set()

    for entity in primary:
        handle = normalize_handle(entity.handle)
        if handle:
            if handle in seen_handles:
                continue
            seen_handles.add(handle)
        merged.append(MergedEntity.from_classified(entity))
        seen_names.add(_name_key(entity.name))

    added = 0
    for entity in secondary:
        handle = normalize_handle(entity.handle)
        if handle:
            if handle in seen_handles:
                continue
            seen_handles.add(handle)
        elif _name_key(entity.name) in seen_names:
            continue
        merged.append(MergedEntity.from_classified(entity))
        seen_names.add(_name_key(entity.name))
        added += 1

    for entity in merged:
        source = find_source_candidate(entity, source_candidates)
        if source is None:
            entity.layer = UNKNOWN_LAYER
            continue
        if not entity.logo:
            entity.logo = source.logo_url
        entity.layer = source.layer
        entity.strategy = source.strategy
        entity.channel = source.channel

    logger.info("Merged %d primary + %d new secondary entities -> %d", len(primary), added, len(merged))
    return merged
