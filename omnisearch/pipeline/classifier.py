"""Batched entity classification with primary/fallback model tiers."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from omnisearch.core.models import (
    CHANNEL_DIRECT,
    CHANNEL_LISTING,
    CONFIRMED,
    INFERRED,
    Candidate,
    ClassifiedEntity,
    ErrorLog,
    coerce_category,
)
from omnisearch.pipeline.prompts import build_direct_prompt, build_listing_prompt
from omnisearch.vendors.llm import generate_with_fallback, parse_json_response

logger = logging.getLogger(__name__)

PromptBuilder = Callable[[str, str, List[Dict[str, Any]]], str]
_NULL_STRINGS = {"", "null", "none", "n/a", "unknown"}


@dataclass(frozen=True)
class ChannelConfig:
    """Per-channel extraction instructions and batch size."""

    name: str
    batch_size: int
    prompt_builder: PromptBuilder
    trust: str


def direct_channel(batch_size: int = 50) -> ChannelConfig:
    return ChannelConfig(CHANNEL_DIRECT, batch_size, build_direct_prompt, CONFIRMED)


def listing_channel(batch_size: int = 10) -> ChannelConfig:
    return ChannelConfig(CHANNEL_LISTING, batch_size, build_listing_prompt, INFERRED)


def _clean_optional(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list, bool)):
        return None
    text = str(value).strip()
    if text.lower() in _NULL_STRINGS:
        return None
    return text


def entity_from_item(item: Any, trust: str) -> Optional[ClassifiedEntity]:
    """Validate one model-emitted object; returns None when it has no usable name."""
    if not isinstance(item, dict):
        return None
    name = _clean_optional(item.get("name"))
    if not name:
        return None
    return ClassifiedEntity(
        name=name,
        category=coerce_category(item.get("category")),
        handle=_clean_optional(item.get("handle")),
        subcategory=_clean_optional(item.get("subcategory")),
        followers=_clean_optional(item.get("followers")),
        logo=_clean_optional(item.get("logo")),
        reasoning=_clean_optional(item.get("reasoning")) or "",
        url=_clean_optional(item.get("url")),
        trust=trust,
    )


def partition(candidates: Sequence[Candidate], batch_size: int) -> List[List[Candidate]]:
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")
    return [list(candidates[i:i + batch_size]) for i in range(0, len(candidates), batch_size)]


class BatchClassifier:
    def __init__(self, client: Any, primary_model: str, fallback_model: str, channel: ChannelConfig) -> None:
        self.client = client
        self.primary_model = primary_model
        self.fallback_model = fallback_model
        self.channel = channel

    async def classify(
        self,
        candidates: Sequence[Candidate],
        query: str,
        location: str,
        errors: Optional[ErrorLog] = None,
    ) -> List[ClassifiedEntity]:
        """Classify every batch concurrently; a failed batch contributes nothing."""
        batches = partition(candidates, self.channel.batch_size)
        if not batches:
            return []

        logger.info(
            "Classifying %d %s candidates in %d batches",
            len(candidates),
            self.channel.name,
            len(batches),
        )
        results = await asyncio.gather(
            *(
                self._classify_batch(index, len(batches), batch, query, location, errors)
                for index, batch in enumerate(batches)
            )
        )
        entities = [entity for batch_entities in results for entity in batch_entities]
        logger.info("%s channel identified %d entities", self.channel.name, len(entities))
        return entities

    async def _classify_batch(
        self,
        index: int,
        total: int,
        batch: List[Candidate],
        query: str,
        location: str,
        errors: Optional[ErrorLog],
    ) -> List[ClassifiedEntity]:
        prompt = self.channel.prompt_builder(query, location, [c.to_prompt_input() for c in batch])
        try:
            raw = await generate_with_fallback(self.client, prompt, self.primary_model, self.fallback_model)
            items = parse_json_response(raw, expect=list)
        except Exception as exc:  # noqa: BLE001
            message = f"{self.channel.name} batch {index + 1}/{total} failed: {exc}"
            logger.error(message)
            if errors is not None:
                errors.add(message)
            return []

        entities = []
        for item in items:
            entity = entity_from_item(item, self.channel.trust)
            if entity is not None:
                entities.append(entity)
        return entities
