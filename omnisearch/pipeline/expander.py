"""Turns one natural-language query into structured search phrases."""

import logging
from typing import Any, List, Optional

from omnisearch.core.models import UNKNOWN_LOCATION, ErrorLog, Expansion, SearchPhrase
from omnisearch.pipeline.prompts import build_expansion_prompt
from omnisearch.vendors.llm import ResponseParseError, generate_with_fallback, parse_json_response

logger = logging.getLogger(__name__)

FALLBACK_SUFFIXES = (
    ("Community", "club"),
    ("Community", "community"),
    ("Hybrid", "fitness"),
    ("Event", "event"),
)
MAX_PHRASE_TOKENS = 6


def degraded_expansion(query: str) -> Expansion:
    """Deterministic expansion used when the model cannot be reached or understood."""
    phrases = [SearchPhrase(query, "Standard")]
    phrases.extend(SearchPhrase(f"{query} {suffix}", layer) for layer, suffix in FALLBACK_SUFFIXES)
    return Expansion(
        query=query,
        location=UNKNOWN_LOCATION,
        intent=query,
        phrases=tuple(phrases),
        degraded=True,
    )


def _parse_phrases(raw_queries: Any, query: str, limit: int) -> List[SearchPhrase]:
    phrases = [SearchPhrase(query, "Standard")]
    if not isinstance(raw_queries, list):
        return phrases

    for item in raw_queries:
        if isinstance(item, dict):
            text, layer = item.get("phrase"), item.get("layer")
        else:
            text, layer = item, None
        if not isinstance(text, str) or not text.strip():
            continue
        text = " ".join(text.split()[:MAX_PHRASE_TOKENS])
        layer = layer.strip() if isinstance(layer, str) and layer.strip() else "Standard"
        phrases.append(SearchPhrase(text, layer))
        if len(phrases) > limit:
            break
    return phrases


class QueryExpander:
    def __init__(self, client: Any, primary_model: str, fallback_model: str, phrase_count: int = 12) -> None:
        self.client = client
        self.primary_model = primary_model
        self.fallback_model = fallback_model
        self.phrase_count = phrase_count

    async def expand(self, query: str, errors: Optional[ErrorLog] = None) -> Expansion:
        """Expand ``query``; never raises, degrading to fixed suffix variants instead."""
        prompt = build_expansion_prompt(query, self.phrase_count)
        try:
            raw = await generate_with_fallback(self.client, prompt, self.primary_model, self.fallback_model)
            data = parse_json_response(raw, expect=dict)
        except ResponseParseError as exc:
            return self._degrade(query, f"expansion output unparsable: {exc}", errors)
        except Exception as exc:  # noqa: BLE001
            return self._degrade(query, f"expansion failed: {exc}", errors)

        location = data.get("location")
        intent = data.get("intent")
        expansion = Expansion(
            query=query,
            location=location.strip() if isinstance(location, str) and location.strip() else UNKNOWN_LOCATION,
            intent=intent.strip() if isinstance(intent, str) and intent.strip() else query,
            phrases=tuple(_parse_phrases(data.get("queries"), query, self.phrase_count)),
        )
        logger.info(
            "Expanded %r into %d phrases (location=%s intent=%s)",
            query,
            len(expansion.phrases),
            expansion.location,
            expansion.intent,
        )
        return expansion

    @staticmethod
    def _degrade(query: str, reason: str, errors: Optional[ErrorLog]) -> Expansion:
        logger.warning("Query expansion degraded for %r: %s", query, reason)
        if errors is not None:
            errors.add(reason)
        return degraded_expansion(query)
