"""Prompt templates for query expansion and entity classification.

Prompts are plain builders so the wording can change without touching the
pipeline; the category list always comes from ``CATEGORIES``.
"""

import json
from typing import Any, Dict, List

from omnisearch.core.models import CATEGORIES

EXPANSION_LAYERS = ("Standard", "Community", "Abstract", "Sports", "Event", "Hybrid")


def _category_list() -> str:
    return ", ".join(f'"{category}"' for category in CATEGORIES)


def build_expansion_prompt(query: str, phrase_count: int) -> str:
    layers = ", ".join(EXPANSION_LAYERS)
    return f"""
You are a search strategist for discovering local fitness and sports communities on Instagram.

USER QUERY: "{query}"

TASK:
1. Extract the location (city or area) the user means. Use "unknown" if there is none.
2. Describe the user's intent in a few words.
3. Write {phrase_count} short search phrases (2-6 words each) that would surface relevant
   clubs, communities, venues and events. Spread them across these layers: {layers}.
   Include local nicknames of the location where they exist (e.g. "Vizag" for Visakhapatnam).

RESPONSE FORMAT (JSON object ONLY):
{{
  "location": "Visakhapatnam",
  "intent": "running communities",
  "queries": [
    {{"phrase": "vizag run club", "layer": "Standard"}},
    {{"phrase": "visakhapatnam runners tribe", "layer": "Community"}}
  ]
}}
"""


_SHARED_RULES = f"""
CATEGORIES (use exactly one): {_category_list()}.

RELEVANCE RULES:
- Prefer inclusion over exclusion when the evidence is ambiguous.
- REJECT only results that are clearly off-topic or clearly in a different location.
- NEVER reject on the name alone; the bio/description decides relevance. Abstract or vibe
  names like "Daa Scene", "The Tribe" or "Hyfit" are fine.
- REJECT random personal profiles unless they are clearly a coach or a brand.
"""


def build_direct_prompt(query: str, location: str, batch: List[Dict[str, Any]]) -> str:
    return f"""
You are the "Omni-Search Intelligence" API.
Your goal is to identify ALL valid fitness entities from the Instagram search results below.

USER QUERY: "{query}"
LOCATION: "{location}"

INSTRUCTIONS:
1. Analyze each result and decide whether it matches the user's intent.
2. CLASSIFY each match into one category.
3. EXTRACT the exact follower count (e.g. "12.5k", "800") from 'ogDescription' or the text.
4. REASONING: a very short (3-5 words) explanation of why it matched.
{_SHARED_RULES}
INPUT DATA:
{json.dumps(batch, indent=2, ensure_ascii=False)}

RESPONSE FORMAT (JSON Array ONLY):
[
  {{
    "name": "Club Name",
    "handle": "@handle",
    "category": "Club",
    "subcategory": "Running",
    "followers": "12k",
    "logo": "url_from_input_if_valid_otherwise_null",
    "reasoning": "Explicit run club match",
    "url": "https://instagram.com/..."
  }}
]
"""


def build_listing_prompt(query: str, location: str, batch: List[Dict[str, Any]]) -> str:
    return f"""
You are the "Omni-Search Intelligence" API.
The web pages below are articles, directories and listings. Extract EVERY fitness or sports
community, club, venue or event mentioned in them.

USER QUERY: "{query}"
LOCATION: "{location}"

INSTRUCTIONS:
1. One page may mention many entities; return each one separately.
2. Give the Instagram handle only when the page shows it; otherwise use null. Never guess.
3. CLASSIFY each entity into one category and give a short (3-5 words) reasoning.
4. "url" is the entity's own Instagram URL when it appears in the page, otherwise null.
{_SHARED_RULES}
INPUT DATA:
{json.dumps(batch, indent=2, ensure_ascii=False)}

RESPONSE FORMAT (JSON Array ONLY):
[
  {{
    "name": "Club Name",
    "handle": null,
    "category": "Community",
    "subcategory": "Cycling",
    "followers": null,
    "logo": null,
    "reasoning": "Listed in city cycling guide",
    "url": null
  }}
]
"""
