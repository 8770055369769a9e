"""Data models shared by the discovery pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

CATEGORIES: Tuple[str, ...] = ("Club", "Sports Facility", "Event", "Hybrid Studio", "Community")
DEFAULT_CATEGORY = "Community"
UNKNOWN_LOCATION = "unknown"
UNKNOWN_LAYER = "Unknown"

CHANNEL_DIRECT = "direct"
CHANNEL_LISTING = "listing"

# Trust tags: direct profile hits are confirmed, listing extractions are inferred.
CONFIRMED = "confirmed"
INFERRED = "inferred"


def coerce_category(value: Any) -> str:
    """Map a model-supplied category onto the fixed taxonomy (case-insensitive)."""
    if isinstance(value, str):
        wanted = value.strip().lower()
        for category in CATEGORIES:
            if category.lower() == wanted:
                return category
    return DEFAULT_CATEGORY


def normalize_handle(handle: Optional[str]) -> Optional[str]:
    """Lowercased handle without the leading '@', or None when blank."""
    if not handle:
        return None
    cleaned = str(handle).strip().lstrip("@").strip().lower()
    return cleaned or None


@dataclass(frozen=True, slots=True)
class SearchPhrase:
    text: str
    layer: str = "Standard"


@dataclass(frozen=True, slots=True)
class Expansion:
    """Immutable result of expanding one user query."""

    query: str
    location: str
    intent: str
    phrases: Tuple[SearchPhrase, ...]
    degraded: bool = False


@dataclass(frozen=True, slots=True)
class Strategy:
    """Turns a phrase into a provider query string and bounds its pagination."""

    name: str
    template: str
    pages: int
    channel: str = CHANNEL_DIRECT

    def compose(self, phrase: str) -> str:
        return " ".join(self.template.format(phrase=phrase).split())


@dataclass(slots=True)
class RawHit:
    """One search-result record with the provenance of the request that produced it."""

    title: str
    link: str
    snippet: str = ""
    pagemap: Dict[str, Any] = field(default_factory=dict, repr=False)
    phrase: str = ""
    layer: str = UNKNOWN_LAYER
    strategy: str = ""
    channel: str = CHANNEL_DIRECT
    start: int = 1


@dataclass(slots=True)
class Candidate:
    title: str
    link: str
    snippet: str = ""
    og_description: str = ""
    logo_url: Optional[str] = None
    phrase: str = ""
    layer: str = UNKNOWN_LAYER
    strategy: str = ""
    channel: str = CHANNEL_DIRECT

    def to_prompt_input(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "link": self.link,
            "snippet": self.snippet,
            "ogDescription": self.og_description,
            "logoUrl": self.logo_url,
        }


@dataclass(slots=True)
class ClassifiedEntity:
    name: str
    category: str = DEFAULT_CATEGORY
    handle: Optional[str] = None
    subcategory: Optional[str] = None
    followers: Optional[str] = None
    logo: Optional[str] = None
    reasoning: str = ""
    url: Optional[str] = None
    trust: str = CONFIRMED


@dataclass(slots=True)
class MergedEntity(ClassifiedEntity):
    layer: str = UNKNOWN_LAYER
    strategy: Optional[str] = None
    channel: Optional[str] = None

    @classmethod
    def from_classified(cls, entity: ClassifiedEntity) -> "MergedEntity":
        return cls(**asdict(entity))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ErrorLog:
    """Collects non-fatal error strings from concurrently running units of work."""

    def __init__(self) -> None:
        self._messages: List[str] = []

    def add(self, message: str) -> None:
        self._messages.append(message)

    def as_list(self) -> List[str]:
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __bool__(self) -> bool:
        return bool(self._messages)


@dataclass(slots=True)
class SearchResponse:
    meta: Dict[str, Any]
    results: List[MergedEntity] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "meta": self.meta,
            "results": [entity.to_dict() for entity in self.results],
        }
        if self.errors:
            payload["debug"] = {"errors": list(self.errors)}
        return payload
