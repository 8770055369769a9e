"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
SEARCH_PROVIDERS = ("google_cse", "serpapi")


@dataclass(frozen=True)
class Settings:
    google_search_api_key: str = ""
    google_search_cx: str = ""
    search_provider: str = "google_cse"
    serpapi_api_key: str = ""
    gemini_api_key: str = ""
    llm_base_url: str = GEMINI_OPENAI_BASE_URL
    primary_model: str = "gemini-1.5-pro"
    fallback_model: str = "gemini-2.0-flash-exp"
    search_page_size: int = 10
    pagination_pages: int = 4
    direct_batch_size: int = 50
    listing_batch_size: int = 10
    expansion_phrase_count: int = 12
    database_url: str = ""
    port: int = 3000

    def credential_status(self) -> Dict[str, bool]:
        """Report which required external settings are present, without their values."""
        status = {"GEMINI_API_KEY": bool(self.gemini_api_key)}
        if self.search_provider == "serpapi":
            status["SERPAPI_API_KEY"] = bool(self.serpapi_api_key)
        else:
            status["GOOGLE_SEARCH_API_KEY"] = bool(self.google_search_api_key)
            status["GOOGLE_SEARCH_CX"] = bool(self.google_search_cx)
        return status


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("%s=%r is not an integer; using %d", name, raw, default)
        return default
    if value <= 0:
        logger.warning("%s must be positive; using %d", name, default)
        return default
    return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    search_provider = os.getenv("SEARCH_PROVIDER", "google_cse").strip().lower()
    if search_provider not in SEARCH_PROVIDERS:
        logger.warning("Unknown SEARCH_PROVIDER=%s; falling back to google_cse", search_provider)
        search_provider = "google_cse"

    settings = Settings(
        google_search_api_key=os.getenv("GOOGLE_SEARCH_API_KEY", ""),
        google_search_cx=os.getenv("GOOGLE_SEARCH_CX", ""),
        search_provider=search_provider,
        serpapi_api_key=os.getenv("SERPAPI_API_KEY", ""),
        gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
        llm_base_url=os.getenv("LLM_BASE_URL") or GEMINI_OPENAI_BASE_URL,
        primary_model=os.getenv("PRIMARY_MODEL") or "gemini-1.5-pro",
        fallback_model=os.getenv("FALLBACK_MODEL") or "gemini-2.0-flash-exp",
        search_page_size=_get_int("SEARCH_PAGE_SIZE", 10),
        pagination_pages=_get_int("PAGINATION_PAGES", 4),
        direct_batch_size=_get_int("DIRECT_BATCH_SIZE", 50),
        listing_batch_size=_get_int("LISTING_BATCH_SIZE", 10),
        expansion_phrase_count=_get_int("EXPANSION_PHRASE_COUNT", 12),
        database_url=os.getenv("DATABASE_URL", ""),
        port=_get_int("PORT", 3000),
    )

    for name, present in settings.credential_status().items():
        if not present:
            logger.warning("%s is not configured; requests depending on it will fail.", name)
    if not settings.database_url:
        logger.warning("DATABASE_URL is not set; persistence will be unavailable.")

    return settings
