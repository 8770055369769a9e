import pytest

from omnisearch.core import config

ENV_VARS = (
    "GOOGLE_SEARCH_API_KEY",
    "GOOGLE_SEARCH_CX",
    "SEARCH_PROVIDER",
    "SERPAPI_API_KEY",
    "GEMINI_API_KEY",
    "PRIMARY_MODEL",
    "FALLBACK_MODEL",
    "PAGINATION_PAGES",
    "DIRECT_BATCH_SIZE",
    "DATABASE_URL",
    "PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.setattr(config, "load_dotenv", lambda: None)
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()


def test_get_settings_reads_env(monkeypatch):
    monkeypatch.setenv("GOOGLE_SEARCH_API_KEY", "abc123")
    monkeypatch.setenv("GOOGLE_SEARCH_CX", "cx-1")
    monkeypatch.setenv("GEMINI_API_KEY", "gem")
    monkeypatch.setenv("PRIMARY_MODEL", "model-a")
    monkeypatch.setenv("PAGINATION_PAGES", "2")
    monkeypatch.setenv("DIRECT_BATCH_SIZE", "25")
    monkeypatch.setenv("PORT", "8080")

    settings = config.get_settings()

    assert settings.google_search_api_key == "abc123"
    assert settings.google_search_cx == "cx-1"
    assert settings.primary_model == "model-a"
    assert settings.fallback_model == "gemini-2.0-flash-exp"
    assert settings.pagination_pages == 2
    assert settings.direct_batch_size == 25
    assert settings.port == 8080
    assert settings.credential_status() == {
        "GEMINI_API_KEY": True,
        "GOOGLE_SEARCH_API_KEY": True,
        "GOOGLE_SEARCH_CX": True,
    }


def test_get_settings_warns_when_missing(caplog):
    with caplog.at_level("WARNING"):
        settings = config.get_settings()

    messages = " ".join(caplog.messages)
    assert "GEMINI_API_KEY is not configured" in messages
    assert "GOOGLE_SEARCH_CX is not configured" in messages
    assert "DATABASE_URL is not set" in messages
    assert settings.search_provider == "google_cse"
    assert settings.pagination_pages == 4
    assert settings.listing_batch_size == 10


def test_serpapi_provider_changes_required_credentials(monkeypatch):
    monkeypatch.setenv("SEARCH_PROVIDER", "SerpAPI")

    settings = config.get_settings()

    assert settings.search_provider == "serpapi"
    assert settings.credential_status() == {"GEMINI_API_KEY": False, "SERPAPI_API_KEY": False}


def test_invalid_values_fall_back_to_defaults(monkeypatch, caplog):
    monkeypatch.setenv("SEARCH_PROVIDER", "bing")
    monkeypatch.setenv("PAGINATION_PAGES", "lots")
    monkeypatch.setenv("DIRECT_BATCH_SIZE", "0")

    with caplog.at_level("WARNING"):
        settings = config.get_settings()

    assert settings.search_provider == "google_cse"
    assert settings.pagination_pages == 4
    assert settings.direct_batch_size == 50
    assert "Unknown SEARCH_PROVIDER" in " ".join(caplog.messages)
