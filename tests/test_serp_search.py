"""Tests for the SerpAPI web search adapter."""

from unittest.mock import patch

import pytest

from omnisearch.vendors import serp_search
from omnisearch.vendors.search_provider import SearchProviderError


def test_build_serpapi_params_converts_offset():
    params = serp_search.build_serpapi_params(" vizag yoga ", "key", num=10, start=11)

    assert params["engine"] == "google"
    assert params["q"] == "vizag yoga"
    assert params["start"] == 10


def test_build_serpapi_params_requires_query():
    with pytest.raises(ValueError):
        serp_search.build_serpapi_params("  ", "key")


def test_parse_organic_results_shapes_items():
    data = {
        "organic_results": [
            {"title": "Vizag Yoga", "link": "https://www.instagram.com/vizagyoga/", "snippet": "Daily yoga", "thumbnail": "https://img/1.jpg"},
            {"title": "No link"},
            "garbage",
        ]
    }

    items = serp_search.parse_organic_results(data)

    assert items == [
        {
            "title": "Vizag Yoga",
            "link": "https://www.instagram.com/vizagyoga/",
            "snippet": "Daily yoga",
            "pagemap": {"cse_image": [{"src": "https://img/1.jpg"}]},
        }
    ]


def test_parse_organic_results_handles_missing_key():
    assert serp_search.parse_organic_results({"search_metadata": {}}) == []
    assert serp_search.parse_organic_results(None) == []


@patch("omnisearch.vendors.serp_search.GoogleSearch")
def test_search_page_raises_on_error_payload(mock_search):
    mock_search.return_value.get_dict.return_value = {"error": "Invalid API key."}

    with pytest.raises(SearchProviderError):
        serp_search.search_page("vizag yoga", "key")


@patch("omnisearch.vendors.serp_search.GoogleSearch")
def test_search_page_treats_empty_result_error_as_empty(mock_search):
    mock_search.return_value.get_dict.return_value = {"error": "Google hasn't returned any results for this query."}

    assert serp_search.search_page("vizag yoga", "key") == []


@patch("omnisearch.vendors.serp_search.GoogleSearch")
def test_search_page_returns_parsed_items(mock_search):
    mock_search.return_value.get_dict.return_value = {
        "organic_results": [{"title": "A", "link": "https://a.example"}]
    }

    items = serp_search.search_page("vizag yoga", "key", start=21)

    assert items[0]["link"] == "https://a.example"
    assert mock_search.call_args[0][0]["start"] == 20
