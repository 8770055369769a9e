"""HTTP entrypoint for the omni-search pipeline (Cloud Run friendly)."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict

from flask import Flask, jsonify, request
from flask_cors import CORS

from omnisearch.core.config import get_settings
from omnisearch.jobs.run_search import run_search

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App ----------
app = Flask(__name__)
CORS(app, send_wildcard=True)


# ---------- Routes ----------


@app.get("/")
def root() -> Any:
    """Simple root to avoid 404 on GET /"""
    return "ok", 200


@app.get("/healthz")
def healthcheck() -> Any:
    """Lightweight health endpoint; reads settings only, never calls providers."""
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "search_provider": settings.search_provider,
                "models": [settings.primary_model, settings.fallback_model],
                "config": settings.credential_status(),
                "revision": os.getenv("K_REVISION", "unknown"),
            }
        ),
        200,
    )


@app.post("/api/omni-search")
def omni_search() -> Any:
    """
    Run one discovery search synchronously.
    Required JSON field: query
    """
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    query = payload.get("query")
    if not isinstance(query, str) or not query.strip():
        return jsonify({"error": "Query required"}), 400

    try:
        response = run_search(query.strip())
    except Exception as exc:  # noqa: BLE001
        logger.exception("Omni-search failed for %r: %s", query, exc)
        return jsonify({"error": str(exc)}), 500

    return jsonify(response.to_dict()), 200


def main() -> None:
    """Bind on 0.0.0.0 using PORT from the environment (Cloud Run injects it)."""
    port = get_settings().port
    logger.info("[BOOT] Omni-search engine binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
