"""Generative-model client over an OpenAI-compatible chat completion endpoint."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional, Tuple, Type, Union

from openai import AsyncOpenAI

from omnisearch.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
REQUEST_TIMEOUT = 60.0


class ModelCallError(RuntimeError):
    """Raised when a single model tier fails to produce text."""

    def __init__(self, model: str, message: str) -> None:
        super().__init__(f"{model} failed: {message}")
        self.model = model


class ResponseParseError(ValueError):
    """Raised when model output is not the JSON shape the caller expects."""


def strip_code_fences(raw: Optional[str]) -> str:
    return _FENCE_RE.sub("", raw or "").strip()


def parse_json_response(raw: Optional[str], expect: Union[Type, Tuple[Type, ...], None] = None) -> Any:
    """Strip code fences from model output and decode it as JSON."""
    clean = strip_code_fences(raw)
    try:
        data = json.loads(clean)
    except json.JSONDecodeError as exc:
        raise ResponseParseError(f"invalid JSON from model: {exc.msg} (preview={clean[:120]!r})") from exc
    if expect is not None and not isinstance(data, expect):
        raise ResponseParseError(f"expected {expect}, got {type(data).__name__}")
    return data


class GenerativeClient:
    """Single-shot prompt → text calls. One instance per pipeline run."""

    def __init__(self, api_key: str, base_url: Optional[str] = None, timeout: float = REQUEST_TIMEOUT) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout
        self._client: Optional[AsyncOpenAI] = None

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "GenerativeClient":
        settings = settings or get_settings()
        return cls(api_key=settings.gemini_api_key, base_url=settings.llm_base_url)

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            # Retries are handled by the model fallback, not by the SDK.
            self._client = AsyncOpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
                timeout=self._timeout,
                max_retries=0,
            )
        return self._client

    async def generate(self, prompt: str, model: str) -> str:
        if not self._api_key:
            raise ModelCallError(model, "GEMINI_API_KEY is not configured")
        logger.info("Asking %s (%d prompt chars)", model, len(prompt))
        try:
            response = await self._get_client().chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as exc:  # noqa: BLE001
            raise ModelCallError(model, str(exc)) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ModelCallError(model, "empty response")
        return content

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


async def generate_with_fallback(client: Any, prompt: str, primary_model: str, fallback_model: str) -> str:
    """Try the primary model, then exactly one attempt with the fallback model.

    The fallback's exception propagates when both tiers fail.
    """
    try:
        return await client.generate(prompt, primary_model)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Primary model failed (%s); trying fallback %s", exc, fallback_model)
    return await client.generate(prompt, fallback_model)
