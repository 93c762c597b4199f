from __future__ import annotations

import logging
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta"


class ProviderError(Exception):
    """Transport, authentication, quota or payload failure talking to the provider."""


class GeminiClient:
    """Minimal REST client for the provider's ``generateContent`` call."""

    def __init__(
        self,
        *,
        api_key: Optional[str],
        model: str,
        timeout: float = 30.0,
        endpoint: str = DEFAULT_ENDPOINT,
        session: Optional[requests.Session] = None,
    ):
        self._api_key = api_key or ""
        self._model = model
        self._timeout = float(timeout)
        self._endpoint = endpoint.rstrip("/")
        self._http = session or requests.Session()

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    @property
    def model(self) -> str:
        return self._model

    def generate(self, parts: list[dict], *, response_schema: Optional[dict] = None) -> str:
        """Send one user turn and return the text of the first candidate."""

        if not self.is_configured:
            raise ProviderError("Provider API key is not configured")

        payload: dict[str, Any] = {"contents": [{"role": "user", "parts": parts}]}
        if response_schema is not None:
            payload["generationConfig"] = {
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            }

        url = f"{self._endpoint}/models/{self._model}:generateContent"
        try:
            resp = self._http.post(
                url,
                json=payload,
                headers={"x-goog-api-key": self._api_key},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise ProviderError(f"Request failed: {e}") from e

        if resp.status_code >= 400:
            raise ProviderError(f"Provider returned HTTP {resp.status_code}: {resp.text[:200]}")

        try:
            body = resp.json()
        except ValueError as e:
            raise ProviderError("Provider returned a non-JSON body") from e

        try:
            candidate_parts = body["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError("Provider response has no candidates") from e

        text = "".join(p.get("text", "") for p in candidate_parts if isinstance(p, dict))
        return text


def inline_jpeg(base64_data: str) -> dict:
    return {"inline_data": {"mime_type": "image/jpeg", "data": base64_data}}
