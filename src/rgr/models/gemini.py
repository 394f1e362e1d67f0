"""Client for the Gemini ``generateContent`` API."""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional
from urllib.parse import quote

from .http import urllib_transport
from .llm_client import LLMClient, LLMClientError, LLMResponseFormatError, LLMTransportError, Transport

__all__ = ["GeminiClient"]

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_API_KEY_ENV = "GEMINI_API_KEY"


class GeminiClient(LLMClient):
    """Thin adapter around ``v1beta/models/{model}:generateContent``."""

    def __init__(
        self,
        *,
        model: str,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        api_key_env: Optional[str] = None,
        transport: Optional[Transport] = None,
        temperature: float = 0.2,
    ) -> None:
        super().__init__(model, temperature=temperature)
        env_key = api_key_env or DEFAULT_API_KEY_ENV
        self._api_key = api_key or os.getenv(env_key)
        if not self._api_key:
            raise LLMClientError(f"missing env var {env_key}")
        self._base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self._transport = transport or urllib_transport()

    @property
    def url(self) -> str:
        return (
            f"{self._base_url}/v1beta/models/{self._model}:generateContent"
            f"?key={quote(self._api_key or '', safe='')}"
        )

    def _raw_invoke(self, role: str, system_prompt: str, user_prompt: str) -> str:
        # Gemini takes both prompts as parts of a single user turn.
        body: Dict[str, Any] = {
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": system_prompt}, {"text": user_prompt}],
                }
            ],
            "generation_config": {"temperature": self._temperature},
        }
        try:
            raw_response = self._transport(self.url, {}, body)
        except LLMClientError:
            raise
        except Exception as error:  # pragma: no cover - transport specific
            raise LLMTransportError(f"Transport rejected the request: {error}") from error
        return self._first_candidate_text(raw_response)

    @staticmethod
    def _first_candidate_text(raw_response: str) -> str:
        """Return the first text part across all candidates."""
        try:
            data = json.loads(raw_response)
        except json.JSONDecodeError as error:
            raise LLMResponseFormatError(f"Gemini body is not JSON: {raw_response[:200]}") from error
        candidates = data.get("candidates") if isinstance(data, dict) else None
        if not isinstance(candidates, list):
            raise LLMResponseFormatError("no candidates")
        for candidate in candidates:
            if not isinstance(candidate, dict):
                continue
            content = candidate.get("content")
            parts = content.get("parts") if isinstance(content, dict) else None
            if not isinstance(parts, list):
                continue
            for part in parts:
                text = part.get("text") if isinstance(part, dict) else None
                if isinstance(text, str):
                    return text
        raise LLMResponseFormatError("no candidates")
