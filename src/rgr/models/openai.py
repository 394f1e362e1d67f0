"""Client for OpenAI-compatible chat completion endpoints."""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional

from .http import urllib_transport
from .llm_client import LLMClient, LLMClientError, LLMResponseFormatError, LLMTransportError, Transport

__all__ = ["OpenAICompatibleClient"]

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_API_KEY_ENV = "OPENAI_API_KEY"


class OpenAICompatibleClient(LLMClient):
    """Thin adapter around ``/chat/completions`` (OpenAI, DeepSeek, Groq, local servers)."""

    def __init__(
        self,
        *,
        model: str,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        api_key_env: Optional[str] = None,
        organization: Optional[str] = None,
        api_key_header: Optional[str] = None,
        api_key_prefix: Optional[str] = None,
        transport: Optional[Transport] = None,
        temperature: float = 0.2,
    ) -> None:
        super().__init__(model, temperature=temperature)
        env_key = api_key_env or DEFAULT_API_KEY_ENV
        self._api_key = api_key or os.getenv(env_key)
        if not self._api_key:
            raise LLMClientError(f"missing env var {env_key}")
        self._base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self._organization = organization
        self._api_key_header = api_key_header or "Authorization"
        self._api_key_prefix = "Bearer " if api_key_prefix is None else api_key_prefix
        self._transport = transport or urllib_transport()

    @property
    def url(self) -> str:
        return f"{self._base_url}/chat/completions"

    def _headers(self) -> Dict[str, str]:
        headers = {self._api_key_header: f"{self._api_key_prefix}{self._api_key}"}
        if self._organization:
            headers["OpenAI-Organization"] = self._organization
        return headers

    def _raw_invoke(self, role: str, system_prompt: str, user_prompt: str) -> str:
        body: Dict[str, Any] = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": self._temperature,
        }
        try:
            raw_response = self._transport(self.url, self._headers(), body)
        except LLMClientError:
            raise
        except Exception as error:  # pragma: no cover - transport specific
            raise LLMTransportError(f"Transport rejected the request: {error}") from error
        return self._extract_content(raw_response)

    @staticmethod
    def _extract_content(raw_response: str) -> str:
        """Return ``choices[0].message.content`` from a chat completion body."""
        try:
            data = json.loads(raw_response)
        except json.JSONDecodeError as error:
            raise LLMResponseFormatError(f"Chat completion body is not JSON: {raw_response[:200]}") from error
        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices:
            raise LLMResponseFormatError("no choices")
        first = choices[0]
        message = first.get("message") if isinstance(first, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise LLMResponseFormatError("Chat completion choice carries no text content.")
        return content
