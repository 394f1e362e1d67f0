"""Role backend implementations and the factory that selects one per role."""

from __future__ import annotations

from typing import Optional

from ..config import ProviderConfig
from .gemini import GeminiClient
from .llm_client import (
    LLMClient,
    LLMClientError,
    LLMResponseFormatError,
    LLMTransportError,
    Transport,
)
from .mock import MockClient
from .openai import OpenAICompatibleClient


def build_client(provider: ProviderConfig, *, transport: Optional[Transport] = None) -> LLMClient:
    """Instantiate the backend selected by ``provider.kind``."""
    if provider.kind == "openai":
        return OpenAICompatibleClient(
            model=provider.model,
            base_url=provider.base_url,
            api_key_env=provider.api_key_env,
            organization=provider.organization,
            api_key_header=provider.api_key_header,
            api_key_prefix=provider.api_key_prefix,
            transport=transport,
        )
    if provider.kind == "gemini":
        return GeminiClient(
            model=provider.model,
            base_url=provider.base_url,
            api_key_env=provider.api_key_env,
            transport=transport,
        )
    if provider.kind == "mock":
        return MockClient(provider.model)
    raise LLMClientError(f"Unknown provider kind: {provider.kind}")


__all__ = [
    "GeminiClient",
    "LLMClient",
    "LLMClientError",
    "LLMResponseFormatError",
    "LLMTransportError",
    "MockClient",
    "OpenAICompatibleClient",
    "Transport",
    "build_client",
]
