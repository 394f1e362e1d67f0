"""Client base class shared by all role backends."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Dict

from ..prompts import BACKEND_SYSTEM_PROMPT, render_user_prompt
from ..structured import EditSet, EditSetFormatError, extract_json_object

__all__ = [
    "LLMClient",
    "LLMClientError",
    "LLMResponseFormatError",
    "LLMTransportError",
    "Transport",
]

LOGGER = logging.getLogger(__name__)

# Receives (url, headers, body) and returns the raw response body.
Transport = Callable[[str, Dict[str, str], Dict[str, Any]], str]


class LLMClientError(RuntimeError):
    """Base error raised for role backend failures."""


class LLMTransportError(LLMClientError):
    """Raised when the underlying transport fails to return a response."""


class LLMResponseFormatError(LLMClientError):
    """Raised when the model returns a payload that is not a valid edit set."""


class LLMClient:
    """Turn role instructions plus project context into a validated edit set."""

    def __init__(self, model: str, *, temperature: float = 0.2) -> None:
        self._model = model
        self._temperature = temperature

    @property
    def model(self) -> str:
        """Return the model name configured for this client."""
        return self._model

    def generate_patch(self, role: str, context: str, instructions: str) -> EditSet:
        """Ask the backend for an edit set. Failures are not retried."""
        LOGGER.debug("Requesting %s patch from %s", role, self._model)
        user_prompt = render_user_prompt(role, instructions, context)
        raw = self._raw_invoke(role, BACKEND_SYSTEM_PROMPT, user_prompt)
        return self.parse_edit_set(raw)

    def _raw_invoke(self, role: str, system_prompt: str, user_prompt: str) -> str:
        """Perform the transport call and return the model's text. Subclasses must implement."""
        raise NotImplementedError("Subclasses must implement _raw_invoke().")

    @staticmethod
    def parse_edit_set(raw_response: str) -> EditSet:
        """Extract, decode and validate the edit set carried by ``raw_response``.

        The payload may be wrapped in a code fence or surrounded by prose; the
        first balanced ``{...}`` span is used.  Typographic quotes and trailing
        commas are only repaired when the untouched text fails to decode.
        """
        text = (raw_response or "").strip().lstrip("\ufeff")
        if not text:
            raise LLMResponseFormatError("Model returned an empty response.")

        candidates = [_strip_code_fence(text)]
        repaired = _strip_trailing_commas(_normalise_json_string(candidates[0]))
        if repaired != candidates[0]:
            candidates.append(repaired)

        data: Any = None
        decoded = False
        for candidate in candidates:
            span = extract_json_object(candidate) or candidate
            try:
                data = json.loads(span)
            except json.JSONDecodeError:
                continue
            decoded = True
            break
        if not decoded:
            raise LLMResponseFormatError(f"Model returned invalid JSON: {text[:200]}")

        try:
            return EditSet.from_payload(data)
        except EditSetFormatError as error:
            raise LLMResponseFormatError(str(error)) from error


def _strip_code_fence(payload: str) -> str:
    """Remove Markdown-style code fences that wrap JSON payloads."""
    if not payload.startswith("```"):
        return payload
    fence_header_match = re.match(r"```(?:json)?", payload[:10], re.IGNORECASE)
    if not fence_header_match:
        return payload
    fence_end = payload.rfind("```")
    if fence_end <= len(fence_header_match.group(0)):
        return payload
    content_start = payload.find("\n", len(fence_header_match.group(0)))
    if content_start == -1 or content_start > fence_end:
        return payload
    return payload[content_start + 1 : fence_end].strip()


def _normalise_json_string(payload: str) -> str:
    """Normalise typographic quotes that models emit around JSON keys."""
    if not payload:
        return payload
    translation = {
        0x201C: '"',
        0x201D: '"',
        0x00A0: " ",
        0xFEFF: "",
    }
    return payload.translate(str.maketrans(translation))


def _strip_trailing_commas(payload: str) -> str:
    """Remove trailing commas before closing braces/brackets."""
    if not payload:
        return payload
    return re.sub(r",(\s*[}\]])", r"\1", payload)

