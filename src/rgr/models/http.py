"""Default HTTP transport for the role backends."""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from typing import Any, Dict

from .llm_client import LLMTransportError, Transport

__all__ = ["DEFAULT_TIMEOUT", "urllib_transport"]

DEFAULT_TIMEOUT = 300.0


def urllib_transport(timeout: float = DEFAULT_TIMEOUT) -> Transport:
    """Return a transport that POSTs JSON with :mod:`urllib.request`."""

    def _post(url: str, headers: Dict[str, str], body: Dict[str, Any]) -> str:
        data = json.dumps(body).encode("utf-8")
        request = urllib.request.Request(
            url,
            data=data,
            headers={"Content-Type": "application/json", **headers},
            method="POST",
        )
        try:
            with urllib.request.urlopen(request, timeout=timeout) as response:
                raw = response.read()
                status = getattr(response, "status", 200)
        except TimeoutError as error:  # pragma: no cover - network-dependent
            raise LLMTransportError("Model endpoint timed out.") from error
        except urllib.error.HTTPError as error:  # pragma: no cover - network-dependent
            message = error.read().decode("utf-8", errors="ignore")
            raise LLMTransportError(f"HTTP {error.code}: {message}") from error
        except urllib.error.URLError as error:  # pragma: no cover - network-dependent
            raise LLMTransportError(f"Failed to reach model endpoint: {error.reason}") from error

        if status >= 400:
            raise LLMTransportError(f"Unexpected HTTP status {status}")
        return raw.decode("utf-8")

    return _post
