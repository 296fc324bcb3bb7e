from __future__ import annotations

import logging
from dataclasses import dataclass

import requests

logger = logging.getLogger(__name__)

COMPLETION_PATH = "/api/completion"


class QueryClientError(RuntimeError):
    """Raised when the completion endpoint cannot be reached."""


@dataclass(frozen=True)
class QueryResponse:
    status_code: int
    text: str


def post_query(api_url: str, prompt: str, view_type: str = "table", timeout: float = 120) -> QueryResponse:
    """POST a question to the completion endpoint and return the raw body.

    Non-2xx responses are returned too: the server's error body follows the
    same JSON envelope as a successful answer.
    """
    if not (prompt or "").strip():
        raise ValueError("Prompt must not be empty.")

    url = f"{api_url.rstrip('/')}{COMPLETION_PATH}"
    try:
        response = requests.post(
            url,
            json={"type": view_type, "prompt": prompt},
            headers={"Content-Type": "application/json"},
            timeout=timeout,
        )
    except requests.RequestException as exc:
        logger.error("Request to %s failed: %s", url, exc)
        raise QueryClientError(f"Request to {url} failed: {exc}") from exc

    if not response.ok:
        logger.warning("Completion endpoint returned HTTP %s", response.status_code)
    return QueryResponse(status_code=response.status_code, text=response.text)
