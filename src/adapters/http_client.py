"""httpx wrapper shared by the ledger and catalog adapters.

Tests swap the client for one built over `httpx.MockTransport`.
"""

from __future__ import annotations

from typing import Any

import httpx

from core.config import AppSettings


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
) -> httpx.AsyncClient:
    """Create an `httpx.AsyncClient` with the configured timeout and User-Agent."""

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/hal+json, application/json;q=0.9, */*;q=0.8",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
    )


async def fetch_json(client: httpx.AsyncClient, url: str) -> Any:
    """GET `url` and decode the body as JSON whatever the HTTP status.

    Horizon reports errors as problem documents (`{"status": 404, ...}`), so
    the body is what matters, not the status line.

    Raises:
        httpx.HTTPError: network failure.
        ValueError: the body is not JSON.
    """

    response = await client.get(url)
    return response.json()


async def fetch_text(client: httpx.AsyncClient, url: str) -> str:
    """GET `url` and return the body; non-2xx responses raise `httpx.HTTPStatusError`."""

    response = await client.get(url)
    response.raise_for_status()
    return response.text
