"""Ledger client for Stellar Horizon.

Pagination protocol (every listing endpoint):
- Requests carry `limit` (and `order=desc` for the operations search).
- Each response embeds `_embedded.records` and, usually, `_links.next.href`.
- An empty page is the normal end of data.
- A response with neither a next link nor records but a `status` field is an
  error document: 400 -> invalid key, 404 -> unknown account, else unknown.
- A non-empty last page without a next link simply ends the listing.
"""

from __future__ import annotations

import logging
from contextlib import aclosing, asynccontextmanager
from typing import Any, AsyncIterator
from urllib.parse import unquote

import httpx
from pydantic import ValidationError

from adapters.http_client import build_async_client, fetch_json
from core.config import AppSettings
from core.domain.errors import LedgerError, LedgerErrorKind
from core.domain.models import Account, ClaimableBalanceOperation, Payment
from core.interfaces.ledger import LedgerReader

logger = logging.getLogger(__name__)

CREATE_CLAIMABLE_BALANCE = 14


def _next_href(data: dict[str, Any]) -> str | None:
    links = data.get("_links")
    if not isinstance(links, dict):
        return None
    nxt = links.get("next")
    if not isinstance(nxt, dict):
        return None
    href = nxt.get("href")
    return href if isinstance(href, str) and href else None


def _records(data: dict[str, Any]) -> list[Any]:
    embedded = data.get("_embedded")
    if not isinstance(embedded, dict):
        return []
    records = embedded.get("records")
    return records if isinstance(records, list) else []


class HorizonClient(LedgerReader):
    """Read-only Horizon access; each call is one independent scan."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._client = client

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with build_async_client(self._settings) as client:
            yield client

    async def _get_json(self, client: httpx.AsyncClient, url: str) -> dict[str, Any]:
        try:
            data = await fetch_json(client, url)
        except (httpx.HTTPError, ValueError) as exc:
            raise LedgerError(LedgerErrorKind.UNKNOWN, f"request to {url} failed: {exc}") from exc
        if not isinstance(data, dict):
            raise LedgerError(LedgerErrorKind.UNKNOWN, f"unexpected payload from {url}")
        return data

    async def _pages(
        self,
        client: httpx.AsyncClient,
        url: str,
        *,
        max_pages: int | None = None,
    ) -> AsyncIterator[list[Any]]:
        next_url = url
        pages = 0
        while True:
            data = await self._get_json(client, next_url)
            next_href = _next_href(data)
            if next_href is None and "status" in data:
                raise LedgerError.from_status(data.get("status"))

            records = _records(data)
            if not records:
                return
            yield records

            pages += 1
            if next_href is None:
                return
            if max_pages is not None and pages >= max_pages:
                logger.debug("stopping after %d pages of %s", pages, url)
                return
            next_url = unquote(next_href)

    async def fetch_account(self, account_id: str) -> Account:
        url = self._settings.horizon_endpoint(f"accounts/{account_id}")
        async with self._session() as client:
            data = await self._get_json(client, url)
        if "status" in data and "account_id" not in data:
            raise LedgerError.from_status(data.get("status"))
        try:
            return Account.model_validate(data)
        except ValidationError as exc:
            raise LedgerError(LedgerErrorKind.UNKNOWN, f"malformed account record: {exc}") from exc

    async def fetch_account_payments(self, account_id: str) -> list[Payment]:
        url = self._settings.horizon_endpoint(
            f"accounts/{account_id}/payments?limit={self._settings.page_limit}"
        )
        payments: list[Payment] = []
        async with self._session() as client:
            async for records in self._pages(client, url):
                try:
                    payments.extend(Payment.model_validate(r) for r in records)
                except ValidationError as exc:
                    raise LedgerError(
                        LedgerErrorKind.UNKNOWN, f"malformed payment record: {exc}"
                    ) from exc
                logger.debug("fetched %d payments of %s", len(payments), account_id)
        return payments

    async def search_claimable_balances(
        self,
        issuer: str,
        asset_key: str,
        claimant_id: str,
    ) -> ClaimableBalanceOperation | None:
        logger.debug("searching claimable balances of %s for %s", asset_key, claimant_id)
        url = self._settings.horizon_endpoint(
            f"accounts/{issuer}/operations?limit={self._settings.page_limit}&order=desc"
        )
        async with self._session() as client, aclosing(
            self._pages(client, url, max_pages=self._settings.claimable_search_max_pages)
        ) as pages:
            async for records in pages:
                for record in records:
                    if not isinstance(record, dict):
                        continue
                    if record.get("type_i") != CREATE_CLAIMABLE_BALANCE:
                        continue
                    try:
                        operation = ClaimableBalanceOperation.model_validate(record)
                    except ValidationError as exc:
                        logger.warning(
                            "skipping malformed operation %s: %s", record.get("id"), exc
                        )
                        continue
                    if operation.asset != asset_key:
                        continue
                    if operation.has_claimant(claimant_id):
                        return operation
        return None
