"""Shared fixtures: a small badge catalog, Horizon page builders and a fake ledger."""

from __future__ import annotations

from typing import Any

import httpx
import pytest

from core.config import AppSettings
from core.domain.errors import LedgerError
from core.domain.models import (
    Account,
    BadgeDefinition,
    ClaimableBalanceOperation,
    Payment,
)

ISSUER = "GISSUERQUESTSERIESONE"
OTHER_ISSUER = "GISSUERQUESTSERIESTWO"
ACCOUNT = "GPLAYERACCOUNT"
HORIZON = "https://horizon.test/"


def badge(code: str, issuer: str = ISSUER, tag: str = "") -> BadgeDefinition:
    return BadgeDefinition(code=code, issuer=issuer, image_url=f"https://img.test/{code}.png", tag=tag)


def page(records: list[Any], next_href: str | None = None) -> dict[str, Any]:
    links: dict[str, Any] = {"self": {"href": "https://horizon.test/self"}}
    if next_href is not None:
        links["next"] = {"href": next_href}
    return {"_links": links, "_embedded": {"records": records}}


def problem(status: int) -> dict[str, Any]:
    return {"type": "https://stellar.org/horizon-errors/x", "title": "Problem", "status": status}


def payment_record(
    code: str,
    *,
    issuer: str = ISSUER,
    source: str | None = None,
    tx: str = "tx",
    created_at: str = "2021-01-01T00:00:00Z",
    asset_type: str = "credit_alphanum12",
) -> dict[str, Any]:
    return {
        "id": f"op-{code}-{tx}",
        "type": "payment",
        "source_account": issuer if source is None else source,
        "created_at": created_at,
        "transaction_hash": tx,
        "asset_type": asset_type,
        "asset_code": code,
        "asset_issuer": issuer,
        "from": issuer if source is None else source,
        "to": ACCOUNT,
        "amount": "1.0000000",
    }


def claimable_record(
    asset: str,
    destination: str,
    *,
    tx: str = "claim-tx",
    type_i: int = 14,
    created_at: str = "2021-06-01T00:00:00Z",
) -> dict[str, Any]:
    return {
        "id": f"cb-{tx}",
        "type": "create_claimable_balance",
        "type_i": type_i,
        "source_account": ISSUER,
        "created_at": created_at,
        "transaction_hash": tx,
        "asset": asset,
        "amount": "1.0000000",
        "claimants": [{"destination": destination, "predicate": {"unconditional": True}}],
    }


def json_transport(routes: dict[str, Any], calls: list[str] | None = None) -> httpx.MockTransport:
    """Serve `routes` (full URL -> JSON body); unknown URLs get a 404 problem document."""

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if calls is not None:
            calls.append(url)
        if url not in routes:
            return httpx.Response(404, json=problem(404))
        body = routes[url]
        if isinstance(body, Exception):
            raise body
        if isinstance(body, str):
            return httpx.Response(200, text=body)
        return httpx.Response(200, json=body)

    return httpx.MockTransport(handler)


class FakeLedger:
    """In-memory `LedgerReader` counting every call."""

    def __init__(
        self,
        *,
        payments: list[Payment] | None = None,
        account: Account | None = None,
        claimables: dict[str, ClaimableBalanceOperation] | None = None,
        payments_error: LedgerError | None = None,
        account_error: LedgerError | None = None,
        failing_assets: set[str] | None = None,
    ) -> None:
        self.payments = payments or []
        self.account = account or Account(account_id=ACCOUNT)
        self.claimables = claimables or {}
        self.payments_error = payments_error
        self.account_error = account_error
        self.failing_assets = failing_assets or set()
        self.calls: list[tuple[str, ...]] = []

    async def fetch_account(self, account_id: str) -> Account:
        self.calls.append(("account", account_id))
        if self.account_error:
            raise self.account_error
        return self.account

    async def fetch_account_payments(self, account_id: str) -> list[Payment]:
        self.calls.append(("payments", account_id))
        if self.payments_error:
            raise self.payments_error
        return self.payments

    async def search_claimable_balances(
        self, issuer: str, asset_key: str, claimant_id: str
    ) -> ClaimableBalanceOperation | None:
        self.calls.append(("claimable", issuer, asset_key, claimant_id))
        if asset_key in self.failing_assets:
            raise LedgerError.from_status(500)
        return self.claimables.get(asset_key)

    def count(self, kind: str) -> int:
        return sum(1 for call in self.calls if call[0] == kind)


@pytest.fixture
def catalog() -> list[BadgeDefinition]:
    return [
        badge("SSQ01"),
        badge("SQ0101"),
        badge("SQ0102"),
        badge("SQ0103"),
        badge("SQ0108"),
        badge("SQ0109"),
        badge("SSQ02", OTHER_ISSUER),
        badge("SQ0201", OTHER_ISSUER),
        badge("SQ0204", OTHER_ISSUER),
    ]


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        horizon_url=HORIZON,
        page_limit=200,
        claimable_search_max_pages=3,
        claimable_search_max_concurrency=4,
    )
