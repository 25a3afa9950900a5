from __future__ import annotations

import httpx
import pytest

from adapters.horizon import HorizonClient
from conftest import (
    ACCOUNT,
    HORIZON,
    ISSUER,
    OTHER_ISSUER,
    FakeLedger,
    badge,
    claimable_record,
    json_transport,
    page,
    payment_record,
)
from core.domain.errors import LedgerError, LedgerErrorKind
from core.domain.models import Account, Balance, ClaimableBalanceOperation, Payment
from core.services.ownership import OwnershipResolver, match_payment


def payments(*records: dict) -> list[Payment]:
    return [Payment.model_validate(r) for r in records]


def holding(*badges) -> Account:
    return Account(
        account_id=ACCOUNT,
        balances=[
            Balance(asset_type="credit_alphanum12", asset_code=b.code, asset_issuer=b.issuer)
            for b in badges
        ],
    )


def claim(code: str, issuer: str = ISSUER, tx: str = "claim-tx") -> ClaimableBalanceOperation:
    return ClaimableBalanceOperation.model_validate(
        claimable_record(f"{code}:{issuer}", ACCOUNT, tx=tx)
    )


def test_first_matching_payment_wins():
    record = match_payment(
        badge("SQ0101"),
        payments(
            payment_record("SQ0101", tx="first", created_at="2021-01-01T00:00:00Z"),
            payment_record("SQ0101", tx="second", created_at="2021-02-01T00:00:00Z"),
        ),
    )

    assert record.owned is True
    assert record.tx_hash == "first"
    assert record.acquired_at == "2021-01-01T00:00:00Z"


@pytest.mark.parametrize(
    "record",
    [
        payment_record("SQ0101", source="GRESELLER"),
        payment_record("SQ0101", issuer="GFAKEISSUER"),
        payment_record("SQ0101", asset_type="credit_alphanum4"),
        payment_record("SQ0102"),
    ],
)
def test_payment_must_come_from_issuer_with_same_asset(record):
    assert match_payment(badge("SQ0101"), payments(record)).owned is False


@pytest.mark.asyncio
async def test_direct_payments_resolve_without_balance_lookup(catalog):
    ledger = FakeLedger(payments=payments(*(payment_record(b.code, issuer=b.issuer) for b in catalog)))

    records = await OwnershipResolver(ledger).resolve(ACCOUNT, catalog)

    assert all(r.owned for r in records)
    assert [r.badge.code for r in records] == [b.code for b in catalog]
    assert ledger.count("account") == 0
    assert ledger.count("claimable") == 0


@pytest.mark.asyncio
async def test_claimed_balance_fallback(catalog):
    sq0102, sq0201 = badge("SQ0102"), badge("SQ0201", OTHER_ISSUER)
    ledger = FakeLedger(
        payments=payments(payment_record("SQ0101", tx="paid")),
        account=holding(badge("SQ0101"), sq0102, sq0201),
        claimables={
            sq0102.asset_key: claim("SQ0102", tx="claimed"),
        },
    )

    records = await OwnershipResolver(ledger).resolve(ACCOUNT, catalog)
    by_code = {r.badge.code: r for r in records}

    assert by_code["SQ0101"].tx_hash == "paid"
    assert by_code["SQ0102"].owned is True
    assert by_code["SQ0102"].tx_hash == "claimed"
    assert by_code["SQ0102"].acquired_at == "2021-06-01T00:00:00Z"
    assert by_code["SQ0201"].owned is False
    assert by_code["SQ0103"].owned is False

    # One payment scan and one balance lookup shared by every badge.
    assert ledger.count("payments") == 1
    assert ledger.count("account") == 1
    # Searches only for badges held in balances but not paid directly.
    searched = sorted(call[2] for call in ledger.calls if call[0] == "claimable")
    assert searched == sorted([sq0102.asset_key, sq0201.asset_key])
    assert ("claimable", OTHER_ISSUER, sq0201.asset_key, ACCOUNT) in ledger.calls


@pytest.mark.asyncio
async def test_failed_search_counts_as_no_match(catalog):
    sq0102, sq0103 = badge("SQ0102"), badge("SQ0103")
    ledger = FakeLedger(
        account=holding(sq0102, sq0103),
        claimables={sq0103.asset_key: claim("SQ0103")},
        failing_assets={sq0102.asset_key},
    )

    records = await OwnershipResolver(ledger).resolve(ACCOUNT, catalog)
    by_code = {r.badge.code: r for r in records}

    assert by_code["SQ0102"].owned is False
    assert by_code["SQ0103"].owned is True


@pytest.mark.asyncio
async def test_payment_failure_aborts(catalog):
    ledger = FakeLedger(payments_error=LedgerError(LedgerErrorKind.ACCOUNT_NOT_FOUND))

    with pytest.raises(LedgerError) as excinfo:
        await OwnershipResolver(ledger).resolve(ACCOUNT, catalog)

    assert excinfo.value.kind is LedgerErrorKind.ACCOUNT_NOT_FOUND


@pytest.mark.asyncio
async def test_balance_failure_keeps_payment_results(catalog):
    ledger = FakeLedger(
        payments=payments(payment_record("SQ0101")),
        account_error=LedgerError(LedgerErrorKind.UNKNOWN),
    )

    records = await OwnershipResolver(ledger).resolve(ACCOUNT, catalog)

    assert [r.badge.code for r in records if r.owned] == ["SQ0101"]
    assert ledger.count("claimable") == 0


@pytest.mark.asyncio
async def test_empty_catalog():
    ledger = FakeLedger()

    assert await OwnershipResolver(ledger).resolve(ACCOUNT, []) == []
    assert ledger.count("payments") == 1


@pytest.mark.asyncio
async def test_malformed_claimable_operation_is_no_match(settings):
    sq0102 = badge("SQ0102")
    broken = claimable_record(sq0102.asset_key, ACCOUNT)
    broken["claimants"] = None
    routes = {
        f"{HORIZON}accounts/{ACCOUNT}/payments?limit=200": page([]),
        f"{HORIZON}accounts/{ACCOUNT}": {
            "account_id": ACCOUNT,
            "balances": [
                {
                    "asset_type": "credit_alphanum12",
                    "asset_code": "SQ0102",
                    "asset_issuer": ISSUER,
                }
            ],
        },
        f"{HORIZON}accounts/{ISSUER}/operations?limit=200&order=desc": page([broken]),
    }

    async with httpx.AsyncClient(transport=json_transport(routes)) as client:
        resolver = OwnershipResolver(HorizonClient(settings, client=client))
        records = await resolver.resolve(ACCOUNT, [sq0102])

    assert [(r.badge.code, r.owned) for r in records] == [("SQ0102", False)]
