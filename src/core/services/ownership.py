"""Badge ownership resolution.

Reconciles the badge catalog with an account's ledger history:

1. One scan of the account's payments; a badge is owned when its issuer paid
   it out directly.
2. Badges still unowned but present in the account's balances were obtained
   some other way (claimed balances). For those, the issuer's operations are
   searched for a claimable balance naming the account as claimant.

Step 2 fans out one search per badge; a failing search counts as "no
evidence" and never aborts the resolution.
"""

from __future__ import annotations

import asyncio
import logging

from core.domain.errors import LedgerError
from core.domain.models import (
    Account,
    BadgeDefinition,
    ClaimableBalanceOperation,
    OwnershipRecord,
    Payment,
)
from core.interfaces.ledger import LedgerReader

logger = logging.getLogger(__name__)


def match_payment(badge: BadgeDefinition, payments: list[Payment]) -> OwnershipRecord:
    """Ownership record for `badge` from the first payment that delivered it."""

    for payment in payments:
        if payment.delivers(badge):
            return OwnershipRecord(
                badge=badge,
                owned=True,
                tx_hash=payment.transaction_hash,
                acquired_at=payment.created_at,
            )
    return OwnershipRecord(badge=badge)


class OwnershipResolver:
    """Computes one `OwnershipRecord` per catalog entry for an account."""

    def __init__(self, ledger: LedgerReader, *, max_concurrency: int = 8) -> None:
        self._ledger = ledger
        self._max_concurrency = max(1, max_concurrency)

    async def resolve(
        self,
        account_id: str,
        catalog: list[BadgeDefinition],
    ) -> list[OwnershipRecord]:
        """Resolve ownership of every catalog entry.

        Raises:
            LedgerError: the payment history could not be fetched.
        """

        payments = await self._ledger.fetch_account_payments(account_id)
        records = [match_payment(badge, payments) for badge in catalog]

        pending = [i for i, record in enumerate(records) if not record.owned]
        if not pending:
            return records

        account = await self._fetch_balances(account_id)
        if account is None:
            return records

        candidates = [i for i in pending if account.holds(records[i].badge)]
        if not candidates:
            return records

        sem = asyncio.Semaphore(self._max_concurrency)

        async def search_one(badge: BadgeDefinition) -> ClaimableBalanceOperation | None:
            async with sem:
                try:
                    return await self._ledger.search_claimable_balances(
                        badge.issuer, badge.asset_key, account_id
                    )
                except LedgerError as exc:
                    logger.warning(
                        "claimable balance search for %s failed: %s", badge.code, exc
                    )
                    return None

        found = await asyncio.gather(*(search_one(records[i].badge) for i in candidates))

        for i, operation in zip(candidates, found):
            if operation is None:
                continue
            records[i] = records[i].model_copy(
                update={
                    "owned": True,
                    "tx_hash": operation.transaction_hash,
                    "acquired_at": operation.created_at,
                }
            )
        return records

    async def _fetch_balances(self, account_id: str) -> Account | None:
        try:
            return await self._ledger.fetch_account(account_id)
        except LedgerError as exc:
            logger.warning("balance lookup for %s failed: %s", account_id, exc)
            return None
