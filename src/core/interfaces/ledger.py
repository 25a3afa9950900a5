"""Ledger read contract.

The resolver only needs these three queries; the Horizon adapter and the
in-memory fakes used in tests both satisfy it.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import Account, ClaimableBalanceOperation, Payment


@runtime_checkable
class LedgerReader(Protocol):
    """Minimal read surface of a paginated ledger API.

    Design rules:
    - Every method is async because it performs network I/O.
    - Failures surface as `LedgerError`; nothing is cached between calls.
    """

    async def fetch_account(self, account_id: str) -> Account:
        """Current state (balances) of `account_id`."""

        ...

    async def fetch_account_payments(self, account_id: str) -> list[Payment]:
        """Full payment history of `account_id`, in ledger order."""

        ...

    async def search_claimable_balances(
        self,
        issuer: str,
        asset_key: str,
        claimant_id: str,
    ) -> ClaimableBalanceOperation | None:
        """First claimable balance of `asset_key` created by `issuer` for `claimant_id`."""

        ...
