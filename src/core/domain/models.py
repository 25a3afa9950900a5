"""Domain models (Pydantic v2).

Ledger records arrive as loose JSON; the models fill defaults so matching code
never probes for missing keys.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


CREDIT_ALPHANUM12 = "credit_alphanum12"
"""Ledger asset class of 5 to 12 character codes (every quest badge)."""


class BadgeDefinition(BaseModel):
    """A quest badge as published by the catalog: an asset code + issuer pair."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(
        ...,
        min_length=1,
        max_length=12,
        description="Asset code, e.g. 'SQ0101' or 'SSQ01'.",
    )
    issuer: str = Field(
        ...,
        min_length=1,
        description="Account id of the issuing account.",
    )
    image_url: str = Field(
        default="",
        description="Badge artwork URL.",
    )
    tag: str = Field(
        default="",
        description="Free-form catalog tag (e.g. 'mono').",
    )

    @property
    def asset_key(self) -> str:
        """Asset identifier as the ledger prints it: `CODE:ISSUER`."""

        return f"{self.code}:{self.issuer}"


class OwnershipRecord(BaseModel):
    """Ownership verdict for one catalog entry on one account."""

    badge: BadgeDefinition
    owned: bool = Field(
        default=False,
        description="True when a payment or claimed balance proves ownership.",
    )
    tx_hash: str | None = Field(
        default=None,
        description="Transaction that delivered the badge.",
    )
    acquired_at: str | None = Field(
        default=None,
        description="Ledger close time (ISO 8601) of that transaction.",
    )


class Proof(BaseModel):
    """Claim over a set of completed quests plus optional metadata.

    `owned_badges` behaves as a set keyed by `code`: duplicates are dropped on
    construction, first occurrence wins.
    """

    owned_badges: list[BadgeDefinition] = Field(default_factory=list)
    timestamp: int | None = Field(
        default=None,
        description="Unix seconds at which the proof was produced.",
    )
    unique_id: str | None = Field(
        default=None,
        description="Free text chosen by the signer (nonce, recipient, ...).",
    )

    @model_validator(mode="after")
    def _dedupe_badges(self) -> "Proof":
        self.owned_badges = dedupe_badges(self.owned_badges)
        return self

    @property
    def codes(self) -> set[str]:
        return {badge.code for badge in self.owned_badges}


class SignedEnvelope(BaseModel):
    """A proof string plus the detached signature returned by the wallet."""

    signature: str
    public_key: str
    plain_message: str


class UnwrappedEnvelope(BaseModel):
    """Result of opening an envelope: the verifier's verdict and the payload."""

    valid: bool
    plain_message: str
    public_key: str


# --- Ledger records (Horizon JSON) ---------------------------------------


class _LedgerRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Balance(_LedgerRecord):
    balance: str = ""
    asset_type: str = ""
    asset_code: str = ""
    asset_issuer: str = ""
    last_modified_ledger: int = 0


class Account(_LedgerRecord):
    account_id: str = ""
    sequence: str = ""
    balances: list[Balance] = Field(default_factory=list)

    def holds(self, badge: BadgeDefinition) -> bool:
        """True when a 12-char credit balance line exists for `badge`."""

        return any(
            b.asset_type == CREDIT_ALPHANUM12
            and b.asset_code == badge.code
            and b.asset_issuer == badge.issuer
            for b in self.balances
        )


class Payment(_LedgerRecord):
    id: str = ""
    type: str = ""
    source_account: str = ""
    created_at: str = ""
    transaction_hash: str = ""
    asset_type: str = ""
    asset_code: str = ""
    asset_issuer: str = ""
    from_account: str = Field(default="", alias="from")
    to: str = ""

    def delivers(self, badge: BadgeDefinition) -> bool:
        """True when this payment is the issuer handing out `badge`."""

        return (
            self.asset_type == CREDIT_ALPHANUM12
            and self.asset_issuer == badge.issuer
            and self.source_account == badge.issuer
            and self.asset_code == badge.code
        )


class ClaimableBalanceOperation(_LedgerRecord):
    id: str = ""
    type: str = ""
    type_i: int = 0
    source_account: str = ""
    created_at: str = ""
    transaction_hash: str = ""
    asset: str = ""
    amount: str = ""
    claimants: list[Any] = Field(default_factory=list)

    def has_claimant(self, account_id: str) -> bool:
        return any(
            isinstance(c, dict) and c.get("destination") == account_id
            for c in self.claimants
        )


# --- Reports ------------------------------------------------------------


class BadgeSummary(BaseModel):
    """Counts shown above an account's badge list."""

    owned: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)


class VerificationReport(BaseModel):
    """Outcome of checking a signed proof against the live ledger."""

    public_key: str
    signature_valid: bool
    claim: Proof
    records: list[OwnershipRecord] = Field(default_factory=list)
    unbacked_claims: list[str] = Field(
        default_factory=list,
        description="Codes claimed by the proof but not owned by the account.",
    )
    claimed_count: int = 0
    completed_count: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_valid(self) -> bool:
        return (
            self.signature_valid
            and not self.unbacked_claims
            and self.claimed_count == self.completed_count
        )


def dedupe_badges(badges: list[BadgeDefinition]) -> list[BadgeDefinition]:
    """Drop repeated codes keeping the first occurrence."""

    seen: set[str] = set()
    out: list[BadgeDefinition] = []
    for badge in badges:
        if badge.code in seen:
            continue
        seen.add(badge.code)
        out.append(badge)
    return out
