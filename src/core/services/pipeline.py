"""Proof creation and verification flows.

These helpers chain catalog loading, ownership resolution and the codecs so
entry points (CLI today) only deal with printing. Progress is reported through
`PipelineHooks.stage`, one call per `LoadStage` transition, in order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable

from core.domain.errors import ProofError, ProofErrorKind
from core.domain.models import (
    BadgeDefinition,
    BadgeSummary,
    OwnershipRecord,
    Proof,
    VerificationReport,
)
from core.encoding import envelope, proof as proof_codec
from core.interfaces.verifier import SignatureVerifier
from core.services.ownership import OwnershipResolver

logger = logging.getLogger(__name__)

CatalogSource = Callable[[], Awaitable[list[BadgeDefinition]]]


class LoadStage(str, Enum):
    UNWRAP_ENVELOPE = "unwrap_envelope"
    FETCH_CATALOG = "fetch_catalog"
    CHECK_PROOF = "check_proof"
    FETCH_OWNED_BADGES = "fetch_owned_badges"
    DONE = "done"

    def describe(self) -> str:
        return _STAGE_TEXT[self]


_STAGE_TEXT: dict[LoadStage, str] = {
    LoadStage.UNWRAP_ENVELOPE: "Opening signed proof...",
    LoadStage.FETCH_CATALOG: "Fetching all available badges...",
    LoadStage.CHECK_PROOF: "Decoding claimed badges...",
    LoadStage.FETCH_OWNED_BADGES: "Verifying account badges...",
    LoadStage.DONE: "Done.",
}


@dataclass
class PipelineHooks:
    """Optional callbacks for UI layers (progress)."""

    stage: Callable[[LoadStage], None] | None = None

    def enter(self, stage: LoadStage) -> None:
        logger.debug("stage: %s", stage.value)
        if self.stage:
            self.stage(stage)


@dataclass
class ProofDraft:
    """A proof ready to be handed to the wallet for signing."""

    records: list[OwnershipRecord]
    proof: Proof
    encoded: str


@dataclass
class AccountBadges:
    account_id: str
    records: list[OwnershipRecord] = field(default_factory=list)

    @property
    def summary(self) -> BadgeSummary:
        return summarize(self.records)


def series_key(code: str) -> str:
    """Display group of a badge code: `SSQ` for specials, `SQnn` otherwise."""

    return code[:3] if code.startswith("SSQ") else code[:4]


def group_by_series(records: list[OwnershipRecord]) -> dict[str, list[OwnershipRecord]]:
    groups: dict[str, list[OwnershipRecord]] = {}
    for record in sorted(records, key=lambda r: r.badge.code):
        groups.setdefault(series_key(record.badge.code), []).append(record)
    return groups


def summarize(records: list[OwnershipRecord]) -> BadgeSummary:
    return BadgeSummary(
        owned=len({r.badge.code for r in records if r.owned}),
        total=len({r.badge.code for r in records}),
    )


async def check_account(
    account_id: str,
    *,
    catalog_source: CatalogSource,
    resolver: OwnershipResolver,
    hooks: PipelineHooks | None = None,
) -> AccountBadges:
    hooks = hooks or PipelineHooks()
    hooks.enter(LoadStage.FETCH_CATALOG)
    catalog = await catalog_source()
    hooks.enter(LoadStage.FETCH_OWNED_BADGES)
    records = await resolver.resolve(account_id, catalog)
    hooks.enter(LoadStage.DONE)
    return AccountBadges(account_id=account_id, records=records)


async def create_proof(
    account_id: str,
    *,
    catalog_source: CatalogSource,
    resolver: OwnershipResolver,
    unique_id: str | None = None,
    now: datetime | None = None,
    hooks: PipelineHooks | None = None,
) -> ProofDraft:
    """Resolve `account_id` and encode its owned badges into a proof string.

    Raises:
        LedgerError: the account could not be resolved.
        ProofEncodingError: `unique_id` contains the field delimiter.
    """

    account = await check_account(
        account_id, catalog_source=catalog_source, resolver=resolver, hooks=hooks
    )
    owned = [
        r.badge
        for r in account.records
        if r.owned and proof_codec.is_encodable(r.badge)
    ]
    now = now or datetime.now(timezone.utc)
    proof = Proof(
        owned_badges=owned,
        timestamp=int(now.timestamp()),
        unique_id=unique_id or None,
    )
    return ProofDraft(records=account.records, proof=proof, encoded=proof_codec.encode(proof))


async def verify_envelope(
    blob: str,
    *,
    catalog_source: CatalogSource,
    resolver: OwnershipResolver,
    verifier: SignatureVerifier,
    hooks: PipelineHooks | None = None,
) -> VerificationReport:
    """Check a signed proof against a fresh ownership resolution.

    Raises:
        ProofError: the envelope or the proof inside it cannot be decoded.
        LedgerError: the signer's account could not be resolved.
    """

    hooks = hooks or PipelineHooks()
    hooks.enter(LoadStage.UNWRAP_ENVELOPE)
    opened = envelope.unwrap(blob, verifier)
    if opened is None:
        raise ProofError(ProofErrorKind.INVALID_ENCODING, "not a signed proof envelope")
    if not opened.valid:
        logger.warning("signature of proof by %s is invalid", opened.public_key)

    hooks.enter(LoadStage.FETCH_CATALOG)
    catalog = await catalog_source()

    hooks.enter(LoadStage.CHECK_PROOF)
    claim = proof_codec.decode(opened.plain_message, catalog)
    logger.debug("proof claims ownership over %s", sorted(claim.codes))

    hooks.enter(LoadStage.FETCH_OWNED_BADGES)
    records = await resolver.resolve(opened.public_key, catalog)

    owned_codes = {r.badge.code for r in records if r.owned}
    completed = {
        r.badge.code for r in records if r.owned and proof_codec.is_encodable(r.badge)
    }
    unbacked = sorted(claim.codes - owned_codes)
    for code in unbacked:
        logger.error("proof claims to own %s but the account does not hold it", code)

    hooks.enter(LoadStage.DONE)
    return VerificationReport(
        public_key=opened.public_key,
        signature_valid=opened.valid,
        claim=claim,
        records=records,
        unbacked_claims=unbacked,
        claimed_count=len(claim.codes),
        completed_count=len(completed),
    )
