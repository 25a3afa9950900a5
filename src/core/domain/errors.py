"""Error taxonomy of the domain.

Two tagged families travel up to the caller:
- `LedgerError`: what went wrong talking to the ledger (bad key, unfunded
  account, anything else).
- `ProofError`: a proof string that cannot be read.

`ProofEncodingError` covers the generic "other" case raised while building a
proof, and `CatalogError` the badge catalog descriptor.
"""

from __future__ import annotations

from enum import Enum


class QuestBadgeError(Exception):
    """Base class for every error raised by this project."""


class LedgerErrorKind(str, Enum):
    INVALID_PUBLIC_KEY = "invalid_public_key"
    ACCOUNT_NOT_FOUND = "account_not_found"
    UNKNOWN = "unknown"


_LEDGER_MESSAGES: dict[LedgerErrorKind, str] = {
    LedgerErrorKind.INVALID_PUBLIC_KEY: "The specified public key is not in a valid ed25519 format!",
    LedgerErrorKind.ACCOUNT_NOT_FOUND: "The account you specified could not be found!",
    LedgerErrorKind.UNKNOWN: "Unknown error while trying to connect to the stellar network!",
}


class LedgerError(QuestBadgeError):
    """Failure reported by (or while talking to) the ledger API."""

    def __init__(self, kind: LedgerErrorKind, detail: str | None = None) -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(detail or kind.value)

    @classmethod
    def from_status(cls, status: object) -> "LedgerError":
        """Map the `status` field of a ledger response to an error kind."""

        if status == 400:
            return cls(LedgerErrorKind.INVALID_PUBLIC_KEY, f"ledger status {status}")
        if status == 404:
            return cls(LedgerErrorKind.ACCOUNT_NOT_FOUND, f"ledger status {status}")
        return cls(LedgerErrorKind.UNKNOWN, f"ledger status {status}")

    def user_message(self) -> str:
        return _LEDGER_MESSAGES[self.kind]


class ProofErrorKind(str, Enum):
    INVALID_ENCODING = "invalid_encoding"
    WRONG_VERSION = "wrong_version"


class ProofError(QuestBadgeError):
    """A proof string (or its envelope) could not be decoded."""

    def __init__(self, kind: ProofErrorKind, detail: str | None = None) -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(detail or kind.value)

    def user_message(self) -> str:
        return "The given proof could not be decoded!"


class ProofEncodingError(QuestBadgeError):
    """A proof could not be encoded (bad quest code, forbidden characters)."""


class CatalogError(QuestBadgeError):
    """The badge catalog descriptor could not be fetched or parsed."""
