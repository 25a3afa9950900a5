"""Signature verification contract."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class SignatureVerifier(Protocol):
    """Checks a detached signature; must never raise on malformed input."""

    def verify(self, public_key: str, message: str, signature: str) -> bool:
        ...
