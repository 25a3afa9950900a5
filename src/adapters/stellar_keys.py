"""Stellar account ids and wallet message signatures.

Account ids (`G...`) are strkeys: base32 of a version byte, the raw 32-byte
ed25519 key and a CRC16-XModem checksum (little endian).

Wallet message signatures are hex-encoded ed25519 signatures over the UTF-8
text `"{public_key}:{message}"`.
"""

from __future__ import annotations

import base64
import binascii

from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from core.interfaces.verifier import SignatureVerifier

ACCOUNT_ID_VERSION = 6 << 3
_RAW_KEY_LENGTH = 32
_STRKEY_LENGTH = 56


def _checksum(payload: bytes) -> bytes:
    return binascii.crc_hqx(payload, 0).to_bytes(2, "little")


def encode_account_id(raw_key: bytes) -> str:
    """Render a raw ed25519 public key as a `G...` account id."""

    if len(raw_key) != _RAW_KEY_LENGTH:
        raise ValueError("ed25519 public key must be 32 bytes")
    payload = bytes([ACCOUNT_ID_VERSION]) + raw_key
    return base64.b32encode(payload + _checksum(payload)).decode("ascii")


def decode_account_id(account_id: str) -> bytes:
    """Raw ed25519 key of a `G...` account id.

    Raises:
        ValueError: wrong length, alphabet, version byte or checksum.
    """

    if len(account_id) != _STRKEY_LENGTH:
        raise ValueError("account id must be 56 characters")
    try:
        decoded = base64.b32decode(account_id)
    except binascii.Error as exc:
        raise ValueError(f"account id is not base32: {exc}") from exc

    payload, checksum = decoded[:-2], decoded[-2:]
    if payload[0] != ACCOUNT_ID_VERSION:
        raise ValueError("not an account id (wrong version byte)")
    if _checksum(payload) != checksum:
        raise ValueError("account id checksum mismatch")
    return payload[1:]


def is_valid_account_id(account_id: str) -> bool:
    try:
        decode_account_id(account_id)
    except ValueError:
        return False
    return True


def signed_payload(public_key: str, message: str) -> bytes:
    """Bytes the wallet actually signs for `message`."""

    return f"{public_key}:{message}".encode("utf-8")


class StellarMessageVerifier(SignatureVerifier):
    """ed25519 check of wallet-signed messages (PyNaCl)."""

    def verify(self, public_key: str, message: str, signature: str) -> bool:
        try:
            verify_key = VerifyKey(decode_account_id(public_key))
            raw_signature = bytes.fromhex(signature)
            verify_key.verify(signed_payload(public_key, message), raw_signature)
        except (BadSignatureError, ValueError):
            return False
        return True
