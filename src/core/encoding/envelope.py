"""Signed envelope: the transport form of a signed proof.

    base64("{signature}:{public_key}:{plain_message}")

No escaping is applied. On the way back everything after the second `:` is
concatenated as-is, without putting the separators back; envelopes already
in circulation are read that way, so a message containing `:` comes back
altered and fails verification.
"""

from __future__ import annotations

import base64
import binascii
import logging

from core.domain.models import SignedEnvelope, UnwrappedEnvelope
from core.interfaces.verifier import SignatureVerifier

logger = logging.getLogger(__name__)

SEPARATOR = ":"


def wrap(envelope: SignedEnvelope) -> str:
    raw = SEPARATOR.join([envelope.signature, envelope.public_key, envelope.plain_message])
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def split(blob: str) -> SignedEnvelope | None:
    """Decode `blob` into its three parts, or None when it is not an envelope."""

    try:
        raw = base64.b64decode(blob.strip(), validate=True)
    except (binascii.Error, ValueError):
        logger.debug("envelope is not valid base64")
        return None
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        logger.debug("envelope payload is not UTF-8")
        return None

    parts = text.split(SEPARATOR)
    if len(parts) < 3:
        logger.debug("envelope has %d parts, expected at least 3", len(parts))
        return None

    return SignedEnvelope(
        signature=parts[0],
        public_key=parts[1],
        plain_message="".join(parts[2:]),
    )


def unwrap(blob: str, verifier: SignatureVerifier) -> UnwrappedEnvelope | None:
    """Open `blob` and ask `verifier` about the signature.

    An invalid signature is reported through `valid`, not raised: deciding
    whether it is fatal is up to the caller.
    """

    envelope = split(blob)
    if envelope is None:
        return None

    valid = verifier.verify(envelope.public_key, envelope.plain_message, envelope.signature)
    return UnwrappedEnvelope(
        valid=valid,
        plain_message=envelope.plain_message,
        public_key=envelope.public_key,
    )
