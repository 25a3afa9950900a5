from __future__ import annotations

import pytest
from nacl.signing import SigningKey

from adapters.stellar_keys import (
    StellarMessageVerifier,
    decode_account_id,
    encode_account_id,
    is_valid_account_id,
    signed_payload,
)

# Well-known account id of the Stellar SDF "zero" key example.
ZERO_KEY_ACCOUNT = "GAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAWHF"


def keypair() -> tuple[SigningKey, str]:
    signing_key = SigningKey.generate()
    return signing_key, encode_account_id(bytes(signing_key.verify_key))


def sign(signing_key: SigningKey, public_key: str, message: str) -> str:
    return signing_key.sign(signed_payload(public_key, message)).signature.hex()


def test_zero_key_round_trip():
    assert encode_account_id(bytes(32)) == ZERO_KEY_ACCOUNT
    assert decode_account_id(ZERO_KEY_ACCOUNT) == bytes(32)


def test_generated_account_id_shape():
    _, account_id = keypair()

    assert account_id.startswith("G")
    assert len(account_id) == 56
    assert is_valid_account_id(account_id)


@pytest.mark.parametrize(
    "value",
    [
        "",
        "GABC",
        ZERO_KEY_ACCOUNT[:-1] + "A",  # checksum
        ZERO_KEY_ACCOUNT.lower(),
        "S" + ZERO_KEY_ACCOUNT[1:],  # version byte
    ],
)
def test_invalid_account_ids(value):
    assert not is_valid_account_id(value)


def test_encode_rejects_short_key():
    with pytest.raises(ValueError):
        encode_account_id(b"\x00" * 31)


def test_verify_good_signature():
    signing_key, account_id = keypair()
    signature = sign(signing_key, account_id, "v1.2.1700000000.hi")

    assert StellarMessageVerifier().verify(account_id, "v1.2.1700000000.hi", signature)


def test_verify_rejects_tampered_message():
    signing_key, account_id = keypair()
    signature = sign(signing_key, account_id, "v1.2..")

    assert not StellarMessageVerifier().verify(account_id, "v1.3..", signature)


def test_verify_rejects_other_signer():
    signing_key, account_id = keypair()
    _, other_account = keypair()
    signature = sign(signing_key, account_id, "v1.2..")

    assert not StellarMessageVerifier().verify(other_account, "v1.2..", signature)


@pytest.mark.parametrize("signature", ["", "zz", "ab" * 10])
def test_verify_malformed_signature(signature):
    _, account_id = keypair()

    assert not StellarMessageVerifier().verify(account_id, "v1.2..", signature)


def test_verify_malformed_key():
    assert not StellarMessageVerifier().verify("GABCDE", "hello", "ab" * 64)
