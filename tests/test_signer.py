"""Tests for the issuer keypair: loading, Sui address derivation, signing."""

from __future__ import annotations

import base64
import hashlib

import pytest
from nacl.signing import SigningKey

from core.errors import ConfigurationError
from core.signer import IssuerSigner

SEED = bytes(range(32))


def test_address_is_blake2b_of_flag_and_public_key() -> None:
    signer = IssuerSigner(SigningKey(SEED))
    expected = hashlib.blake2b(b"\x00" + bytes(SigningKey(SEED).verify_key), digest_size=32).hexdigest()

    assert signer.address == "0x" + expected
    assert len(signer.address) == 66


def test_from_secret_accepts_keystore_and_bare_seed() -> None:
    keystore = base64.b64encode(b"\x00" + SEED).decode()
    bare = base64.b64encode(SEED).decode()

    assert IssuerSigner.from_secret(keystore).address == IssuerSigner.from_secret(bare).address


def test_export_secret_round_trips() -> None:
    signer = IssuerSigner.generate()
    assert IssuerSigner.from_secret(signer.export_secret()).address == signer.address


@pytest.mark.parametrize("secret, match", [
    ("", "not set"),
    ("not base64!!", "not valid base64"),
    (base64.b64encode(b"\x01" + SEED).decode(), "not an Ed25519 key"),
    (base64.b64encode(SEED[:16]).decode(), "32 or 33 bytes"),
])
def test_from_secret_rejects_bad_secrets(secret: str, match: str) -> None:
    with pytest.raises(ConfigurationError, match=match):
        IssuerSigner.from_secret(secret)


def test_sign_transaction_signs_intent_digest() -> None:
    key = SigningKey(SEED)
    signer = IssuerSigner(key)
    tx_bytes = b"transaction-data"

    serialized = base64.b64decode(signer.sign_transaction(base64.b64encode(tx_bytes).decode()))

    assert serialized[0] == 0
    assert serialized[65:] == bytes(key.verify_key)
    digest = hashlib.blake2b(b"\x00\x00\x00" + tx_bytes, digest_size=32).digest()
    key.verify_key.verify(digest, serialized[1:65])   # raises if invalid
