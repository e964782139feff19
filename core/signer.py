"""
core/signer.py — Issuer Keypair
================================
The one long-lived identity that signs and pays for every transaction.
Loaded once at startup from ISSUER_SECRET_KEY and handed to the components
that submit transactions (never read from global state).

Sui specifics:
    address   = 0x + blake2b-256(scheme_flag || public_key)
    signature = base64(scheme_flag || ed25519_sig || public_key)
where the signed message is blake2b-256(intent || tx_bytes) and
intent = [0, 0, 0] (TransactionData, V0, Sui).
"""

import base64
import binascii
import hashlib
import logging

from nacl.signing import SigningKey

from core.errors import ConfigurationError

logger = logging.getLogger("suikyc.signer")

ED25519_FLAG = b"\x00"
TRANSACTION_INTENT = b"\x00\x00\x00"


def _blake2b_256(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=32).digest()


class IssuerSigner:
    """Ed25519 keypair in Sui's encoding."""

    def __init__(self, signing_key: SigningKey):
        self._signing_key = signing_key
        self._public_key = bytes(signing_key.verify_key)
        self.address = "0x" + _blake2b_256(ED25519_FLAG + self._public_key).hex()

    @classmethod
    def from_secret(cls, secret_b64: str) -> "IssuerSigner":
        """
        Build from a base64 Sui secret.
        Accepts the keystore form (flag byte + 32-byte seed) or a bare seed.
        """
        if not secret_b64:
            raise ConfigurationError("ISSUER_SECRET_KEY environment variable not set!")
        try:
            raw = base64.b64decode(secret_b64, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ConfigurationError(f"ISSUER_SECRET_KEY is not valid base64: {e}")

        if len(raw) == 33:
            if raw[:1] != ED25519_FLAG:
                raise ConfigurationError("ISSUER_SECRET_KEY is not an Ed25519 key")
            raw = raw[1:]
        if len(raw) != 32:
            raise ConfigurationError(
                f"ISSUER_SECRET_KEY must decode to 32 or 33 bytes, got {len(raw)}"
            )

        signer = cls(SigningKey(raw))
        logger.info(f"Issuer address: {signer.address}")
        return signer

    @classmethod
    def generate(cls) -> "IssuerSigner":
        return cls(SigningKey.generate())

    @property
    def public_key(self) -> bytes:
        return self._public_key

    def export_secret(self) -> str:
        """Base64 keystore form, the inverse of from_secret()."""
        return base64.b64encode(ED25519_FLAG + bytes(self._signing_key)).decode()

    def sign_transaction(self, tx_bytes_b64: str) -> str:
        """Sign base64 transaction bytes and return a serialized Sui signature."""
        tx_bytes = base64.b64decode(tx_bytes_b64)
        digest = _blake2b_256(TRANSACTION_INTENT + tx_bytes)
        signature = self._signing_key.sign(digest).signature
        return base64.b64encode(ED25519_FLAG + signature + self._public_key).decode()
