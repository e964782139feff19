"""
core/verifier.py — Credential Verification
===========================================
Answers "does this subject hold a valid KYC credential?" against the
off-chain mirror.

A presented reference is either a Sui VC object id or a mirror key
(24 hex characters). Sui ids are tried first; the mirror key is the
fallback.

Policy is deliberately simple: any non-revoked mirror record is valid,
and access requires a non-empty full name. The VC object is NOT
re-resolved on-chain, so issuer, schema and claims are not cross-checked.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from db.models import Credential
from db.store import RecordStore

logger = logging.getLogger("suikyc.verifier")

MIRROR_KEY_PATTERN = re.compile(r"[0-9a-fA-F]{24}")

NOT_FOUND_MESSAGE = "Credential not found or has been revoked"


@dataclass
class VerificationResult:
    is_valid: bool
    has_access: bool
    message: str
    credential: Optional[Credential] = None

    def to_dict(self) -> dict:
        return {"isValid": self.is_valid, "hasAccess": self.has_access, "message": self.message}


def is_mirror_key(credential_ref: str) -> bool:
    return bool(MIRROR_KEY_PATTERN.fullmatch(credential_ref))


class CredentialVerifier:

    def __init__(self, store: RecordStore):
        self.store = store

    async def find_active(self, subject_address: str, credential_ref: str) -> Optional[Credential]:
        """Sui object id first, then the mirror key when the ref has that shape."""
        credential = await self.store.find_credential(subject_address, sui_vc_id=credential_ref)
        if credential is None and is_mirror_key(credential_ref):
            credential = await self.store.find_credential(subject_address, id=credential_ref.lower())
        return credential

    async def verify(self, subject_address: str, credential_ref: str) -> VerificationResult:
        credential = await self.find_active(subject_address, credential_ref)
        if credential is None:
            logger.info(f"Verification for {subject_address}: {credential_ref} not found or revoked")
            return VerificationResult(False, False, NOT_FOUND_MESSAGE)

        # The lookup already excludes revoked rows; re-checked in case a store ignores the filter
        is_valid = not credential.is_revoked
        has_access = is_valid and bool(credential.credential_data.get("fullName"))

        logger.info(f"Verification for {subject_address}: {credential.id} valid={is_valid} access={has_access}")
        return VerificationResult(
            is_valid=is_valid,
            has_access=has_access,
            message=(
                "Credential verified successfully! Access granted."
                if has_access
                else "Credential verification failed."
            ),
            credential=credential,
        )
