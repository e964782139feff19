"""
modules/kyc.py — KYC Workflow
==============================
Business logic behind every /api/users endpoint.

Flow for a new credential:
    API route → check subject has a DID → issue VC on-chain → save mirror → audit → return

The mirror row is only written after the chain transaction succeeded and
produced a VCObject, so no row ever points at a missing chain object.
"""

import logging
from dataclasses import dataclass
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from config import Settings
from core.claims import KycClaims
from core.credentials import CredentialIssuer
from core.errors import ConflictError, NotFoundError, ValidationError
from core.identity import DidProvisioner, build_did_document
from core.proof import ProofMaterial
from core.schema import SchemaManager
from core.signer import IssuerSigner
from core.verifier import CredentialVerifier
from db.store import RecordStore

logger = logging.getLogger("suikyc.modules.kyc")

CREDENTIAL_FIELDS = ["fullName", "dateOfBirth", "nationalId", "address"]


@dataclass
class KycServices:
    """Everything that talks to the chain, wired once at startup."""
    chain: object
    signer: IssuerSigner
    schema_manager: SchemaManager
    did_provisioner: DidProvisioner
    credential_issuer: CredentialIssuer


def build_services(settings: Settings, chain, signer: IssuerSigner, proof: ProofMaterial = None) -> KycServices:
    schema_manager = SchemaManager(chain, signer, settings.SUI_PACKAGE_ID, settings.SUI_SCHEMA_ID)
    return KycServices(
        chain=chain,
        signer=signer,
        schema_manager=schema_manager,
        did_provisioner=DidProvisioner(chain, signer, settings.SUI_PACKAGE_ID),
        credential_issuer=CredentialIssuer(
            chain,
            signer,
            schema_manager,
            package_id=settings.SUI_PACKAGE_ID,
            issuer_did_id=settings.DID_OBJECT_ID,
            clock_id=settings.SUI_CLOCK_OBJECT_ID,
            proof=proof,
        ),
    )


# ── Subjects & DIDs ───────────────────────────────────────────────────────────
async def register_subject(db: AsyncSession, sui_address: str, username: str) -> dict:
    store = RecordStore(db)
    if await store.subject_exists(sui_address, username):
        raise ConflictError("User with this address or username already exists")
    subject = await store.create_subject(sui_address, username)
    await db.commit()
    logger.info(f"Registered {username} at {sui_address}")
    return subject.to_dict()


async def get_did_status(db: AsyncSession, sui_address: str) -> dict:
    subject = await _require_subject(RecordStore(db), sui_address)
    return {"hasDid": subject.did_object_id is not None, "didId": subject.did_object_id}


async def get_did_document(db: AsyncSession, sui_address: str) -> dict:
    subject = await _require_subject(RecordStore(db), sui_address)
    if not subject.did_object_id:
        raise NotFoundError("User does not have a DID")
    return build_did_document(subject.did_object_id, subject.sui_address)


async def create_subject_did(db: AsyncSession, services: KycServices, sui_address: str) -> dict:
    """
    Provision an on-chain DID for a subject, creating the subject if needed.
    A subject that already holds a DID is rejected before any transaction.
    """
    store = RecordStore(db)
    subject = await store.find_subject(sui_address)
    if subject is None:
        subject = await store.create_subject(sui_address, f"user_{sui_address[:8]}")
        logger.info(f"Auto-created user for {sui_address}")

    if subject.did_object_id:
        raise ConflictError("User already has a DID")

    did_object_id = await services.did_provisioner.provision_did(sui_address)
    try:
        await store.set_subject_did(subject, did_object_id)
    except ConflictError:
        logger.warning(f"DID {did_object_id} for {sui_address} not stored: another request attached one first")
        raise
    await store.write_audit(sui_address, "DID_CREATED", "DID provisioned", did_object_id)
    await db.commit()
    return {"didId": did_object_id, "message": "DID created successfully"}


# ── Credentials ───────────────────────────────────────────────────────────────
async def issue_kyc(
    db: AsyncSession,
    services: KycServices,
    sui_address: str,
    first_name: str,
    last_name: str,
    date_of_birth: str,
    national_id: str = "",
    home_address: str = "",
) -> dict:
    """On-chain issuance only; nothing is mirrored. Prefer create_credential()."""
    store = RecordStore(db)
    await _require_subject(store, sui_address, "User not found with this Sui address")

    claims = KycClaims(first_name, last_name, date_of_birth, national_id, home_address)
    result = await services.credential_issuer.issue_credential(sui_address, claims)
    await store.write_audit(sui_address, "VC_ISSUED", "Issued without mirror record", result.transaction_digest)
    await db.commit()
    return {
        "message": "KYC Credential issued successfully!",
        "transactionDigest": result.transaction_digest,
        "vcObjectId": result.credential_object_id,
    }


async def create_credential(db: AsyncSession, services: KycServices, sui_address: str, credential_data: dict) -> dict:
    missing = [name for name in CREDENTIAL_FIELDS if not (credential_data.get(name) or "").strip()]
    if missing:
        raise ValidationError("Full name, date of birth, national ID, and address are required")

    store = RecordStore(db)
    subject = await store.find_subject(sui_address)
    if subject is None or not subject.did_object_id:
        raise ValidationError("User must have a DID before creating credentials")

    payload = {name: credential_data[name] for name in CREDENTIAL_FIELDS}
    result = await services.credential_issuer.issue_credential(
        sui_address, KycClaims.from_credential_data(payload)
    )

    credential = await store.create_credential(
        user_address=sui_address,
        credential_data=payload,
        sui_vc_id=result.credential_object_id,
        transaction_digest=result.transaction_digest,
    )
    await store.write_audit(sui_address, "VC_ISSUED", f"Credential {credential.id}", result.transaction_digest)
    await db.commit()
    logger.info(f"Credential {credential.id} mirrored for {sui_address} → {result.credential_object_id}")
    return credential.to_dict()


async def list_credentials(db: AsyncSession, sui_address: str) -> List[dict]:
    credentials = await RecordStore(db).list_active_credentials(sui_address)
    return [c.to_dict() for c in credentials]


async def verify_credential(db: AsyncSession, sui_address: str, vc_id: str) -> dict:
    store = RecordStore(db)
    result = await CredentialVerifier(store).verify(sui_address, vc_id)
    if result.credential is not None:
        await store.write_audit(
            sui_address, "VC_VERIFIED", f"access={result.has_access}", result.credential.sui_vc_id
        )
        await db.commit()
    return result.to_dict()


async def revoke_credential(db: AsyncSession, sui_address: str, vc_id: str) -> dict:
    """Mark an active credential revoked in the mirror. There is no way back."""
    store = RecordStore(db)
    credential = await CredentialVerifier(store).find_active(sui_address, vc_id)
    if credential is None:
        raise NotFoundError("Credential not found or already revoked")

    await store.mark_revoked(credential)
    await store.write_audit(sui_address, "VC_REVOKED", f"Credential {credential.id}", credential.sui_vc_id)
    await db.commit()
    logger.info(f"Credential {credential.id} revoked for {sui_address}")
    return credential.to_dict()


async def get_audit_trail(db: AsyncSession, sui_address: str) -> List[dict]:
    entries = await RecordStore(db).audit_trail(sui_address)
    return [
        {
            "action": e.action,
            "details": e.details,
            "chainRef": e.chain_ref,
            "timestamp": e.timestamp.isoformat(),
        }
        for e in entries
    ]


# ── Helpers ───────────────────────────────────────────────────────────────────
async def _require_subject(store: RecordStore, sui_address: str, message: str = "User not found"):
    subject = await store.find_subject(sui_address)
    if subject is None:
        raise NotFoundError(message)
    return subject
