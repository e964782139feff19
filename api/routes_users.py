"""
api/routes_users.py — User, DID & Credential Endpoints
=======================================================
Handles subject registration, DID provisioning, KYC issuance and verification.

Endpoints:
    POST /api/users/register                          → Register a Sui address + username
    POST /api/users/issue-kyc                         → Issue a KYC VC on-chain (no mirror)
    GET  /api/users/{address}/did                     → Does the user have a DID?
    POST /api/users/{address}/did                     → Provision the user's DID
    GET  /api/users/{address}/did/document            → W3C DID document
    GET  /api/users/{address}/credentials             → Active (non-revoked) credentials
    POST /api/users/credentials                       → Issue a VC and mirror it
    POST /api/users/verify                            → Verify a credential reference
    POST /api/users/{address}/credentials/{vc_id}/revoke → Revoke a mirrored credential
    GET  /api/users/{address}/audit                   → Audit trail

Errors raised by modules/kyc.py are rendered by the handlers in main.py.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from api.deps import get_services
from core.errors import ValidationError
from db.session import get_db
from modules import kyc
from modules.kyc import KycServices

router = APIRouter()


# ── Request schemas ───────────────────────────────────────────────────────────
# Fields default to empty so a missing field produces the workflow's own 400
# message instead of a generic schema error.
class RegisterRequest(BaseModel):
    suiAddress: str = ""
    username: str = ""


class IssueKycRequest(BaseModel):
    suiAddress: str = ""
    firstName: str = ""
    lastName: str = ""
    dateOfBirth: str = ""
    nationalId: str = ""
    address: str = ""


class CredentialData(BaseModel):
    fullName: str = ""
    dateOfBirth: str = ""
    nationalId: str = ""
    address: str = ""


class CreateCredentialRequest(BaseModel):
    userAddress: str = ""
    credentialData: Optional[CredentialData] = None


class VerifyRequest(BaseModel):
    userAddress: str = ""
    vcId: str = ""


# ── Endpoints ─────────────────────────────────────────────────────────────────
@router.post("/register", status_code=201)
async def register_user(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    if not body.suiAddress or not body.username:
        raise ValidationError("Sui address and username are required")
    return await kyc.register_subject(db, body.suiAddress, body.username)


@router.post("/issue-kyc")
async def issue_kyc_credential(
    body: IssueKycRequest,
    db: AsyncSession = Depends(get_db),
    services: KycServices = Depends(get_services),
):
    if not body.suiAddress or not body.firstName or not body.lastName or not body.dateOfBirth:
        raise ValidationError("suiAddress, firstName, lastName, and dateOfBirth are required")
    return await kyc.issue_kyc(
        db, services, body.suiAddress, body.firstName, body.lastName, body.dateOfBirth,
        national_id=body.nationalId, home_address=body.address,
    )


@router.get("/{user_address}/did")
async def check_user_did(user_address: str, db: AsyncSession = Depends(get_db)):
    return await kyc.get_did_status(db, user_address)


@router.post("/{user_address}/did", status_code=201)
async def create_user_did(
    user_address: str,
    db: AsyncSession = Depends(get_db),
    services: KycServices = Depends(get_services),
):
    """Create a DID on-chain with the server sponsoring the transaction."""
    return await kyc.create_subject_did(db, services, user_address)


@router.get("/{user_address}/did/document")
async def get_did_document(user_address: str, db: AsyncSession = Depends(get_db)):
    return await kyc.get_did_document(db, user_address)


@router.get("/{user_address}/credentials")
async def get_user_credentials(user_address: str, db: AsyncSession = Depends(get_db)):
    return await kyc.list_credentials(db, user_address)


@router.post("/credentials", status_code=201)
async def create_credential(
    body: CreateCredentialRequest,
    db: AsyncSession = Depends(get_db),
    services: KycServices = Depends(get_services),
):
    if not body.userAddress or body.credentialData is None:
        raise ValidationError("User address and credential data are required")
    return await kyc.create_credential(db, services, body.userAddress, body.credentialData.model_dump())


@router.post("/verify")
async def verify_credential(body: VerifyRequest, db: AsyncSession = Depends(get_db)):
    if not body.userAddress or not body.vcId:
        raise ValidationError("User address and VC ID are required")
    return await kyc.verify_credential(db, body.userAddress, body.vcId)


@router.post("/{user_address}/credentials/{vc_id}/revoke")
async def revoke_credential(user_address: str, vc_id: str, db: AsyncSession = Depends(get_db)):
    return await kyc.revoke_credential(db, user_address, vc_id)


@router.get("/{user_address}/audit")
async def get_audit_trail(user_address: str, db: AsyncSession = Depends(get_db)):
    return await kyc.get_audit_trail(db, user_address)
