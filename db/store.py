"""
db/store.py — Record Store
===========================
Find / create / update access to the mirror tables for one DB session.
Commits are left to the session owner (get_db() commits per request).
"""

import logging
from typing import List, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import ConflictError
from db.models import AuditLog, Credential, Subject

logger = logging.getLogger("suikyc.db.store")


class RecordStore:

    def __init__(self, db: AsyncSession):
        self.db = db

    # ── Subjects ───────────────────────────────────────────────────────────
    async def find_subject(self, sui_address: str) -> Optional[Subject]:
        result = await self.db.execute(select(Subject).where(Subject.sui_address == sui_address))
        return result.scalars().first()

    async def subject_exists(self, sui_address: str, username: str) -> bool:
        result = await self.db.execute(
            select(Subject.id).where(or_(Subject.sui_address == sui_address, Subject.username == username))
        )
        return result.first() is not None

    async def create_subject(self, sui_address: str, username: str) -> Subject:
        subject = Subject(sui_address=sui_address, username=username)
        self.db.add(subject)
        try:
            await self.db.flush()
        except IntegrityError:
            logger.warning(f"Subject {username} at {sui_address} collides with an existing row")
            raise ConflictError("User with this address or username already exists")
        return subject

    async def set_subject_did(self, subject: Subject, did_object_id: str) -> Subject:
        """
        Attach a DID to a subject that has none. The UPDATE only matches a
        NULL did_object_id, so a stored DID is never replaced.
        """
        result = await self.db.execute(
            update(Subject)
            .where(Subject.id == subject.id, Subject.did_object_id.is_(None))
            .values(did_object_id=did_object_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConflictError("User already has a DID")
        await self.db.refresh(subject)
        return subject

    # ── Credentials ────────────────────────────────────────────────────────
    async def find_credential(self, user_address: str, include_revoked: bool = False, **key) -> Optional[Credential]:
        """
        Look up one credential of a subject by exactly one key:
            find_credential(addr, sui_vc_id=...)  or  find_credential(addr, id=...)
        """
        if len(key) != 1:
            raise ValueError("find_credential takes exactly one key")
        (name, value), = key.items()
        query = select(Credential).where(
            Credential.user_address == user_address,
            getattr(Credential, name) == value,
        )
        if not include_revoked:
            query = query.where(Credential.is_revoked == False)  # noqa: E712
        result = await self.db.execute(query)
        return result.scalars().first()

    async def create_credential(
        self,
        user_address: str,
        credential_data: dict,
        sui_vc_id: str,
        transaction_digest: str,
    ) -> Credential:
        credential = Credential(
            user_address=user_address,
            credential_data=credential_data,
            sui_vc_id=sui_vc_id,
            transaction_digest=transaction_digest,
        )
        self.db.add(credential)
        await self.db.flush()
        return credential

    async def list_active_credentials(self, user_address: str) -> List[Credential]:
        result = await self.db.execute(
            select(Credential)
            .where(Credential.user_address == user_address, Credential.is_revoked == False)  # noqa: E712
            .order_by(Credential.issued_at.desc())
        )
        return list(result.scalars().all())

    async def mark_revoked(self, credential: Credential) -> Credential:
        credential.is_revoked = True
        await self.db.flush()
        return credential

    # ── Audit ──────────────────────────────────────────────────────────────
    async def write_audit(self, user_address: str, action: str, details: str = None, chain_ref: str = None):
        self.db.add(AuditLog(
            user_address=user_address,
            action=action,
            details=details,
            chain_ref=chain_ref,
        ))
        await self.db.flush()

    async def audit_trail(self, user_address: str) -> List[AuditLog]:
        result = await self.db.execute(
            select(AuditLog).where(AuditLog.user_address == user_address).order_by(AuditLog.timestamp)
        )
        return list(result.scalars().all())
