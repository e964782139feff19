"""
db/models.py — Database Table Definitions
==========================================
Each class = one table.
The blockchain holds the credentials; the DB mirrors them for querying.
Primary keys are 24 hex characters so clients can tell a mirror key
apart from a Sui object id (0x + 64 hex).
"""

import secrets
from datetime import datetime
from sqlalchemy import String, DateTime, Boolean, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column
from db.session import Base


def new_object_key() -> str:
    return secrets.token_hex(12)


# ── 1. Subjects ───────────────────────────────────────────────────────────────
class Subject(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_object_key)
    sui_address: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)
    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    did_object_id: Mapped[str] = mapped_column(String(128), nullable=True)   # set once, never changed
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "suiAddress": self.sui_address,
            "username": self.username,
            "didObjectId": self.did_object_id,
        }


# ── 2. Credential Mirror ──────────────────────────────────────────────────────
class Credential(Base):
    __tablename__ = "credentials"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_object_key)
    user_address: Mapped[str] = mapped_column(String(128), index=True, nullable=False)
    credential_data: Mapped[dict] = mapped_column(JSON, nullable=False)   # fullName, dateOfBirth, nationalId, address
    issued_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    sui_vc_id: Mapped[str] = mapped_column(String(128), index=True, nullable=True)
    transaction_digest: Mapped[str] = mapped_column(String(128), nullable=True)
    is_revoked: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userAddress": self.user_address,
            "credentialData": self.credential_data,
            "issuedAt": self.issued_at.isoformat(),
            "suiVcId": self.sui_vc_id,
            "transactionDigest": self.transaction_digest,
            "isRevoked": self.is_revoked,
        }


# ── 3. Audit Log ──────────────────────────────────────────────────────────────
class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_object_key)
    user_address: Mapped[str] = mapped_column(String(128), index=True, nullable=False)
    action: Mapped[str] = mapped_column(String(50))           # DID_CREATED | VC_ISSUED | VC_VERIFIED | VC_REVOKED
    details: Mapped[str] = mapped_column(Text, nullable=True)
    chain_ref: Mapped[str] = mapped_column(String(128), nullable=True)   # tx digest or object id
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
