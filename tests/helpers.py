"""Test doubles for the chain gateway.

RecordingChain wraps a real backend and keeps every submitted call so tests
can count transactions. ScriptedChain returns canned results for shaping
edge cases a real ledger would not produce.
"""

from __future__ import annotations

from core.blockchain import MoveCall, ObjectSnapshot, TransactionResult
from core.claims import KycClaims
from core.signer import IssuerSigner

JANE = {
    "fullName": "Jane Doe",
    "dateOfBirth": "1990-01-01",
    "nationalId": "N123",
    "address": "1 Main St",
}

JANE_CLAIMS = KycClaims.from_credential_data(JANE)


class RecordingChain:
    """Delegates to another chain and records submissions."""

    def __init__(self, inner) -> None:
        self.inner = inner
        self.submitted: list[MoveCall] = []
        self.results: list[TransactionResult] = []

    async def connect(self) -> None:
        await self.inner.connect()

    async def disconnect(self) -> None:
        await self.inner.disconnect()

    async def ping(self) -> str:
        return await self.inner.ping()

    async def resolve_object(self, object_id: str) -> ObjectSnapshot | None:
        return await self.inner.resolve_object(object_id)

    async def submit(self, call: MoveCall, signer: IssuerSigner) -> TransactionResult:
        self.submitted.append(call)
        result = await self.inner.submit(call, signer)
        self.results.append(result)
        return result

    def calls_to(self, function: str) -> list[MoveCall]:
        return [c for c in self.submitted if c.function == function]


class ScriptedChain:
    """Resolves only the ids it is given and answers every submit with the next scripted result."""

    def __init__(self, existing: dict[str, ObjectSnapshot] | None = None,
                 results: list[TransactionResult] | None = None) -> None:
        self.existing = existing or {}
        self.results = list(results or [])
        self.submitted: list[MoveCall] = []

    async def resolve_object(self, object_id: str) -> ObjectSnapshot | None:
        return self.existing.get(object_id)

    async def submit(self, call: MoveCall, signer: IssuerSigner) -> TransactionResult:
        self.submitted.append(call)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result
