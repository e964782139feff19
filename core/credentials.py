"""
core/credentials.py — KYC Credential Issuance
==============================================
Builds and submits vc_manager::issue_vc from the issuer's DID to a
recipient address, then picks the VCObject out of the transaction effects.

Claims go over the wire as native Move strings, one argument per field,
in KYC_REQUIRED_FIELDS order.

Persisting the off-chain mirror is the caller's job (modules/kyc.py) and
happens only after this returns.
"""

import logging
from dataclasses import dataclass

from core.blockchain import VC_OBJECT_TYPE, MoveCall, ObjectArg, PureArg
from core.claims import KycClaims
from core.errors import VcIssuanceError
from core.proof import PlaceholderProof, ProofMaterial
from core.schema import SchemaManager
from core.signer import IssuerSigner

logger = logging.getLogger("suikyc.credentials")


@dataclass(frozen=True)
class IssuanceResult:
    transaction_digest: str
    credential_object_id: str


class CredentialIssuer:

    def __init__(
        self,
        chain,
        signer: IssuerSigner,
        schema_manager: SchemaManager,
        package_id: str,
        issuer_did_id: str,
        clock_id: str = "0x6",
        proof: ProofMaterial = None,
    ):
        self.chain = chain
        self.signer = signer
        self.schema_manager = schema_manager
        self.package_id = package_id
        self.issuer_did_id = issuer_did_id
        self.clock_id = clock_id
        self.proof = proof or PlaceholderProof()

    async def issue_credential(self, recipient_address: str, claims: KycClaims) -> IssuanceResult:
        logger.info(f"Issuing KYC VC for {recipient_address}")
        schema_id = await self.schema_manager.ensure_kyc_schema()

        call = self.build_issue_call(schema_id, recipient_address, claims)
        result = await self.chain.submit(call, self.signer)
        logger.info(f"VC issuance tx digest: {result.digest}")

        created = result.find_created(VC_OBJECT_TYPE)
        if created is None:
            raise VcIssuanceError(f"VC object ID not found in transaction {result.digest}")
        return IssuanceResult(transaction_digest=result.digest, credential_object_id=created.object_id)

    def build_issue_call(self, schema_id: str, recipient_address: str, claims: KycClaims) -> MoveCall:
        proof_bytes = self.proof.proof_for(recipient_address, claims)
        return MoveCall(
            package=self.package_id,
            module="vc_manager",
            function="issue_vc",
            arguments=[
                ObjectArg(self.issuer_did_id),
                ObjectArg(schema_id),
                PureArg(recipient_address, "address"),
                *[PureArg(value, "0x1::string::String") for value in claims.values()],
                PureArg(proof_bytes, "vector<u8>"),
                ObjectArg(self.clock_id),
            ],
        )
