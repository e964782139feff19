"""
core/identity.py — Decentralized Identity (DID) Provisioning
=============================================================
Creates one DIDObject on-chain per subject. The issuer keypair signs and
pays; the Move function takes no arguments and derives ownership from the
sender.

This component does not check whether the subject already has a DID —
calling it twice creates two DID objects. modules/kyc.py guards against
that before calling in.
"""

import logging

from core.blockchain import DID_OBJECT_TYPE, MoveCall
from core.errors import DidCreationError
from core.signer import IssuerSigner

logger = logging.getLogger("suikyc.identity")


class DidProvisioner:

    def __init__(self, chain, signer: IssuerSigner, package_id: str):
        self.chain = chain
        self.signer = signer
        self.package_id = package_id

    async def provision_did(self, subject_address: str) -> str:
        """Submit did_manager::create_did and return the created DIDObject id."""
        logger.info(f"Creating DID for user: {subject_address}")
        call = MoveCall(package=self.package_id, module="did_manager", function="create_did")
        result = await self.chain.submit(call, self.signer)
        logger.info(f"DID creation tx digest: {result.digest}")

        if not result.created_objects:
            raise DidCreationError(f"Transaction {result.digest} created no objects")
        created = result.find_created(DID_OBJECT_TYPE)
        if created is None:
            raise DidCreationError(
                f"Could not find created DID object ID in transaction {result.digest}"
            )
        logger.info(f"Created DID object: {created.object_id}")
        return created.object_id


def build_did_document(did_object_id: str, subject_address: str) -> dict:
    """W3C DID document for a subject's on-chain DID object."""
    did = f"did:sui:{did_object_id}"
    return {
        "@context": "https://www.w3.org/ns/did/v1",
        "id": did,
        "verificationMethod": [{
            "id": f"{did}#keys-1",
            "type": "Ed25519VerificationKey2020",
            "controller": did,
            "blockchainAccountId": f"sui:{subject_address}",
        }],
        "authentication": [f"{did}#keys-1"],
    }
