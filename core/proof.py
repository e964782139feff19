"""
core/proof.py — Credential Proof Material
==========================================
Bytes attached to every issued VC as its proof argument.

Only a placeholder exists today: the on-chain contract stores the bytes
but does not check them. A real implementation (e.g. an Ed25519 signature
by the issuer over the canonical claims) subclasses ProofMaterial and is
passed to CredentialIssuer; the issuance algorithm does not change.
"""

from core.claims import KycClaims

PLACEHOLDER_PROOF = b"signature_would_go_here"


class ProofMaterial:
    """Produces the proof bytes for one issuance."""

    def proof_for(self, recipient_address: str, claims: KycClaims) -> bytes:
        raise NotImplementedError


class PlaceholderProof(ProofMaterial):
    """Constant bytes in lieu of a cryptographic proof."""

    def proof_for(self, recipient_address: str, claims: KycClaims) -> bytes:
        return PLACEHOLDER_PROOF
