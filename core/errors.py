"""
core/errors.py — Error Taxonomy
================================
Every failure the KYC workflow can surface. main.py maps these to HTTP
status codes; nothing below the API layer knows about HTTP.

    ValidationError, ConflictError  → 400
    NotFoundError                   → 404
    ChainError (and subclasses)     → 500
    ConfigurationError              → process refuses to start
"""


class KycError(Exception):
    """Base class for all errors raised by the service."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(KycError):
    """Caller input is missing or malformed. No side effects happened."""


class ConflictError(KycError):
    """The request collides with existing state (duplicate subject, DID already set)."""


class NotFoundError(KycError):
    """Subject or credential does not exist."""


class ConfigurationError(KycError):
    """A required setting is missing or unusable."""


# ── Chain failures ────────────────────────────────────────────────────────────
# None of these are retried automatically: chain submissions are not
# idempotent and a blind resubmit can create duplicate objects.
class ChainError(KycError):
    """Base for failures talking to the ledger."""


class ChainSubmissionError(ChainError):
    """The network rejected the transaction, or it executed with a failure status."""


class SchemaCreationError(ChainError):
    """Schema transaction succeeded but created no SchemaObject."""


class DidCreationError(ChainError):
    """DID transaction succeeded but created no DIDObject."""


class VcIssuanceError(ChainError):
    """Issuance transaction succeeded but created no VCObject."""
