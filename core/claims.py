"""
core/claims.py — KYC Claim Fields
==================================
The fixed claim layout of a KYC credential, shared by the schema manager
(field names) and the issuer (field values, same order).
"""

from dataclasses import dataclass
from typing import List

KYC_SCHEMA_NAME = "KYC_Credential"

# Order is part of the on-chain schema and never changes for a schema id.
KYC_REQUIRED_FIELDS = ["firstName", "lastName", "dateOfBirth", "nationalId", "address"]


@dataclass(frozen=True)
class KycClaims:
    first_name: str
    last_name: str
    date_of_birth: str
    national_id: str
    address: str

    def values(self) -> List[str]:
        """Claim values in KYC_REQUIRED_FIELDS order."""
        return [
            self.first_name,
            self.last_name,
            self.date_of_birth,
            self.national_id,
            self.address,
        ]

    @classmethod
    def from_credential_data(cls, data: dict) -> "KycClaims":
        """Build from the mirror's {fullName, dateOfBirth, nationalId, address} payload."""
        first_name, last_name = split_full_name(data["fullName"])
        return cls(
            first_name=first_name,
            last_name=last_name,
            date_of_birth=data["dateOfBirth"],
            national_id=data["nationalId"],
            address=data["address"],
        )


def split_full_name(full_name: str) -> tuple:
    """First word is the first name, everything after it the last name."""
    parts = full_name.split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])
