"""
core/schema.py — Credential Schema Management
==============================================
Makes sure a schema object exists on-chain before any credential is
issued against it. The schema is created lazily, the first time the
configured id fails to resolve.

Existence is re-checked on every issuance rather than cached, so a
restarted process or a rotated SUI_SCHEMA_ID is picked up without
special handling.

Two concurrent callers that both find the schema missing will both create
one; there is no distributed lock. Run setup_schema.py once per deployment
to avoid the race.
"""

import logging
from typing import List

from core.blockchain import SCHEMA_OBJECT_TYPE, MoveCall, PureArg
from core.claims import KYC_REQUIRED_FIELDS, KYC_SCHEMA_NAME
from core.errors import SchemaCreationError
from core.signer import IssuerSigner

logger = logging.getLogger("suikyc.schema")


class SchemaManager:

    def __init__(self, chain, signer: IssuerSigner, package_id: str, configured_schema_id: str = ""):
        self.chain = chain
        self.signer = signer
        self.package_id = package_id
        # Authoritative for the lifetime of the process; not written back to config
        self.schema_id = configured_schema_id

    async def ensure_schema(self, configured_id: str, schema_name: str, required_fields: List[str]) -> str:
        """Return configured_id if it resolves on-chain, otherwise create a schema and return its id."""
        if configured_id and await self.chain.resolve_object(configured_id) is not None:
            logger.info(f"Using existing schema: {configured_id}")
            return configured_id

        logger.info(f"Schema {configured_id or '<unset>'} does not exist, creating {schema_name}...")
        return await self.create_schema(schema_name, required_fields)

    async def create_schema(self, schema_name: str, required_fields: List[str]) -> str:
        """Submit vc_manager::create_schema unconditionally and return the new SchemaObject id."""
        call = MoveCall(
            package=self.package_id,
            module="vc_manager",
            function="create_schema",
            arguments=[
                PureArg(schema_name, "0x1::string::String"),
                PureArg(list(required_fields), "vector<0x1::string::String>"),
            ],
        )
        result = await self.chain.submit(call, self.signer)
        logger.info(f"Schema creation tx digest: {result.digest}")

        created = result.find_created(SCHEMA_OBJECT_TYPE)
        if created is None:
            raise SchemaCreationError(
                f"Could not find created schema object ID in transaction {result.digest}"
            )
        logger.info(f"Created schema object: {created.object_id}")
        return created.object_id

    async def ensure_kyc_schema(self) -> str:
        """ensure_schema() for the KYC credential type, adopting a newly created id."""
        schema_id = await self.ensure_schema(self.schema_id, KYC_SCHEMA_NAME, KYC_REQUIRED_FIELDS)
        if schema_id != self.schema_id:
            logger.warning(
                f"Schema id changed {self.schema_id or '<unset>'} → {schema_id}; "
                "update SUI_SCHEMA_ID to keep it across restarts"
            )
            self.schema_id = schema_id
        return schema_id
