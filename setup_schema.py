"""
setup_schema.py — One-time KYC Schema Creation
===============================================
Creates the KYC_Credential schema object on-chain and writes its id into
.env as SUI_SCHEMA_ID, so the server starts with a schema that resolves.

Run with:
    python setup_schema.py
"""

import asyncio
import logging
import re
import sys
from pathlib import Path

from config import get_settings
from core.blockchain import create_blockchain
from core.claims import KYC_REQUIRED_FIELDS, KYC_SCHEMA_NAME
from core.errors import KycError
from core.schema import SchemaManager
from core.signer import IssuerSigner

logger = logging.getLogger("suikyc.setup_schema")

ENV_PATH = Path(__file__).parent / ".env"


def write_schema_id(env_path: Path, schema_id: str):
    """Replace or append the SUI_SCHEMA_ID line."""
    content = env_path.read_text(encoding="utf-8") if env_path.exists() else ""
    line = f"SUI_SCHEMA_ID={schema_id}"
    if re.search(r"^SUI_SCHEMA_ID=.*$", content, flags=re.MULTILINE):
        content = re.sub(r"^SUI_SCHEMA_ID=.*$", line, content, flags=re.MULTILINE)
    else:
        if content and not content.endswith("\n"):
            content += "\n"
        content += line + "\n"
    env_path.write_text(content, encoding="utf-8")


async def setup_schema(env_path: Path = ENV_PATH) -> str:
    settings = get_settings()
    signer = IssuerSigner.from_secret(settings.ISSUER_SECRET_KEY)
    chain = create_blockchain(settings)
    await chain.connect()
    try:
        manager = SchemaManager(chain, signer, settings.SUI_PACKAGE_ID)
        logger.info("Creating KYC schema...")
        schema_id = await manager.create_schema(KYC_SCHEMA_NAME, KYC_REQUIRED_FIELDS)
    finally:
        await chain.disconnect()

    logger.info(f"Schema created with ID: {schema_id}")
    write_schema_id(env_path, schema_id)
    logger.info(f"Updated {env_path} with new schema ID")
    return schema_id


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")
    try:
        asyncio.run(setup_schema())
    except KycError as e:
        logger.error(f"Error setting up schema: {e.message}")
        sys.exit(1)
