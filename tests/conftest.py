"""Pytest fixtures for SuiKYC tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

import db.session as db_session
from config import Settings
from core.blockchain import SimulatedChain
from core.signer import IssuerSigner
from modules.kyc import KycServices, build_services
from tests.helpers import RecordingChain

PACKAGE_ID = "0x" + "a1" * 32
ISSUER_DID_ID = "0x" + "d1" * 32
STALE_SCHEMA_ID = "0x" + "5c" * 32   # configured but never published on the simulated chain


@pytest.fixture
def signer() -> IssuerSigner:
    return IssuerSigner.generate()


@pytest.fixture
def settings(tmp_path: Path, signer: IssuerSigner) -> Settings:
    return Settings(
        _env_file=None,
        BLOCKCHAIN_BACKEND="simulation",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        ISSUER_SECRET_KEY=signer.export_secret(),
        SUI_PACKAGE_ID=PACKAGE_ID,
        SUI_SCHEMA_ID=STALE_SCHEMA_ID,
        SUI_POLICY_ID="0x" + "0f" * 32,
        DID_OBJECT_ID=ISSUER_DID_ID,
        LOG_FILE=str(tmp_path / "test.log"),
    )


@pytest.fixture
def chain(settings: Settings) -> RecordingChain:
    return RecordingChain(SimulatedChain(
        package_id=settings.SUI_PACKAGE_ID,
        issuer_did_id=settings.DID_OBJECT_ID,
        clock_id=settings.SUI_CLOCK_OBJECT_ID,
    ))


@pytest.fixture
async def connected_chain(chain: RecordingChain) -> RecordingChain:
    await chain.connect()
    return chain


@pytest.fixture
def services(settings: Settings, connected_chain: RecordingChain, signer: IssuerSigner) -> KycServices:
    return build_services(settings, connected_chain, signer)


@pytest.fixture
async def db(settings: Settings) -> AsyncGenerator[AsyncSession, None]:
    """Fresh SQLite mirror per test."""
    db_session.configure_database(settings.DATABASE_URL)
    await db_session.init_db()
    async with db_session.AsyncSessionLocal() as session:
        yield session
    await db_session.dispose_db()


@pytest.fixture
def client(settings: Settings, chain: RecordingChain):
    """TestClient with lifespan run, so startup wiring is exercised too."""
    from main import create_app

    app = create_app(settings, chain=chain)
    with TestClient(app) as test_client:
        yield test_client
