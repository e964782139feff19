"""Tests for settings validation and startup failure."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from config import Settings
from core.blockchain import SimulatedChain, SuiChain, create_blockchain
from core.errors import ConfigurationError
from setup_schema import write_schema_id


def test_missing_required_lists_empty_values() -> None:
    config = Settings(_env_file=None, SUI_PACKAGE_ID="0xpkg")

    assert config.missing_required() == [
        "ISSUER_SECRET_KEY", "SUI_SCHEMA_ID", "SUI_POLICY_ID", "DID_OBJECT_ID",
    ]
    with pytest.raises(ConfigurationError, match="ISSUER_SECRET_KEY"):
        config.require_complete()


def test_sui_backend_also_requires_rpc_url(settings: Settings) -> None:
    assert settings.missing_required() == []
    sui = settings.model_copy(update={"BLOCKCHAIN_BACKEND": "sui"})

    assert sui.missing_required() == ["SUI_RPC_URL"]


def test_settings_load_from_env() -> None:
    with patch.dict("os.environ", {"SUI_PACKAGE_ID": "0xfromenv", "BLOCKCHAIN_BACKEND": "sui"}):
        config = Settings(_env_file=None)
    assert config.SUI_PACKAGE_ID == "0xfromenv"
    assert config.BLOCKCHAIN_BACKEND == "sui"


def test_create_blockchain_picks_backend(settings: Settings) -> None:
    assert isinstance(create_blockchain(settings), SimulatedChain)
    sui = settings.model_copy(update={"BLOCKCHAIN_BACKEND": "sui", "SUI_RPC_URL": "http://node"})
    assert isinstance(create_blockchain(sui), SuiChain)


def test_startup_fails_without_required_settings(settings: Settings) -> None:
    from main import create_app

    incomplete = settings.model_copy(update={"DID_OBJECT_ID": ""})
    with pytest.raises(ConfigurationError, match="DID_OBJECT_ID"):
        with TestClient(create_app(incomplete)):
            pass


def test_write_schema_id_replaces_or_appends(tmp_path: Path) -> None:
    env = tmp_path / ".env"
    env.write_text("SUI_PACKAGE_ID=0xpkg\nSUI_SCHEMA_ID=0xold\n")
    write_schema_id(env, "0xnew")
    assert env.read_text() == "SUI_PACKAGE_ID=0xpkg\nSUI_SCHEMA_ID=0xnew\n"

    fresh = tmp_path / "fresh.env"
    fresh.write_text("SUI_PACKAGE_ID=0xpkg")
    write_schema_id(fresh, "0xnew")
    assert fresh.read_text() == "SUI_PACKAGE_ID=0xpkg\nSUI_SCHEMA_ID=0xnew\n"
