"""
config.py — SuiKYC Global Configuration
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import List

from core.errors import ConfigurationError


class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    APP_NAME: str = "SuiKYC"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # API Server
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    # Database (off-chain credential mirror)
    DATABASE_URL: str = "sqlite+aiosqlite:///./suikyc.db"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    # Blockchain
    BLOCKCHAIN_BACKEND: str = "simulation"      # simulation | sui
    SUI_RPC_URL: str = ""
    SUI_RPC_TIMEOUT: float = 30.0
    SUI_GAS_BUDGET: int = 50_000_000
    SUI_CLOCK_OBJECT_ID: str = "0x6"

    # Issuer identity and deployed contract objects
    ISSUER_SECRET_KEY: str = ""                 # base64, Sui keystore format
    SUI_PACKAGE_ID: str = ""
    SUI_SCHEMA_ID: str = ""
    SUI_POLICY_ID: str = ""
    DID_OBJECT_ID: str = ""                     # the issuer's own DID object

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "suikyc.log"

    def missing_required(self) -> List[str]:
        """Names of required settings that are empty."""
        required = [
            "ISSUER_SECRET_KEY",
            "SUI_PACKAGE_ID",
            "SUI_SCHEMA_ID",
            "SUI_POLICY_ID",
            "DID_OBJECT_ID",
        ]
        if self.BLOCKCHAIN_BACKEND.lower() == "sui":
            required.insert(0, "SUI_RPC_URL")
        return [name for name in required if not getattr(self, name)]

    def require_complete(self):
        """Fail fast at startup when a required value is absent."""
        missing = self.missing_required()
        if missing:
            raise ConfigurationError(
                f"Missing required settings: {', '.join(missing)}. "
                "Set them in the environment or in .env"
            )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
