"""
main.py — SuiKYC Entry Point
=============================
This is the file you run to start the entire system.
It does 4 things in order:
    1. Checks configuration — missing required settings stop startup
    2. Connects the database (the off-chain credential mirror)
    3. Loads the issuer keypair and connects to the ledger
    4. Registers the API routes and error handlers

Run with:
    uvicorn main:app --reload --host 0.0.0.0 --port 8080

Or simply:
    python main.py
"""

import logging
import uvicorn
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import Settings, settings

# ── Database ──────────────────────────────────────────────────────────────────
from db.session import configure_database, dispose_db, init_db

# ── Core systems ──────────────────────────────────────────────────────────────
from core.blockchain import create_blockchain
from core.errors import ChainError, ConflictError, KycError, NotFoundError, ValidationError
from core.proof import ProofMaterial
from core.signer import IssuerSigner
from modules.kyc import build_services

# ── API Routers ───────────────────────────────────────────────────────────────
from api.routes_users import router as users_router


logger = logging.getLogger("suikyc.main")


def configure_logging(config: Settings):
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper()),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        handlers=[
            logging.StreamHandler(),                          # print to terminal
            logging.FileHandler(config.LOG_FILE),             # also save to file
        ],
    )


# ── Error rendering ───────────────────────────────────────────────────────────
ERROR_STATUS = [
    (ValidationError, 400),
    (ConflictError, 400),
    (NotFoundError, 404),
    (ChainError, 500),
]


def status_for(exc: KycError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def kyc_error_handler(request: Request, exc: KycError):
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=status_code, content={"message": "Server error", "error": exc.message})
    return JSONResponse(status_code=status_code, content={"message": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"message": "Invalid request body", "error": str(exc.errors())})


async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} raised")
    return JSONResponse(status_code=500, content={"message": "Server error", "error": str(exc)})


# ── App factory ───────────────────────────────────────────────────────────────
def create_app(config: Settings = settings, chain=None, proof: ProofMaterial = None) -> FastAPI:
    """Build the app. Tests pass their own settings and ledger."""

    # ── Lifespan: runs on startup and shutdown ────────────────────────────
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Everything BEFORE yield → runs on startup.
        Everything AFTER yield  → runs on shutdown.
        """
        logger.info(f"Starting {config.APP_NAME} v{config.APP_VERSION}")
        logger.info(f"Environment: {config.ENVIRONMENT}")

        # 1. Required settings: fail the process, not individual requests
        config.require_complete()

        # 2. Initialize database, creating tables if they don't exist yet
        logger.info("Connecting to database...")
        configure_database(config.DATABASE_URL, config.DB_POOL_SIZE, config.DB_MAX_OVERFLOW, echo=config.DEBUG)
        await init_db()
        logger.info("✓ Database ready")

        # 3. Issuer keypair, then the ledger
        signer = IssuerSigner.from_secret(config.ISSUER_SECRET_KEY)
        ledger = chain or create_blockchain(config)
        logger.info(f"Connecting to blockchain ({config.BLOCKCHAIN_BACKEND})...")
        await ledger.connect()
        logger.info(f"✓ Blockchain connected — backend: {config.BLOCKCHAIN_BACKEND}")

        app.state.services = build_services(config, ledger, signer, proof)

        logger.info("=" * 50)
        logger.info(f"  {config.APP_NAME} is LIVE on port {config.PORT}")
        logger.info("=" * 50)

        yield   # ← App runs here (handles all requests)

        # ── SHUTDOWN ──────────────────────────────────────────────────────
        logger.info("Shutting down — closing connections...")
        await ledger.disconnect()
        await dispose_db()
        logger.info("✓ Shutdown complete")

    app = FastAPI(
        title=config.APP_NAME,
        version=config.APP_VERSION,
        description="KYC Verifiable Credentials on Sui",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS: allows the wallet frontend to talk to this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(KycError, kyc_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)

    app.include_router(users_router, prefix="/api/users", tags=["Users"])

    @app.get("/", tags=["Status"])
    async def root():
        """Health check — confirms the API is running."""
        return {
            "system": config.APP_NAME,
            "version": config.APP_VERSION,
            "status": "operational",
            "blockchain": config.BLOCKCHAIN_BACKEND,
            "docs": "/docs",
        }

    @app.get("/health-check", tags=["Status"])
    async def health_check(request: Request):
        """Deep health check — confirms the ledger is reachable."""
        services = request.app.state.services
        return {
            "api": "ok",
            "database": "ok",
            "blockchain": await services.chain.ping(),
            "issuer": services.signer.address,
            "schema": services.schema_manager.schema_id,
        }

    return app


configure_logging(settings)
app = create_app(settings)


# ── Run directly ──────────────────────────────────────────────────────────────
if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,    # auto-reload on file changes in dev mode
        log_level=settings.LOG_LEVEL.lower(),
    )
