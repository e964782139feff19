"""
db/session.py — Database Connection & Session Management
=========================================================
Handles the async SQLAlchemy connection for the off-chain credential mirror.
main.py calls configure_database() and init_db() on startup.

All routes use get_db() as a FastAPI dependency to get a DB session.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
import logging

logger = logging.getLogger("suikyc.db")

engine: AsyncEngine = None
AsyncSessionLocal: async_sessionmaker = None


class Base(DeclarativeBase):
    """Base class all database models inherit from."""
    pass


def configure_database(database_url: str, pool_size: int = 10, max_overflow: int = 20, echo: bool = False):
    """Create the engine and session factory for database_url."""
    global engine, AsyncSessionLocal

    # Convert standard postgres:// URL to async postgresql+asyncpg://
    database_url = database_url.replace("postgresql://", "postgresql+asyncpg://")

    options = {"echo": echo}   # logs all SQL in debug mode
    if not database_url.startswith("sqlite"):
        options.update(pool_size=pool_size, max_overflow=max_overflow)

    engine = create_async_engine(database_url, **options)
    AsyncSessionLocal = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    return engine


async def init_db():
    """Create all tables on startup if they don't exist."""
    from db.models import Subject, Credential, AuditLog  # noqa: import triggers table registration
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created / verified.")


async def dispose_db():
    if engine is not None:
        await engine.dispose()


async def get_db():
    """
    FastAPI dependency — yields a DB session per request.

    Usage in any route:
        from db.session import get_db
        from sqlalchemy.ext.asyncio import AsyncSession

        async def my_endpoint(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
