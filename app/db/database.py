"""
Database configuration with async support
"""

import logging
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from typing import AsyncGenerator

from app.core.config import settings

# Configure logging based on environment
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

logger.info(f"Environment: {settings.ENVIRONMENT}")


def build_engine_kwargs(database_url: str) -> dict:
    """Connection pool tuning only applies to the asyncpg driver"""
    kwargs = {
        "echo": settings.DATABASE_ECHO,
        "future": True,
    }
    if database_url.startswith("postgresql+asyncpg://"):
        kwargs.update(
            pool_size=20,  # Number of connections to maintain
            max_overflow=30,  # Additional connections that can be created
            pool_pre_ping=True,  # Verify connections before use
            pool_recycle=3600,  # Recycle connections after 1 hour
            connect_args={
                "server_settings": {
                    "application_name": "social_accounts_api",
                }
            },
        )
    return kwargs


async_engine = create_async_engine(
    settings.async_database_url,
    **build_engine_kwargs(settings.async_database_url)
)

# Async session factory
AsyncSessionLocal = sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)


async def init_db():
    """Initialize database tables"""
    # models must be imported so their tables are registered on the metadata
    import app.models  # noqa: F401

    async with async_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Async database session dependency
    Usage:
    async def some_endpoint(db: AsyncSession = Depends(get_db)):
        ...
    """
    async with AsyncSessionLocal() as session:
        yield session
