"""
Vantage Analytics - Database Infrastructure
Read-only async SQLAlchemy 2.0 access to the platform database
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import Settings

logger = structlog.get_logger(__name__)


class Base(DeclarativeBase):
    """Declarative base for the tables analytics reads."""
    pass


class DatabaseManager:
    """
    Pooled, read-only connections to the platform database.

    The platform owns the schema and every write; this service only runs
    SELECTs. Each connection opens with ``default_transaction_read_only``
    so a stray write fails at the server instead of landing.
    """

    def __init__(self, settings: Settings):
        self._settings = settings
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def safe_url(self) -> str:
        """Database URL with the password masked, for logs."""
        return make_url(str(self._settings.database_url)).render_as_string(hide_password=True)

    async def connect(self) -> None:
        """Create the pool and check that the server answers."""
        logger.info("Connecting to database", url=self.safe_url)

        self._engine = create_async_engine(
            str(self._settings.database_url),
            pool_size=self._settings.database_pool_size,
            max_overflow=self._settings.database_max_overflow,
            pool_timeout=self._settings.database_pool_timeout,
            pool_pre_ping=True,
            echo=self._settings.database_echo,
            connect_args={
                "server_settings": {
                    "application_name": self._settings.app_name,
                    "default_transaction_read_only": "on",
                },
            },
        )

        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        async with self._engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

        logger.info("Database connection established")

    async def disconnect(self) -> None:
        if self._engine:
            await self._engine.dispose()
            logger.info("Database connection closed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Session for one fetch.

        Nothing is committed: the transaction is rolled back on exit,
        whether the block succeeded or not.

        Raises:
            RuntimeError: if ``connect`` has not run
        """
        if self._session_factory is None:
            raise RuntimeError("Database not connected")

        session = self._session_factory()
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()
