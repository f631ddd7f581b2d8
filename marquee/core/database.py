"""
Database configuration and session management
"""

from typing import Optional
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    async_sessionmaker,
    create_async_engine
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from sqlalchemy import text
import logging
from contextlib import asynccontextmanager

from marquee.config import settings

logger = logging.getLogger(__name__)

# Create declarative base
Base = declarative_base()


class DatabaseManager:
    """
    Owns the engine and session factory for the process.

    Nothing is connected until start() is called; dispose() releases the pool.
    Services receive the manager they should use instead of importing an engine.
    """

    def __init__(self):
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None
        self.logger = logging.getLogger(__name__)

    @property
    def is_started(self) -> bool:
        return self.engine is not None

    def start(self, database_url: str = None, echo: bool = None) -> "DatabaseManager":
        """
        Create the async engine and session factory
        """
        if self.is_started:
            return self

        url = database_url or settings.DATABASE_URL
        echo = settings.DB_ECHO if echo is None else echo

        if url.startswith("sqlite") or settings.is_testing:
            # NullPool doesn't accept pool parameters
            self.engine = create_async_engine(url, echo=echo, poolclass=NullPool)
        else:
            self.engine = create_async_engine(
                url,
                echo=echo,
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_timeout=settings.DB_POOL_TIMEOUT,
                pool_recycle=settings.DB_POOL_RECYCLE,
                pool_pre_ping=True,
            )

        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        self.logger.info(f"Database engine created for {self.engine.url.render_as_string(hide_password=True)}")
        return self

    async def create_all(self):
        """
        Create tables for every imported model
        """
        # Register all models on Base.metadata
        import marquee.models  # noqa: F401

        async with self._require_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self):
        async with self._require_engine().begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self):
        """
        Close database connections
        """
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None
            self.session_factory = None
            self.logger.info("Database engine disposed")

    def session(self) -> AsyncSession:
        if self.session_factory is None:
            raise RuntimeError("DatabaseManager.start() must be called before opening sessions")
        return self.session_factory()

    def _require_engine(self) -> AsyncEngine:
        if self.engine is None:
            raise RuntimeError("DatabaseManager.start() must be called before using the engine")
        return self.engine

    @asynccontextmanager
    async def transaction(self, session: AsyncSession):
        """
        Context manager for explicit transaction handling.
        Commits on successful exit, rolls back on any exception.
        """
        try:
            async with session.begin():
                yield session
        except Exception as e:
            self.logger.debug(f"Transaction rolled back: {type(e).__name__}: {e}")
            raise

    @asynccontextmanager
    async def atomic_transaction(self):
        """
        Create a new session with atomic transaction
        """
        async with self.session() as session:
            async with self.transaction(session) as tx_session:
                yield tx_session

    async def ping(self) -> bool:
        async with self.session() as session:
            result = await session.execute(text("SELECT 1"))
            return result.scalar() == 1


# Process-wide database manager, started by init_db() and disposed by close_db()
db_manager = DatabaseManager()


async def init_db(manager: DatabaseManager = None):
    """
    Initialize database connections
    """
    manager = manager or db_manager
    try:
        manager.start()
        await manager.create_all()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


async def close_db(manager: DatabaseManager = None):
    """
    Close database connections
    """
    manager = manager or db_manager
    await manager.dispose()
    logger.info("Database connections closed")

