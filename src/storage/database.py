"""Database engine and transaction management.

Every reservation request runs inside one ``Database.session()`` block,
which is one transaction: the conflict check and the write it guards
commit together or roll back together.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from src.config.settings import Settings, load_settings
from src.logging import get_logger
from src.storage.db_models import Base

logger = get_logger(__name__)

SERVER_POOL_SIZE = 10
SERVER_MAX_OVERFLOW = 20

# Seconds a SQLite writer waits for another writer's transaction to finish
SQLITE_BUSY_TIMEOUT_SECONDS = 30


def mask_database_url(url: str) -> str:
    """Render a database URL with its password hidden."""
    return make_url(url).render_as_string(hide_password=True)


def use_immediate_transactions(engine: AsyncEngine) -> None:
    """
    Make every SQLite transaction start with BEGIN IMMEDIATE.

    The driver otherwise defers BEGIN until the first write, so a conflict
    check would read without holding any lock. BEGIN IMMEDIATE takes the
    database write lock up front; a second transaction waits for the first
    to commit before it can read.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class Database:
    """Owns the async engine and hands out transactional sessions."""

    def __init__(self, settings: Settings):
        """
        Initialize database manager.

        Args:
            settings: Application settings with database URL
        """
        self.settings = settings
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def is_connected(self) -> bool:
        """Check if the engine has been created."""
        return self._engine is not None

    @property
    def dialect_name(self) -> Optional[str]:
        """Dialect of the connected engine, e.g. "postgresql" or "sqlite"."""
        return self._engine.dialect.name if self._engine is not None else None

    def _engine_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {
            "echo": self.settings.database_echo or self.settings.log_level.upper() == "DEBUG",
            "pool_pre_ping": True,
        }
        if self.settings.is_sqlite:
            options["connect_args"] = {"timeout": SQLITE_BUSY_TIMEOUT_SECONDS}
        else:
            options.update(pool_size=SERVER_POOL_SIZE, max_overflow=SERVER_MAX_OVERFLOW)
        return options

    def _require_engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._engine

    async def connect(self) -> None:
        """Create the engine and session factory. Safe to call twice."""
        if self._engine is not None:
            return

        self._engine = create_async_engine(self.settings.database_url, **self._engine_options())
        if self._engine.dialect.name == "sqlite":
            use_immediate_transactions(self._engine)
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)

        logger.info(
            "database_connected",
            url=mask_database_url(self.settings.database_url),
            dialect=self._engine.dialect.name,
        )

    async def disconnect(self) -> None:
        """Dispose of pooled connections."""
        if self._engine is None:
            return

        await self._engine.dispose()
        self._engine = None
        self._session_factory = None

        logger.info("database_disconnected")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Open a session scoped to one transaction.

        Commits when the block exits normally and rolls back on any exception,
        which is re-raised.

        Example:
            async with db.session() as session:
                manager = ReservationManager(PostgresReservationRepository(session))
                await manager.create(reservation_input)
        """
        if self._session_factory is None:
            raise RuntimeError("Database not connected. Call connect() first.")

        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception as e:
                await session.rollback()
                logger.debug("transaction_rolled_back", error_type=type(e).__name__)
                raise

    async def ping(self) -> bool:
        """Check that the database answers a trivial query."""
        try:
            async with self._require_engine().connect() as conn:
                await conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error("database_ping_failed", error=str(e))
            return False
        return True

    async def create_tables(self) -> None:
        """Create the schema directly. Production databases use the Alembic migrations."""
        async with self._require_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("database_tables_created", tables=sorted(Base.metadata.tables))

    async def drop_tables(self) -> None:
        """Drop every table this application owns."""
        async with self._require_engine().begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

        logger.info("database_tables_dropped")


# Global database instance
_db_instance: Optional[Database] = None


def get_database(settings: Optional[Settings] = None) -> Database:
    """Get or create the process-wide database manager."""
    global _db_instance
    if _db_instance is None:
        _db_instance = Database(settings or load_settings())
    return _db_instance
