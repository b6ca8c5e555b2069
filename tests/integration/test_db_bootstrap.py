"""Integration test for database bootstrap, connectivity and schema migration."""

import importlib.util
from pathlib import Path

import pytest
from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine, inspect, text

from src.bootstrap import bootstrap, shutdown
from src.storage.database import Database, mask_database_url

MIGRATIONS_DIR = Path(__file__).resolve().parents[2] / "scripts" / "alembic" / "versions"


def _load_migration(name):
    spec = importlib.util.spec_from_file_location(name, MIGRATIONS_DIR / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.mark.asyncio
async def test_database_connection(database):
    """Test database connection can be established."""
    async with database.session() as session:
        result = await session.execute(text("SELECT 1"))
        assert result.scalar() == 1


@pytest.mark.asyncio
async def test_session_requires_connection(test_settings):
    """Test sessions are refused before connect()."""
    db = Database(test_settings)

    assert db.is_connected is False
    with pytest.raises(RuntimeError):
        async with db.session():
            pass


def test_password_is_masked():
    """Test credentials never reach the connection log."""
    masked = mask_database_url("postgresql+asyncpg://hotel:secret@db:5432/reservations")

    assert masked == "postgresql+asyncpg://hotel:***@db:5432/reservations"


@pytest.mark.asyncio
async def test_ping(database):
    """Test a connected database answers."""
    assert await database.ping() is True
    assert database.dialect_name in ("sqlite", "postgresql")


@pytest.mark.asyncio
async def test_bootstrap_creates_working_handlers(test_settings):
    """Test bootstrap wires settings, schema and handlers together."""
    handlers = await bootstrap(test_settings, create_tables=True)

    try:
        assert handlers.db.is_connected
        assert await handlers.list_reservations() == []
        assert handlers.get_room_rates()["tax_rate"] == 8
    finally:
        await handlers.db.drop_tables()
        await shutdown(handlers)

    assert handlers.db.is_connected is False


def test_initial_migration_upgrade_and_downgrade():
    """Test the initial migration creates and removes the reservations schema."""
    migration = _load_migration("001_initial_schema")
    engine = create_engine("sqlite://")

    with engine.begin() as conn:
        context = MigrationContext.configure(conn)
        with Operations.context(context):
            migration.upgrade()

        inspector = inspect(conn)
        assert "reservations" in inspector.get_table_names()
        columns = {column["name"] for column in inspector.get_columns("reservations")}
        assert {"id", "room_type", "check_in", "check_out", "status", "created_at", "updated_at"} <= columns
        indexes = {index["name"] for index in inspector.get_indexes("reservations")}
        assert "ix_reservations_room_type_dates" in indexes

        with Operations.context(context):
            migration.downgrade()

        assert "reservations" not in inspect(conn).get_table_names()

    engine.dispose()
