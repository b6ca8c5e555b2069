"""Application startup: settings, logging, database and handlers."""

from typing import Optional

from src.config.settings import Settings, load_settings
from src.handlers.reservations import ReservationHandlers
from src.logging import get_logger, setup_logging
from src.services.billing import BillingRates
from src.storage.database import Database


async def bootstrap(
    settings: Optional[Settings] = None,
    create_tables: bool = False,
) -> ReservationHandlers:
    """
    Wire the reservation backend together.

    Args:
        settings: Application settings; loaded from the environment when omitted
        create_tables: Create the schema directly instead of relying on migrations

    Returns:
        Handlers bound to a connected database
    """
    settings = settings or load_settings()
    setup_logging(settings.log_level, app_name=settings.app_name)
    logger = get_logger(__name__)

    logger.info("Starting reservation backend", app=settings.app_name, environment=settings.environment)

    db = Database(settings)
    await db.connect()

    if not await db.ping():
        await db.disconnect()
        raise RuntimeError("Database is not reachable")

    if create_tables:
        await db.create_tables()

    return ReservationHandlers(db, billing_rates=BillingRates.from_settings(settings))


async def shutdown(handlers: ReservationHandlers) -> None:
    """Release the database connections held by the handlers."""
    await handlers.db.disconnect()
