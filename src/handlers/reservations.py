"""Reservation request handlers.

Each operation runs in its own database session, so the conflict check and
the write of a create or update commit together or roll back together.
"""

from datetime import date
from typing import Any, Callable, Optional, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from src.logging import get_logger
from src.logging.audit import AuditLogger
from src.models.bill import BillDetails
from src.models.reservation import (
    Reservation,
    ReservationFilter,
    ReservationInput,
    ReservationPatch,
)
from src.services.billing import BillingCalculator, BillingRates
from src.services.errors import InvalidReservationError, ReservationNotFoundError
from src.services.reservation_manager import ReservationManager
from src.storage.database import Database
from src.storage.postgres_reservation_repo import PostgresReservationRepository

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_payload(model: type[ModelT], data: ModelT | dict[str, Any] | None) -> ModelT:
    """Validate a raw payload into a model, reporting problems as InvalidReservationError."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data or {})
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'payload'}: {error['msg']}"
            for error in e.errors()
        )
        raise InvalidReservationError(f"Invalid reservation data: {problems}") from e


class ReservationHandlers:
    """Entry points consumed by the request-handling layer."""

    def __init__(
        self,
        db: Database,
        billing_rates: Optional[BillingRates] = None,
        clock: Callable[[], date] = date.today,
    ):
        """
        Initialize reservation handlers.

        Args:
            db: Connected database
            billing_rates: Tariff for bills; standard rates when omitted
            clock: Returns today's date for active/upcoming listings
        """
        self.db = db
        self.calculator = BillingCalculator(billing_rates)
        self.clock = clock

    def _manager(self, session: AsyncSession) -> ReservationManager:
        return ReservationManager(PostgresReservationRepository(session), clock=self.clock)

    async def create_reservation(self, data: ReservationInput | dict[str, Any]) -> Reservation:
        """Create a reservation."""
        payload = parse_payload(ReservationInput, data)
        async with self.db.session() as session:
            reservation = await self._manager(session).create(payload)

        logger.info("reservation_created", reservation_id=reservation.id)
        return reservation

    async def get_reservation(self, reservation_id: int) -> Reservation:
        """Get a reservation or raise ReservationNotFoundError."""
        async with self.db.session() as session:
            reservation = await self._manager(session).get_by_id(reservation_id)

        if reservation is None:
            logger.warning("reservation_not_found", reservation_id=reservation_id)
            raise ReservationNotFoundError(reservation_id)
        return reservation

    async def update_reservation(
        self, reservation_id: int, partial: ReservationPatch | dict[str, Any]
    ) -> Reservation:
        """Apply a partial update to a reservation."""
        patch = parse_payload(ReservationPatch, partial)
        async with self.db.session() as session:
            reservation = await self._manager(session).update(reservation_id, patch)

        logger.info("reservation_updated", reservation_id=reservation_id)
        return reservation

    async def delete_reservation(self, reservation_id: int) -> None:
        """Delete a reservation."""
        async with self.db.session() as session:
            await self._manager(session).delete(reservation_id)

        logger.info("reservation_deleted", reservation_id=reservation_id)

    async def list_reservations(
        self, criteria: ReservationFilter | dict[str, Any] | None = None
    ) -> list[Reservation]:
        """List reservations matching an optional filter."""
        reservation_filter = parse_payload(ReservationFilter, criteria)
        async with self.db.session() as session:
            reservations = await self._manager(session).list_matching(reservation_filter)

        logger.info("reservations_listed", count=len(reservations))
        return reservations

    async def get_bill(self, reservation_id: int) -> BillDetails:
        """Compute the bill for a stored reservation."""
        reservation = await self.get_reservation(reservation_id)
        bill = self.calculator.calculate(reservation)

        AuditLogger.log_bill_generated(reservation_id, bill.number_of_nights, bill.grand_total)
        return bill

    def get_room_rates(self) -> dict[str, Any]:
        """Current tariff: nightly rates and charge percentages."""
        return {
            "room_rates": self.calculator.get_all_room_rates(),
            "service_charge_rate": self.calculator.service_charge_percentage,
            "tax_rate": self.calculator.tax_percentage,
        }
