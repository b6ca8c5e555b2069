"""Reservation manager.

Enforces the reservation invariants and prevents double-booking:

- check-out must be strictly after check-in
- two room-holding (PENDING or CONFIRMED) reservations of the same room type
  never overlap

Create and update run their conflict check and their write through the same
session, so callers must give each call its own transaction
(``Database.session()``).
"""

from datetime import date
from typing import Callable, Optional

from src.logging import get_logger
from src.logging.audit import AuditLogger
from src.models.reservation import (
    BLOCKING_STATUSES,
    Reservation,
    ReservationFilter,
    ReservationInput,
    ReservationPatch,
    ReservationStatus,
    RoomType,
)
from src.services.errors import (
    InvalidReservationError,
    ReservationConflictError,
    ReservationNotFoundError,
)
from src.storage.postgres_reservation_repo import PostgresReservationRepository

logger = get_logger(__name__)

DATE_ORDER_MESSAGE = "Check-out date must be after check-in date"


class ReservationManager:
    """Validates, conflict-checks and persists reservations."""

    def __init__(
        self,
        reservation_repo: PostgresReservationRepository,
        clock: Callable[[], date] = date.today,
    ):
        """
        Initialize reservation manager.

        Args:
            reservation_repo: Repository bound to the current session
            clock: Returns today's date for active/upcoming listings
        """
        self.reservation_repo = reservation_repo
        self.clock = clock

    async def create(self, data: ReservationInput) -> Reservation:
        """
        Create a new reservation.

        Args:
            data: Validated reservation input

        Returns:
            Stored reservation with generated ID and timestamps

        Raises:
            InvalidReservationError: If check-out is not after check-in
            ReservationConflictError: If the room type is taken for those dates
        """
        logger.info(
            "reservation_create_requested",
            room_type=data.room_type.value,
            check_in=data.check_in.isoformat(),
            check_out=data.check_out.isoformat(),
        )

        if data.check_out <= data.check_in:
            logger.warning("reservation_invalid_dates", check_in=data.check_in.isoformat())
            raise InvalidReservationError(DATE_ORDER_MESSAGE)

        await self.reservation_repo.lock_room_type(data.room_type)

        if await self.has_overlap(data.room_type, data.check_in, data.check_out):
            AuditLogger.log_conflict_rejected(None, data.room_type.value, data.check_in, data.check_out)
            raise ReservationConflictError(data.room_type.value, data.check_in, data.check_out)

        status = data.status or ReservationStatus.PENDING
        reservation = await self.reservation_repo.create(data, status=status)

        AuditLogger.log_reservation_created(
            reservation.id,
            reservation.room_type.value,
            reservation.check_in,
            reservation.check_out,
        )
        return reservation

    async def get_by_id(self, reservation_id: int) -> Optional[Reservation]:
        """Get reservation by ID, or None."""
        logger.debug("reservation_fetch", reservation_id=reservation_id)
        return await self.reservation_repo.get_by_id(reservation_id)

    async def list_all(self) -> list[Reservation]:
        """Get all reservations."""
        return await self.reservation_repo.list_all()

    async def search_by_guest(self, name_part: Optional[str]) -> list[Reservation]:
        """Case-insensitive partial match on guest name. Blank query lists all."""
        if name_part is None or not name_part.strip():
            return await self.list_all()
        return await self.reservation_repo.search_by_guest_name(name_part.strip())

    async def update(self, reservation_id: int, patch: ReservationPatch) -> Reservation:
        """
        Merge a partial update into an existing reservation.

        Only non-null patch fields overwrite stored values. Validation and the
        conflict check complete before anything is written.

        Raises:
            ReservationNotFoundError: If the reservation does not exist
            InvalidReservationError: If the merged dates are out of order
            ReservationConflictError: If the new booking overlaps another one
        """
        logger.info("reservation_update_requested", reservation_id=reservation_id)

        existing = await self.reservation_repo.get_by_id(reservation_id)
        if existing is None:
            logger.warning("reservation_not_found", reservation_id=reservation_id)
            raise ReservationNotFoundError(reservation_id)

        changes = patch.changes()

        check_in = changes.get("check_in", existing.check_in)
        check_out = changes.get("check_out", existing.check_out)
        room_type = changes.get("room_type", existing.room_type)
        status = changes.get("status", existing.status)

        if check_out <= check_in:
            logger.warning("reservation_invalid_dates", reservation_id=reservation_id)
            raise InvalidReservationError(DATE_ORDER_MESSAGE)

        # A cancelled or completed stay that comes back must fit the calendar again
        reactivated = status in BLOCKING_STATUSES and not existing.holds_room

        if patch.touches_booking or reactivated:
            await self.reservation_repo.lock_room_type(room_type)
            if await self.has_overlap(room_type, check_in, check_out, exclude_id=reservation_id):
                AuditLogger.log_conflict_rejected(reservation_id, room_type.value, check_in, check_out)
                raise ReservationConflictError(room_type.value, check_in, check_out)

        if not changes:
            return existing

        updated = await self.reservation_repo.update(reservation_id, changes)

        AuditLogger.log_reservation_updated(reservation_id, list(changes))
        return updated

    async def delete(self, reservation_id: int) -> None:
        """Physically remove a reservation."""
        logger.info("reservation_delete_requested", reservation_id=reservation_id)

        if not await self.reservation_repo.delete(reservation_id):
            logger.warning("reservation_not_found", reservation_id=reservation_id)
            raise ReservationNotFoundError(reservation_id)

        AuditLogger.log_reservation_deleted(reservation_id)

    async def has_overlap(
        self,
        room_type: Optional[RoomType],
        check_in: Optional[date],
        check_out: Optional[date],
        exclude_id: Optional[int] = None,
    ) -> bool:
        """
        Check whether the room type is already held for overlapping dates.

        Two stays overlap unless one ends on or before the day the other
        starts. Only PENDING and CONFIRMED reservations count.

        Args:
            room_type: Room type to check
            check_in: Requested check-in
            check_out: Requested check-out
            exclude_id: Reservation to leave out, i.e. the one being updated

        Returns:
            True if at least one conflicting reservation exists
        """
        if room_type is None or check_in is None or check_out is None:
            return False

        conflicts = await self.reservation_repo.count_conflicting(
            room_type, check_in, check_out, exclude_id=exclude_id
        )
        logger.debug(
            "overlap_checked",
            room_type=room_type.value,
            exclude_id=exclude_id,
            conflicts=conflicts,
        )
        return conflicts > 0

    async def get_by_status(self, status: ReservationStatus) -> list[Reservation]:
        """Get reservations with the given status."""
        return await self.reservation_repo.get_by_status(status)

    async def get_active(self) -> list[Reservation]:
        """Get confirmed stays in progress today."""
        return await self.reservation_repo.get_active(self.clock())

    async def get_upcoming(self) -> list[Reservation]:
        """Get pending or confirmed stays starting after today."""
        return await self.reservation_repo.get_upcoming(self.clock())

    async def get_recent(self, limit: Optional[int] = None) -> list[Reservation]:
        """Get reservations, newest first."""
        return await self.reservation_repo.get_recent(limit)

    async def get_by_email(self, email: str) -> list[Reservation]:
        """Get reservations booked under an e-mail address."""
        return await self.reservation_repo.get_by_email(email)

    async def get_by_room_type(self, room_type: RoomType) -> list[Reservation]:
        """Get reservations for a room type."""
        return await self.reservation_repo.get_by_room_type(room_type)

    async def get_checking_in_between(self, start: date, end: date) -> list[Reservation]:
        """Get reservations whose check-in falls in [start, end]."""
        if end < start:
            raise InvalidReservationError("End of check-in range must not precede its start")
        return await self.reservation_repo.get_checking_in_between(start, end)

    async def list_matching(self, criteria: Optional[ReservationFilter] = None) -> list[Reservation]:
        """Dispatch a listing filter to the matching query."""
        criteria = criteria or ReservationFilter()

        if criteria.active:
            return await self.get_active()
        if criteria.upcoming:
            return await self.get_upcoming()
        if criteria.recent:
            return await self.get_recent(criteria.limit)
        if criteria.status is not None:
            return await self.get_by_status(criteria.status)
        if criteria.guest_name is not None:
            return await self.search_by_guest(criteria.guest_name)
        if criteria.email is not None:
            return await self.get_by_email(criteria.email)
        if criteria.room_type is not None:
            return await self.get_by_room_type(criteria.room_type)
        if criteria.check_in_from is not None and criteria.check_in_to is not None:
            return await self.get_checking_in_between(criteria.check_in_from, criteria.check_in_to)
        return await self.list_all()
