"""PostgreSQL repository for Reservation entities."""

import zlib
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import func, not_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.logging import get_logger
from src.models.reservation import (
    BLOCKING_STATUSES,
    Reservation,
    ReservationInput,
    ReservationStatus,
    RoomType,
)
from src.storage.db_models import ReservationTable
from src.storage.repository_base import RepositoryBase

logger = get_logger(__name__)


def room_type_lock_key(room_type: RoomType) -> int:
    """Stable advisory lock key for a room type."""
    return zlib.crc32(f"reservations:{room_type.value}".encode("utf-8"))


class PostgresReservationRepository(RepositoryBase[Reservation]):
    """Reservation repository using PostgreSQL.

    The repository never commits. Writes are flushed into the caller's
    session, which decides the transaction boundary.
    """

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self.session = session

    async def get_by_id(self, id: int) -> Optional[Reservation]:
        """Retrieve reservation by ID."""
        db_reservation = await self._get_row(id)

        if not db_reservation:
            return None

        return self._to_domain_model(db_reservation)

    async def create(
        self,
        entity: ReservationInput,
        status: ReservationStatus = ReservationStatus.PENDING,
    ) -> Reservation:
        """Insert a new reservation and return it with generated fields."""
        db_reservation = ReservationTable(
            guest_full_name=entity.guest_full_name,
            address=entity.address,
            contact_number=entity.contact_number,
            email=entity.email,
            room_type=entity.room_type,
            check_in=entity.check_in,
            check_out=entity.check_out,
            number_of_guests=entity.number_of_guests,
            special_requests=entity.special_requests,
            status=status,
            total_amount=entity.total_amount,
        )

        self.session.add(db_reservation)
        await self.session.flush()
        await self.session.refresh(db_reservation)

        logger.info(
            "reservation_inserted",
            reservation_id=db_reservation.id,
            room_type=entity.room_type.value,
            check_in=entity.check_in.isoformat(),
            check_out=entity.check_out.isoformat(),
        )

        return self._to_domain_model(db_reservation)

    async def update(self, id: int, changes: dict[str, Any]) -> Reservation:
        """Apply field changes to an existing reservation."""
        db_reservation = await self._get_row(id)

        if not db_reservation:
            raise ValueError(f"Reservation not found: {id}")

        for field_name, value in changes.items():
            setattr(db_reservation, field_name, value)
        db_reservation.updated_at = datetime.utcnow()

        await self.session.flush()
        await self.session.refresh(db_reservation)

        logger.info(
            "reservation_row_updated",
            reservation_id=id,
            fields=sorted(changes),
        )

        return self._to_domain_model(db_reservation)

    async def delete(self, id: int) -> bool:
        """Delete reservation by ID."""
        db_reservation = await self._get_row(id)

        if not db_reservation:
            return False

        await self.session.delete(db_reservation)
        await self.session.flush()

        logger.info("reservation_row_deleted", reservation_id=id)

        return True

    async def list_all(self) -> list[Reservation]:
        """Get all reservations in insertion order."""
        stmt = select(ReservationTable).order_by(ReservationTable.id.asc())
        return await self._fetch(stmt)

    async def search_by_guest_name(self, name_part: str) -> list[Reservation]:
        """Case-insensitive substring match on guest name."""
        stmt = (
            select(ReservationTable)
            .where(ReservationTable.guest_full_name.icontains(name_part, autoescape=True))
            .order_by(ReservationTable.id.asc())
        )
        return await self._fetch(stmt)

    async def get_by_email(self, email: str) -> list[Reservation]:
        """Get reservations booked under an e-mail address."""
        stmt = (
            select(ReservationTable)
            .where(func.lower(ReservationTable.email) == email.lower())
            .order_by(ReservationTable.id.asc())
        )
        return await self._fetch(stmt)

    async def get_by_status(self, status: ReservationStatus) -> list[Reservation]:
        """Get reservations with the given status."""
        stmt = (
            select(ReservationTable)
            .where(ReservationTable.status == status)
            .order_by(ReservationTable.id.asc())
        )
        return await self._fetch(stmt)

    async def get_by_room_type(self, room_type: RoomType) -> list[Reservation]:
        """Get reservations for a room type."""
        stmt = (
            select(ReservationTable)
            .where(ReservationTable.room_type == room_type)
            .order_by(ReservationTable.check_in.asc())
        )
        return await self._fetch(stmt)

    async def get_active(self, today: date) -> list[Reservation]:
        """Get confirmed stays in progress (check_in <= today < check_out)."""
        stmt = (
            select(ReservationTable)
            .where(ReservationTable.check_in <= today)
            .where(ReservationTable.check_out > today)
            .where(ReservationTable.status == ReservationStatus.CONFIRMED)
            .order_by(ReservationTable.check_out.asc())
        )
        return await self._fetch(stmt)

    async def get_upcoming(self, today: date) -> list[Reservation]:
        """Get pending or confirmed stays starting after today, soonest first."""
        stmt = (
            select(ReservationTable)
            .where(ReservationTable.check_in > today)
            .where(ReservationTable.status.in_(BLOCKING_STATUSES))
            .order_by(ReservationTable.check_in.asc(), ReservationTable.id.asc())
        )
        return await self._fetch(stmt)

    async def get_recent(self, limit: Optional[int] = None) -> list[Reservation]:
        """Get reservations, newest first."""
        stmt = select(ReservationTable).order_by(
            ReservationTable.created_at.desc(), ReservationTable.id.desc()
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return await self._fetch(stmt)

    async def get_checking_in_between(self, start: date, end: date) -> list[Reservation]:
        """Get reservations whose check-in falls in [start, end]."""
        stmt = (
            select(ReservationTable)
            .where(ReservationTable.check_in.between(start, end))
            .order_by(ReservationTable.check_in.asc(), ReservationTable.id.asc())
        )
        return await self._fetch(stmt)

    async def count_conflicting(
        self,
        room_type: RoomType,
        check_in: date,
        check_out: date,
        exclude_id: Optional[int] = None,
    ) -> int:
        """Count room-holding reservations of a room type overlapping [check_in, check_out)."""
        stmt = (
            select(func.count())
            .select_from(ReservationTable)
            .where(ReservationTable.room_type == room_type)
            .where(ReservationTable.status.in_(BLOCKING_STATUSES))
            .where(
                not_(
                    or_(
                        ReservationTable.check_out <= check_in,
                        ReservationTable.check_in >= check_out,
                    )
                )
            )
        )
        if exclude_id is not None:
            stmt = stmt.where(ReservationTable.id != exclude_id)

        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def lock_room_type(self, room_type: RoomType) -> None:
        """Serialize bookings of one room type until the transaction ends.

        Uses a transaction-scoped advisory lock on PostgreSQL. SQLite
        transactions already hold the database write lock from their first
        statement (BEGIN IMMEDIATE, see ``use_immediate_transactions``).
        """
        if self.session.get_bind().dialect.name != "postgresql":
            return

        await self.session.execute(
            select(func.pg_advisory_xact_lock(room_type_lock_key(room_type)))
        )
        logger.debug("room_type_locked", room_type=room_type.value)

    async def _get_row(self, id: int) -> Optional[ReservationTable]:
        stmt = select(ReservationTable).where(ReservationTable.id == id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def _fetch(self, stmt) -> list[Reservation]:
        result = await self.session.execute(stmt)
        db_reservations = result.scalars().all()
        return [self._to_domain_model(db_res) for db_res in db_reservations]

    def _to_domain_model(self, db_reservation: ReservationTable) -> Reservation:
        """Convert database model to domain model."""
        return Reservation(
            id=db_reservation.id,
            guest_full_name=db_reservation.guest_full_name,
            address=db_reservation.address,
            contact_number=db_reservation.contact_number,
            email=db_reservation.email,
            room_type=db_reservation.room_type,
            check_in=db_reservation.check_in,
            check_out=db_reservation.check_out,
            number_of_guests=db_reservation.number_of_guests,
            special_requests=db_reservation.special_requests,
            status=db_reservation.status,
            total_amount=db_reservation.total_amount,
            created_at=db_reservation.created_at,
            updated_at=db_reservation.updated_at,
        )
