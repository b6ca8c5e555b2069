"""SQLAlchemy database models.

Maps domain models to relational tables.
"""

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import DeclarativeBase

from src.models.reservation import ReservationStatus, RoomType


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class ReservationTable(Base):
    """Reservation entity table."""

    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    guest_full_name = Column(String(100), nullable=False)
    address = Column(String(255), nullable=False)
    contact_number = Column(String(20), nullable=False)
    email = Column(String(100), nullable=False)
    room_type = Column(
        Enum(RoomType, name="roomtype", native_enum=True),
        nullable=False,
    )
    check_in = Column(Date, nullable=False)
    check_out = Column(Date, nullable=False)
    number_of_guests = Column(Integer, nullable=False)
    special_requests = Column(String(500), nullable=True)
    status = Column(
        Enum(ReservationStatus, name="reservationstatus", native_enum=True),
        nullable=False,
        default=ReservationStatus.PENDING,
    )
    total_amount = Column(Numeric(10, 2), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("check_out > check_in", name="check_stay_dates"),
        CheckConstraint(
            "number_of_guests >= 1 AND number_of_guests <= 10",
            name="check_guest_count",
        ),
        Index("ix_reservations_room_type_dates", room_type, check_in, check_out),
        Index("ix_reservations_status", status),
        Index("ix_reservations_email", email),
        Index("ix_reservations_created_at", created_at.desc()),
    )
