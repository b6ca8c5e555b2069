"""Reservation domain model."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

CONTACT_NUMBER_PATTERN = r"^\+?[0-9\-\s()]{7,20}$"


class RoomType(str, Enum):
    """Room type enumeration."""

    SINGLE = "SINGLE"
    DOUBLE = "DOUBLE"
    SUITE = "SUITE"
    DELUXE = "DELUXE"

    @classmethod
    def valid_names(cls) -> str:
        """Comma-separated list of valid room types."""
        return ", ".join(member.value for member in cls)


class ReservationStatus(str, Enum):
    """Reservation status enumeration."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


# Only these statuses hold a room and can block another booking
BLOCKING_STATUSES = (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class Reservation(BaseModel):
    """Hotel reservation entity as persisted."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    guest_full_name: str = Field(min_length=2, max_length=100)
    address: str = Field(min_length=1, max_length=255)
    contact_number: str = Field(pattern=CONTACT_NUMBER_PATTERN, max_length=20)
    email: EmailStr = Field(max_length=100)
    room_type: RoomType
    check_in: date
    check_out: date
    number_of_guests: int = Field(ge=1, le=10)
    special_requests: Optional[str] = Field(default=None, max_length=500)
    status: ReservationStatus = ReservationStatus.PENDING
    total_amount: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    created_at: datetime
    updated_at: Optional[datetime] = None

    @property
    def number_of_nights(self) -> int:
        """Number of nights between check-in and check-out."""
        if self.check_in is None or self.check_out is None:
            return 0
        return (self.check_out - self.check_in).days

    @property
    def holds_room(self) -> bool:
        """Check if the reservation participates in conflict checks."""
        return self.status in BLOCKING_STATUSES


class ReservationInput(BaseModel):
    """Input model for reservation creation."""

    guest_full_name: str = Field(min_length=2, max_length=100)
    address: str = Field(min_length=1, max_length=255)
    contact_number: str = Field(pattern=CONTACT_NUMBER_PATTERN, max_length=20)
    email: EmailStr = Field(max_length=100)
    room_type: RoomType
    check_in: date
    check_out: date
    number_of_guests: int = Field(ge=1, le=10)
    special_requests: Optional[str] = Field(default=None, max_length=500)
    status: Optional[ReservationStatus] = None
    total_amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)

    @field_validator("status", mode="before")
    @classmethod
    def empty_status_is_unset(cls, value: Any) -> Any:
        """Treat an empty status string as not provided."""
        return _blank_to_none(value)


class ReservationPatch(BaseModel):
    """Partial update for an existing reservation.

    Every field is optional. A field that is omitted or explicitly null leaves
    the stored value untouched, so a patch can overwrite but never clear.
    """

    guest_full_name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    address: Optional[str] = Field(default=None, min_length=1, max_length=255)
    contact_number: Optional[str] = Field(default=None, pattern=CONTACT_NUMBER_PATTERN, max_length=20)
    email: Optional[EmailStr] = Field(default=None, max_length=100)
    room_type: Optional[RoomType] = None
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    number_of_guests: Optional[int] = Field(default=None, ge=1, le=10)
    special_requests: Optional[str] = Field(default=None, max_length=500)
    status: Optional[ReservationStatus] = None
    total_amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)

    def changes(self) -> dict[str, Any]:
        """Fields that will overwrite the stored reservation."""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if getattr(self, name) is not None
        }

    @property
    def touches_booking(self) -> bool:
        """Check if the patch supplies room type or any date."""
        changes = self.changes()
        return any(key in changes for key in ("room_type", "check_in", "check_out"))


class ReservationFilter(BaseModel):
    """Filter for reservation listings. Empty filter lists everything."""

    guest_name: Optional[str] = None
    status: Optional[ReservationStatus] = None
    active: bool = False
    upcoming: bool = False
    recent: bool = False
    limit: Optional[int] = Field(default=None, gt=0)
    email: Optional[str] = None
    room_type: Optional[RoomType] = None
    check_in_from: Optional[date] = None
    check_in_to: Optional[date] = None

    @field_validator("guest_name", "email", mode="before")
    @classmethod
    def blank_is_unset(cls, value: Any) -> Any:
        """Treat blank strings as not provided."""
        return _blank_to_none(value)

    @model_validator(mode="after")
    def check_in_range_complete(self) -> "ReservationFilter":
        """A check-in range needs both ends."""
        if (self.check_in_from is None) != (self.check_in_to is None):
            raise ValueError("check_in_from and check_in_to must be given together")
        return self
