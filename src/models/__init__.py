"""Models package - Pydantic domain models."""

from .bill import BillDetails
from .reservation import (
    BLOCKING_STATUSES,
    Reservation,
    ReservationFilter,
    ReservationInput,
    ReservationPatch,
    ReservationStatus,
    RoomType,
)

__all__ = [
    "BLOCKING_STATUSES",
    "BillDetails",
    "Reservation",
    "ReservationFilter",
    "ReservationInput",
    "ReservationPatch",
    "ReservationStatus",
    "RoomType",
]
