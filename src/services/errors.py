"""Reservation error types reported to callers."""

from datetime import date


class ReservationError(Exception):
    """Base class for reservation errors."""


class InvalidReservationError(ReservationError, ValueError):
    """Malformed reservation input (date order, missing field, room type, guest count)."""


class ReservationConflictError(ReservationError):
    """Requested room type is already booked for overlapping dates."""

    def __init__(self, room_type: str, check_in: date, check_out: date):
        self.room_type = room_type
        self.check_in = check_in
        self.check_out = check_out
        super().__init__(
            f"Room type {room_type} is not available from {check_in.isoformat()} "
            f"to {check_out.isoformat()}"
        )


class ReservationNotFoundError(ReservationError, LookupError):
    """No reservation with the given ID."""

    def __init__(self, reservation_id: int):
        self.reservation_id = reservation_id
        super().__init__(f"Reservation not found with ID: {reservation_id}")
