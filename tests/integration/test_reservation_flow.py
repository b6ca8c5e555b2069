"""Integration tests for the end-to-end reservation flow.

Drives ReservationHandlers against a real database: booking, conflict
rejection, updates, billing and listings.
"""

from datetime import date
from decimal import Decimal

import pytest

from src.handlers import error_response
from src.handlers.reservations import ReservationHandlers
from src.models.reservation import ReservationStatus, RoomType
from src.services.billing import BillingRates
from src.services.errors import (
    InvalidReservationError,
    ReservationConflictError,
    ReservationNotFoundError,
)


@pytest.fixture
def handlers(database):
    """Handlers with today fixed at 2026-08-02."""
    return ReservationHandlers(database, clock=lambda: date(2026, 8, 2))


def _payload(**overrides):
    payload = {
        "guest_full_name": "John Smith",
        "address": "12 Harbour Road, Galle",
        "contact_number": "+94 77 123 4567",
        "email": "john.smith@example.com",
        "room_type": "DOUBLE",
        "check_in": "2026-08-01",
        "check_out": "2026-08-05",
        "number_of_guests": 2,
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_and_fetch(handlers):
    """Test a new reservation is stored as PENDING and can be fetched."""
    created = await handlers.create_reservation(_payload())

    assert created.status == ReservationStatus.PENDING
    assert created.room_type == RoomType.DOUBLE

    fetched = await handlers.get_reservation(created.id)
    assert fetched.guest_full_name == "John Smith"
    assert fetched.check_out == date(2026, 8, 5)


@pytest.mark.asyncio
async def test_overlapping_booking_is_rejected(handlers):
    """Test a second DOUBLE booking for 08-03..08-05 conflicts with 08-01..08-05."""
    await handlers.create_reservation(_payload())

    with pytest.raises(ReservationConflictError) as exc_info:
        await handlers.create_reservation(
            _payload(guest_full_name="Jane Doe", check_in="2026-08-03", check_out="2026-08-05")
        )

    assert error_response(exc_info.value)["status_code"] == 409
    assert len(await handlers.list_reservations()) == 1


@pytest.mark.asyncio
async def test_back_to_back_and_other_room_types_are_allowed(handlers):
    """Test checkout-day arrivals and other room types do not conflict."""
    await handlers.create_reservation(_payload())
    await handlers.create_reservation(_payload(check_in="2026-08-05", check_out="2026-08-08"))
    await handlers.create_reservation(_payload(room_type="SUITE", check_in="2026-08-02"))

    assert len(await handlers.list_reservations()) == 3


@pytest.mark.asyncio
async def test_cancelled_reservation_frees_the_room(handlers):
    """Test cancelling releases the dates for a new booking."""
    first = await handlers.create_reservation(_payload())
    await handlers.update_reservation(first.id, {"status": "CANCELLED"})

    second = await handlers.create_reservation(_payload(guest_full_name="Jane Doe"))

    assert second.id != first.id

    with pytest.raises(ReservationConflictError):
        await handlers.update_reservation(first.id, {"status": "CONFIRMED"})


@pytest.mark.asyncio
async def test_update_same_dates_is_not_a_conflict(handlers):
    """Test resubmitting a reservation's own dates does not clash with itself."""
    created = await handlers.create_reservation(_payload())

    updated = await handlers.update_reservation(
        created.id,
        {"check_in": "2026-08-01", "check_out": "2026-08-05", "special_requests": "Ocean view"},
    )

    assert updated.special_requests == "Ocean view"
    assert updated.check_in == date(2026, 8, 1)


@pytest.mark.asyncio
async def test_update_rejected_conflict_leaves_row_unchanged(handlers):
    """Test a failed update is rolled back entirely."""
    await handlers.create_reservation(_payload(room_type="SUITE"))
    double = await handlers.create_reservation(_payload())

    with pytest.raises(ReservationConflictError):
        await handlers.update_reservation(double.id, {"room_type": "SUITE", "number_of_guests": 4})

    unchanged = await handlers.get_reservation(double.id)
    assert unchanged.room_type == RoomType.DOUBLE
    assert unchanged.number_of_guests == 2


@pytest.mark.asyncio
async def test_invalid_input_is_reported(handlers):
    """Test date order and field validation surface as validation errors."""
    with pytest.raises(InvalidReservationError, match="Check-out date must be after check-in date"):
        await handlers.create_reservation(_payload(check_in="2026-08-05", check_out="2026-08-05"))

    with pytest.raises(InvalidReservationError) as exc_info:
        await handlers.create_reservation(_payload(room_type="PENTHOUSE", number_of_guests=0))

    body = error_response(exc_info.value)
    assert body["status_code"] == 400
    assert "room_type" in body["error"]
    assert "number_of_guests" in body["error"]


@pytest.mark.asyncio
async def test_missing_reservation(handlers):
    """Test get, update and delete of an unknown ID."""
    with pytest.raises(ReservationNotFoundError):
        await handlers.get_reservation(999)
    with pytest.raises(ReservationNotFoundError):
        await handlers.update_reservation(999, {"number_of_guests": 1})
    with pytest.raises(ReservationNotFoundError):
        await handlers.delete_reservation(999)


@pytest.mark.asyncio
async def test_delete(handlers):
    """Test deleted reservations are gone."""
    created = await handlers.create_reservation(_payload())

    await handlers.delete_reservation(created.id)

    with pytest.raises(ReservationNotFoundError):
        await handlers.get_reservation(created.id)


@pytest.mark.asyncio
async def test_bill_for_stored_reservation(handlers):
    """Test bill for a 3-night DOUBLE stay."""
    created = await handlers.create_reservation(_payload(check_in="2026-09-01", check_out="2026-09-04"))

    bill = await handlers.get_bill(created.id)

    assert bill.reservation_id == created.id
    assert bill.number_of_nights == 3
    assert bill.room_subtotal == Decimal("450.00")
    assert bill.service_charge == Decimal("22.50")
    assert bill.tax == Decimal("36.00")
    assert bill.grand_total == Decimal("508.50")


@pytest.mark.asyncio
async def test_bill_with_configured_rates(database):
    """Test handlers bill with the tariff they were given."""
    rates = BillingRates(room_rates={RoomType.DOUBLE: Decimal("200")}, tax_rate=Decimal("0.10"))
    handlers = ReservationHandlers(database, billing_rates=rates)
    created = await handlers.create_reservation(_payload(check_in="2026-09-01", check_out="2026-09-02"))

    bill = await handlers.get_bill(created.id)

    assert bill.grand_total == Decimal("230.00")
    assert handlers.get_room_rates() == {
        "room_rates": {"DOUBLE": Decimal("200.00")},
        "service_charge_rate": 5,
        "tax_rate": 10,
    }


@pytest.mark.asyncio
async def test_listing_filters(handlers):
    """Test active, upcoming, status, search and recent listings."""
    in_house = await handlers.create_reservation(_payload(status="CONFIRMED"))
    arriving = await handlers.create_reservation(
        _payload(guest_full_name="Jane Doe", room_type="SUITE", check_in="2026-08-10", check_out="2026-08-12")
    )
    cancelled = await handlers.create_reservation(
        _payload(guest_full_name="Ann Black", room_type="SINGLE", check_in="2026-08-20", check_out="2026-08-21")
    )
    await handlers.update_reservation(cancelled.id, {"status": "CANCELLED"})

    assert [r.id for r in await handlers.list_reservations({"active": True})] == [in_house.id]
    assert [r.id for r in await handlers.list_reservations({"upcoming": True})] == [arriving.id]
    assert [r.id for r in await handlers.list_reservations({"status": "CANCELLED"})] == [cancelled.id]
    assert [r.id for r in await handlers.list_reservations({"guest_name": "jane"})] == [arriving.id]
    assert len(await handlers.list_reservations({"guest_name": "  "})) == 3
    assert [r.id for r in await handlers.list_reservations({"recent": True, "limit": 1})] == [cancelled.id]


@pytest.mark.asyncio
async def test_invalid_listing_filter(handlers):
    """Test malformed filters are validation errors."""
    with pytest.raises(InvalidReservationError):
        await handlers.list_reservations({"status": "ON_HOLD"})
