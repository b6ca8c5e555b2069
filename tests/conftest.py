"""Pytest configuration and shared fixtures."""

import os
import sys
from datetime import date, datetime
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest
import pytest_asyncio

from src.config.settings import Settings
from src.models.reservation import (
    Reservation,
    ReservationInput,
    ReservationStatus,
    RoomType,
)
from src.storage.database import Database


def make_reservation_input(**overrides) -> ReservationInput:
    """Build a valid creation payload, overriding selected fields."""
    fields = {
        "guest_full_name": "John Smith",
        "address": "12 Harbour Road, Galle",
        "contact_number": "+94 77 123 4567",
        "email": "john.smith@example.com",
        "room_type": RoomType.DOUBLE,
        "check_in": date(2026, 8, 1),
        "check_out": date(2026, 8, 5),
        "number_of_guests": 2,
    }
    fields.update(overrides)
    return ReservationInput(**fields)


def make_reservation(**overrides) -> Reservation:
    """Build a stored reservation, overriding selected fields."""
    fields = {
        "id": 1,
        "guest_full_name": "John Smith",
        "address": "12 Harbour Road, Galle",
        "contact_number": "+94 77 123 4567",
        "email": "john.smith@example.com",
        "room_type": RoomType.DOUBLE,
        "check_in": date(2026, 6, 1),
        "check_out": date(2026, 6, 4),
        "number_of_guests": 2,
        "status": ReservationStatus.PENDING,
        "created_at": datetime(2026, 5, 1, 9, 30),
        "updated_at": datetime(2026, 5, 1, 9, 30),
    }
    fields.update(overrides)
    return Reservation(**fields)


@pytest.fixture
def sample_reservation():
    """Stored DOUBLE reservation, 3 nights from 2026-06-01."""
    return make_reservation()


@pytest.fixture
def sample_input():
    """Valid DOUBLE reservation input for 2026-08-01 to 2026-08-05."""
    return make_reservation_input()


@pytest.fixture
def test_settings(tmp_path):
    """Settings pointing at a throwaway database."""
    database_url = os.environ.get(
        "TEST_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'reservations.db'}"
    )
    return Settings(database_url=database_url, log_level="INFO")


@pytest_asyncio.fixture
async def database(test_settings):
    """Connected database with a fresh schema."""
    db = Database(test_settings)
    await db.connect()
    await db.drop_tables()
    await db.create_tables()
    try:
        yield db
    finally:
        await db.drop_tables()
        await db.disconnect()


@pytest.fixture
def input_factory():
    """Builder for creation payloads."""
    return make_reservation_input


@pytest.fixture
def reservation_factory():
    """Builder for stored reservations."""
    return make_reservation
