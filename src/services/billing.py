"""Billing calculator.

Derives an itemized bill from a reservation:

1. Number of nights (check-out minus check-in)
2. Nightly rate for the room type
3. Room subtotal = rate x nights
4. Service charge = subtotal x service charge rate
5. Tax = subtotal x tax rate
6. Grand total = subtotal + service charge + tax

Every amount is a Decimal quantized to cents with ROUND_HALF_UP.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from src.config.settings import Settings
from src.logging import get_logger
from src.models.bill import BillDetails
from src.models.reservation import Reservation, RoomType
from src.services.errors import InvalidReservationError

logger = get_logger(__name__)

CURRENCY_QUANTUM = Decimal("0.01")

DEFAULT_ROOM_RATES: dict[RoomType, Decimal] = {
    RoomType.SINGLE: Decimal("100.00"),
    RoomType.DOUBLE: Decimal("150.00"),
    RoomType.SUITE: Decimal("250.00"),
    RoomType.DELUXE: Decimal("400.00"),
}
DEFAULT_SERVICE_CHARGE_RATE = Decimal("0.05")
DEFAULT_TAX_RATE = Decimal("0.08")


def to_money(amount: Decimal) -> Decimal:
    """Round an amount to cents, half up."""
    return amount.quantize(CURRENCY_QUANTUM, rounding=ROUND_HALF_UP)


def _as_percentage(rate: Decimal) -> Decimal:
    percentage = (rate * 100).normalize()
    # normalize() turns 10 into 1E+1
    return percentage.quantize(Decimal(1)) if percentage == percentage.to_integral_value() else percentage


class BillingRates(BaseModel):
    """Rate table and charge percentages used by the calculator."""

    model_config = ConfigDict(frozen=True)

    room_rates: dict[RoomType, Decimal] = Field(default_factory=lambda: dict(DEFAULT_ROOM_RATES))
    service_charge_rate: Decimal = Field(default=DEFAULT_SERVICE_CHARGE_RATE, ge=0, lt=1)
    tax_rate: Decimal = Field(default=DEFAULT_TAX_RATE, ge=0, lt=1)

    @classmethod
    def from_settings(cls, settings: Settings) -> "BillingRates":
        """Build the rate table from application settings."""
        return cls(
            room_rates={
                RoomType.SINGLE: settings.room_rate_single,
                RoomType.DOUBLE: settings.room_rate_double,
                RoomType.SUITE: settings.room_rate_suite,
                RoomType.DELUXE: settings.room_rate_deluxe,
            },
            service_charge_rate=settings.service_charge_rate,
            tax_rate=settings.tax_rate,
        )


class BillingCalculator:
    """Computes bills from reservations. Holds no state besides its rates."""

    def __init__(self, rates: Optional[BillingRates] = None):
        """
        Initialize billing calculator.

        Args:
            rates: Rate table and percentages; defaults to the standard tariff
        """
        self.rates = rates or BillingRates()

    def calculate(self, reservation: Optional[Reservation]) -> BillDetails:
        """
        Calculate the complete bill for a reservation.

        Args:
            reservation: Reservation to bill

        Returns:
            BillDetails with the itemized charges

        Raises:
            InvalidReservationError: If the reservation is missing, lacks dates,
                has an unknown room type, or spans no nights
        """
        if reservation is None:
            raise InvalidReservationError("Reservation cannot be null")

        check_in = getattr(reservation, "check_in", None)
        check_out = getattr(reservation, "check_out", None)
        if check_in is None or check_out is None:
            raise InvalidReservationError("Check-in and check-out dates are required")

        room_type = self._resolve_room_type(getattr(reservation, "room_type", None))

        logger.info("bill_calculation_started", reservation_id=reservation.id)

        number_of_nights = self.calculate_number_of_nights(check_in, check_out)
        if number_of_nights <= 0:
            raise InvalidReservationError("Check-out date must be after check-in date")

        room_rate = self.get_room_rate(room_type)

        room_subtotal = to_money(room_rate * number_of_nights)
        service_charge = to_money(room_subtotal * self.rates.service_charge_rate)
        tax = to_money(room_subtotal * self.rates.tax_rate)
        grand_total = to_money(room_subtotal + service_charge + tax)

        logger.debug(
            "bill_calculated",
            reservation_id=reservation.id,
            nights=number_of_nights,
            room_rate=str(room_rate),
            room_subtotal=str(room_subtotal),
            service_charge=str(service_charge),
            tax=str(tax),
            grand_total=str(grand_total),
        )

        return BillDetails(
            reservation_id=reservation.id,
            guest_name=reservation.guest_full_name,
            room_type=room_type,
            check_in_date=check_in,
            check_out_date=check_out,
            number_of_nights=number_of_nights,
            room_rate_per_night=room_rate,
            room_subtotal=room_subtotal,
            service_charge=service_charge,
            service_charge_rate=self.service_charge_percentage,
            tax=tax,
            tax_rate=self.tax_percentage,
            grand_total=grand_total,
        )

    def calculate_number_of_nights(self, check_in: date, check_out: date) -> int:
        """Whole days between check-in and check-out."""
        if check_in is None or check_out is None:
            raise InvalidReservationError("Check-in and check-out dates cannot be null")
        return (check_out - check_in).days

    def get_room_rate(self, room_type: RoomType | str) -> Decimal:
        """Nightly rate for a room type, rounded to cents."""
        resolved = self._resolve_room_type(room_type)
        rate = self.rates.room_rates.get(resolved)
        if rate is None:
            raise InvalidReservationError(
                f"No rate configured for room type: {resolved.value}"
            )
        return to_money(rate)

    def get_all_room_rates(self) -> dict[str, Decimal]:
        """All nightly rates keyed by room type name."""
        return {
            room_type.value: to_money(rate)
            for room_type, rate in self.rates.room_rates.items()
        }

    @property
    def tax_percentage(self) -> Decimal:
        """Tax rate as a percentage (8 for 8%, 7.5 for 7.5%)."""
        return _as_percentage(self.rates.tax_rate)

    @property
    def service_charge_percentage(self) -> Decimal:
        """Service charge rate as a percentage (5 for 5%)."""
        return _as_percentage(self.rates.service_charge_rate)

    def _resolve_room_type(self, room_type: RoomType | str | None) -> RoomType:
        if isinstance(room_type, RoomType):
            return room_type
        if room_type is None or not str(room_type).strip():
            raise InvalidReservationError("Room type is required")
        try:
            return RoomType(str(room_type).strip().upper())
        except ValueError:
            logger.error("unknown_room_type", room_type=str(room_type))
            raise InvalidReservationError(
                f"Unknown room type: {room_type}. "
                f"Valid types are: {RoomType.valid_names()}"
            ) from None
