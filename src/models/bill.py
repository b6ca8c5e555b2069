"""Bill details value object."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from .reservation import RoomType


class BillDetails(BaseModel):
    """Itemized bill for a reservation. Derived on request, never stored."""

    model_config = ConfigDict(frozen=True)

    reservation_id: int
    guest_name: str
    room_type: RoomType
    check_in_date: date
    check_out_date: date
    number_of_nights: int
    room_rate_per_night: Decimal
    room_subtotal: Decimal
    service_charge: Decimal
    service_charge_rate: Decimal  # percentage, e.g. 5 for 5%
    tax: Decimal
    tax_rate: Decimal  # percentage, e.g. 8 or 7.5
    grand_total: Decimal
