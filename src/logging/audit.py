"""Structured audit logging for reservation changes.

Provides an audit trail of every booking mutation and bill issued.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from src.logging import get_logger

logger = get_logger(__name__)


class AuditEventType(str, Enum):
    """Types of auditable events."""

    # Reservation lifecycle
    RESERVATION_CREATED = "reservation_created"
    RESERVATION_UPDATED = "reservation_updated"
    RESERVATION_DELETED = "reservation_deleted"
    RESERVATION_CONFLICT = "reservation_conflict"

    # Billing
    BILL_GENERATED = "bill_generated"


class AuditLogger:
    """Centralized audit logging service."""

    @staticmethod
    def log_event(
        event_type: AuditEventType,
        resource_id: int | str | None,
        action: str,
        success: bool = True,
        metadata: Optional[dict[str, Any]] = None,
        error: Optional[str] = None,
    ) -> None:
        """
        Log an auditable event with structured context.

        Args:
            event_type: Type of audit event
            resource_id: ID of the affected reservation, if it has one
            action: Human-readable action description
            success: Whether the action succeeded
            metadata: Additional context (room type, dates, amounts)
            error: Error message if action failed
        """
        audit_entry = {
            "event_type": event_type.value,
            "resource_type": "reservation",
            "resource_id": None if resource_id is None else str(resource_id),
            "action": action,
            "success": success,
            "timestamp": datetime.utcnow().isoformat(),
            "metadata": metadata or {},
        }

        if error:
            audit_entry["error"] = error

        logger.info(
            "audit_event",
            **audit_entry,
        )

    @staticmethod
    def log_reservation_created(
        reservation_id: int,
        room_type: str,
        check_in: date,
        check_out: date,
    ) -> None:
        """Log a new booking."""
        AuditLogger.log_event(
            event_type=AuditEventType.RESERVATION_CREATED,
            resource_id=reservation_id,
            action=f"Booked {room_type} room",
            metadata={
                "room_type": room_type,
                "check_in": check_in.isoformat(),
                "check_out": check_out.isoformat(),
            },
        )

    @staticmethod
    def log_reservation_updated(
        reservation_id: int,
        changed_fields: list[str],
    ) -> None:
        """Log reservation edits."""
        AuditLogger.log_event(
            event_type=AuditEventType.RESERVATION_UPDATED,
            resource_id=reservation_id,
            action="Updated reservation",
            metadata={"changed_fields": sorted(changed_fields)},
        )

    @staticmethod
    def log_reservation_deleted(reservation_id: int) -> None:
        """Log reservation removal."""
        AuditLogger.log_event(
            event_type=AuditEventType.RESERVATION_DELETED,
            resource_id=reservation_id,
            action="Deleted reservation",
        )

    @staticmethod
    def log_conflict_rejected(
        reservation_id: Optional[int],
        room_type: str,
        check_in: date,
        check_out: date,
    ) -> None:
        """Log a booking refused because the room type is taken."""
        AuditLogger.log_event(
            event_type=AuditEventType.RESERVATION_CONFLICT,
            resource_id=reservation_id,
            action=f"Rejected overlapping {room_type} booking",
            success=False,
            metadata={
                "room_type": room_type,
                "check_in": check_in.isoformat(),
                "check_out": check_out.isoformat(),
            },
            error="room type not available for the selected dates",
        )

    @staticmethod
    def log_bill_generated(
        reservation_id: int,
        number_of_nights: int,
        grand_total: Decimal,
    ) -> None:
        """Log an issued bill."""
        AuditLogger.log_event(
            event_type=AuditEventType.BILL_GENERATED,
            resource_id=reservation_id,
            action="Generated bill",
            metadata={
                "number_of_nights": number_of_nights,
                "grand_total": str(grand_total),
            },
        )
