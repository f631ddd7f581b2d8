"""
Custom application exceptions
"""

from typing import Optional, Dict, Any, Iterable


class MarqueeException(Exception):
    """Base exception for Marquee application"""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(MarqueeException):
    """Validation errors"""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            details=details
        )


class NotFoundError(MarqueeException):
    """Resource not found errors"""

    def __init__(self, resource: str, identifier: Any = None, code: str = "NOT_FOUND"):
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} with id {identifier} not found"
        super().__init__(
            message=message,
            code=code,
            status_code=404,
            details={"id": str(identifier)} if identifier is not None else {}
        )


class ShowtimeNotFoundError(NotFoundError):
    def __init__(self, showtime_id: Any):
        super().__init__("Showtime", showtime_id, code="SHOWTIME_NOT_FOUND")


class SeatNotFoundError(NotFoundError):
    """Seat does not exist or belongs to a different showtime"""

    def __init__(self, seat_ids: Iterable[Any], showtime_id: Any = None):
        seat_ids = sorted(str(sid) for sid in seat_ids)
        super().__init__("Seat", ", ".join(seat_ids), code="SEAT_NOT_FOUND")
        if showtime_id is not None:
            self.message = f"Seats {', '.join(seat_ids)} do not belong to showtime {showtime_id}"
        self.details = {"seat_ids": seat_ids}


class TicketNotFoundError(NotFoundError):
    def __init__(self, ticket_id: Any):
        super().__init__("Ticket", ticket_id, code="TICKET_NOT_FOUND")


class SeatUnavailableError(MarqueeException):
    """
    One or more requested seats were already claimed.

    An expected outcome of contention, not a bug: the client should re-fetch
    the seat map and retry with different seats.
    """

    def __init__(self, seat_ids: Iterable[Any] = None):
        seat_ids = sorted(str(sid) for sid in (seat_ids or []))
        super().__init__(
            message="Selected seats are no longer available",
            code="SEATS_UNAVAILABLE",
            status_code=409,
            details={"unavailable_seats": seat_ids} if seat_ids else {}
        )
        self.seat_ids = seat_ids


class InvalidSeatTransitionError(MarqueeException):
    """Seat availability change not allowed by the seat lifecycle"""

    def __init__(self, seat_id: Any, from_state: str, to_state: str):
        super().__init__(
            message=f"Seat {seat_id} cannot move from {from_state} to {to_state}",
            code="INVALID_SEAT_TRANSITION",
            status_code=409,
            details={"seat_id": str(seat_id), "from": from_state, "to": to_state}
        )


class LockAcquisitionError(MarqueeException):
    """Failed to acquire lock error"""

    def __init__(self, resource: str):
        super().__init__(
            message=f"Failed to acquire lock for resource: {resource}",
            code="LOCK_FAILED",
            status_code=409,
            details={"resource": resource}
        )


class StorageError(MarqueeException):
    """Underlying persistence failure"""

    def __init__(self, operation: str, message: str = None):
        super().__init__(
            message=message or f"Storage failure during {operation}",
            code="STORAGE_ERROR",
            status_code=503,
            details={"operation": operation}
        )
