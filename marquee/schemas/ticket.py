"""
Ticket schemas
"""

from typing import List
from uuid import UUID
from decimal import Decimal
from pydantic import EmailStr

from marquee.schemas.base import BaseSchema, IDSchema, TimestampSchema
from marquee.schemas.seat import SeatResponse


class TicketCreate(BaseSchema):
    """
    Ticket purchase request.

    Seat count and price bounds are checked by the reservation coordinator so
    that the API and direct callers get the same VALIDATION_ERROR.
    """
    showtime_id: UUID
    seat_ids: List[UUID]
    email: EmailStr
    price: Decimal


class TicketResponse(IDSchema, TimestampSchema):
    showtime_id: UUID
    email: str
    price: Decimal
    seats: List[SeatResponse]
