"""
Pydantic schemas for request and response validation
"""

from marquee.schemas.seat import (
    SeatSpec,
    BulkSeatCreate,
    SeatResponse,
    SeatMapResponse
)
from marquee.schemas.ticket import (
    TicketCreate,
    TicketResponse
)
from marquee.schemas.catalog import (
    TheaterResponse,
    MovieResponse,
    FormatResponse,
    ScreenResponse,
    ShowtimeResponse,
    ShowtimeSummary
)
from marquee.schemas.response import (
    ErrorDetail,
    ErrorResponse
)

__all__ = [
    "SeatSpec",
    "BulkSeatCreate",
    "SeatResponse",
    "SeatMapResponse",
    "TicketCreate",
    "TicketResponse",
    "TheaterResponse",
    "MovieResponse",
    "FormatResponse",
    "ScreenResponse",
    "ShowtimeResponse",
    "ShowtimeSummary",
    "ErrorDetail",
    "ErrorResponse",
]
