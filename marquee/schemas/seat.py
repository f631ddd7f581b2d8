"""
Seat schemas for request/response models
"""

from typing import Dict, List, Optional
from uuid import UUID
from pydantic import ConfigDict, Field

from marquee.models.seat import SeatAvailability
from marquee.schemas.base import BaseSchema, IDSchema


class SeatSpec(BaseSchema):
    """One seat to create; (screen_id, showtime_id, label) identifies it"""
    model_config = ConfigDict(from_attributes=True, str_strip_whitespace=True, frozen=True)

    screen_id: UUID
    showtime_id: UUID
    label: str = Field(..., min_length=1, max_length=10)
    accessible: bool = False

    @property
    def key(self):
        return (self.screen_id, self.showtime_id, self.label)


class BulkSeatCreate(BaseSchema):
    seats: List[SeatSpec]


class SeatResponse(IDSchema):
    screen_id: UUID
    showtime_id: UUID
    label: str
    accessible: bool
    availability: SeatAvailability
    ticket_id: Optional[UUID] = None


class SeatMapResponse(BaseSchema):
    showtime_id: UUID
    summary: Dict[str, int]
    seats: List[SeatResponse]
