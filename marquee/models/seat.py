"""
Seat model
"""

from sqlalchemy import Column, String, Boolean, ForeignKey, Enum, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
import enum

from marquee.core.exceptions import InvalidSeatTransitionError
from marquee.models.base import BaseModel


class SeatAvailability(str, enum.Enum):
    AVAILABLE = "available"
    RESERVED = "reserved"
    SOLD = "sold"


# Sold is terminal
ALLOWED_TRANSITIONS = {
    SeatAvailability.AVAILABLE: {SeatAvailability.RESERVED, SeatAvailability.SOLD},
    SeatAvailability.RESERVED: {SeatAvailability.SOLD, SeatAvailability.AVAILABLE},
    SeatAvailability.SOLD: set(),
}


def can_transition(from_state: SeatAvailability, to_state: SeatAvailability) -> bool:
    return to_state in ALLOWED_TRANSITIONS[SeatAvailability(from_state)]


class Seat(BaseModel):
    """
    A seat of one screen for one showtime.
    A seat references at most one ticket, which keeps tickets pairwise disjoint.
    """
    __tablename__ = "seats"
    __table_args__ = (
        UniqueConstraint('screen_id', 'showtime_id', 'label', name='uq_screen_showtime_seat'),
    )

    screen_id = Column(Uuid(as_uuid=True), ForeignKey("screens.id"), nullable=False)
    showtime_id = Column(Uuid(as_uuid=True), ForeignKey("showtimes.id"), nullable=False, index=True)
    label = Column(String(10), nullable=False)
    accessible = Column(Boolean, nullable=False, default=False)
    availability = Column(
        Enum(SeatAvailability),
        default=SeatAvailability.AVAILABLE,
        nullable=False,
        index=True
    )
    ticket_id = Column(Uuid(as_uuid=True), ForeignKey("tickets.id"), nullable=True, index=True)

    # Relationships
    showtime = relationship("Showtime", back_populates="seats")
    ticket = relationship("Ticket", back_populates="seats")

    @property
    def is_available(self) -> bool:
        return self.availability == SeatAvailability.AVAILABLE

    def transition_to(self, new_state: SeatAvailability):
        """
        Move the seat to new_state, enforcing the seat lifecycle
        """
        current = SeatAvailability(self.availability)
        if not can_transition(current, new_state):
            raise InvalidSeatTransitionError(self.id, current.value, SeatAvailability(new_state).value)
        self.availability = new_state

    def __repr__(self):
        return f"<Seat(id={self.id}, showtime_id={self.showtime_id}, label={self.label}, availability={self.availability})>"
