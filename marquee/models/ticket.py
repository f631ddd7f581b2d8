"""
Ticket model
"""

from sqlalchemy import Column, String, ForeignKey, Numeric, Uuid
from sqlalchemy.orm import relationship

from marquee.models.base import BaseModel


class Ticket(BaseModel):
    """
    A purchase of one or more seats for a showtime. Never updated after creation.
    """
    __tablename__ = "tickets"

    showtime_id = Column(Uuid(as_uuid=True), ForeignKey("showtimes.id"), nullable=False, index=True)
    email = Column(String(255), nullable=False, index=True)
    price = Column(Numeric(10, 2), nullable=False)

    # Relationships
    showtime = relationship("Showtime", back_populates="tickets")
    seats = relationship("Seat", back_populates="ticket", order_by="Seat.label")

    @property
    def seat_ids(self):
        return [seat.id for seat in self.seats]

    def __repr__(self):
        return f"<Ticket(id={self.id}, showtime_id={self.showtime_id}, email={self.email}, price={self.price})>"
