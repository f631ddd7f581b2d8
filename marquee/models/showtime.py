"""
Showtime model
"""

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, Uuid
from sqlalchemy.orm import relationship

from marquee.models.base import BaseModel


class Showtime(BaseModel):
    """
    A scheduled screening of a movie on a screen at a theater.
    Treated as immutable once created.
    """
    __tablename__ = "showtimes"

    theater_id = Column(Uuid(as_uuid=True), ForeignKey("theaters.id"), nullable=False, index=True)
    movie_id = Column(Uuid(as_uuid=True), ForeignKey("movies.id"), nullable=False, index=True)
    screen_id = Column(Uuid(as_uuid=True), ForeignKey("screens.id"), nullable=False)
    time = Column(DateTime(timezone=True), nullable=False, index=True)
    price = Column(Numeric(10, 2), nullable=False)

    # Relationships
    theater = relationship("Theater", back_populates="showtimes")
    movie = relationship("Movie", back_populates="showtimes")
    screen = relationship("Screen", back_populates="showtimes")
    seats = relationship("Seat", back_populates="showtime")
    tickets = relationship("Ticket", back_populates="showtime")

    def __repr__(self):
        return f"<Showtime(id={self.id}, movie_id={self.movie_id}, screen_id={self.screen_id}, time={self.time})>"
