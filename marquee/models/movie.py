"""
Movie model
"""

from sqlalchemy import Column, String, Text, Boolean, Date
from sqlalchemy.orm import relationship

from marquee.models.base import BaseModel


class Movie(BaseModel):
    __tablename__ = "movies"

    title = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    runtime = Column(String(20))
    rating = Column(String(10))
    release_date = Column(Date)
    poster = Column(String(500))
    trailer = Column(String(500))
    now_playing = Column(Boolean, nullable=False, default=False, index=True)
    limited_release = Column(Boolean, nullable=False, default=False)

    showtimes = relationship("Showtime", back_populates="movie")

    def __repr__(self):
        return f"<Movie(id={self.id}, title={self.title}, now_playing={self.now_playing})>"
