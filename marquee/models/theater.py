"""
Theater, Format and Screen models
"""

from sqlalchemy import Column, String, Integer, Boolean, Text, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from marquee.models.base import BaseModel


class Theater(BaseModel):
    """
    A physical theater location
    """
    __tablename__ = "theaters"

    name = Column(String(255), nullable=False)
    address = Column(Text, nullable=False)
    city = Column(String(100), nullable=False, index=True)
    state = Column(String(100), nullable=False)
    zip_code = Column(String(20), nullable=False)
    phone_number = Column(String(30))
    open_time = Column(String(20))
    close_time = Column(String(20))
    standard = Column(Boolean, nullable=False, default=True)
    imax = Column(Boolean, nullable=False, default=False)
    screen_x = Column(Boolean, nullable=False, default=False)
    dolby = Column(Boolean, nullable=False, default=False)
    latitude = Column(String(30))
    longitude = Column(String(30))

    # Relationships
    screens = relationship("Screen", back_populates="theater", cascade="all, delete-orphan")
    showtimes = relationship("Showtime", back_populates="theater")

    def __repr__(self):
        return f"<Theater(id={self.id}, name={self.name}, city={self.city})>"


class Format(BaseModel):
    """
    Projection format (Standard, IMAX, ScreenX, Dolby)
    """
    __tablename__ = "formats"

    type = Column(String(50), nullable=False, unique=True)

    screens = relationship("Screen", back_populates="format")

    def __repr__(self):
        return f"<Format(id={self.id}, type={self.type})>"


class Screen(BaseModel):
    """
    An auditorium inside a theater
    """
    __tablename__ = "screens"
    __table_args__ = (
        UniqueConstraint('theater_id', 'number', name='uq_theater_screen_number'),
    )

    theater_id = Column(Uuid(as_uuid=True), ForeignKey("theaters.id"), nullable=False, index=True)
    format_id = Column(Uuid(as_uuid=True), ForeignKey("formats.id"), nullable=False)
    number = Column(Integer, nullable=False)

    # Relationships
    theater = relationship("Theater", back_populates="screens")
    format = relationship("Format", back_populates="screens")
    showtimes = relationship("Showtime", back_populates="screen")

    def __repr__(self):
        return f"<Screen(id={self.id}, theater_id={self.theater_id}, number={self.number})>"
