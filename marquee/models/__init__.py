"""
Database models
"""

from marquee.models.theater import Theater, Format, Screen
from marquee.models.movie import Movie
from marquee.models.showtime import Showtime
from marquee.models.seat import Seat, SeatAvailability
from marquee.models.ticket import Ticket

__all__ = [
    "Theater",
    "Format",
    "Screen",
    "Movie",
    "Showtime",
    "Seat",
    "SeatAvailability",
    "Ticket",
]
