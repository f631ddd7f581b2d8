"""
API endpoints module
"""

from . import seats, tickets, showtimes, screens, theaters, movies, health

__all__ = [
    "seats",
    "tickets",
    "showtimes",
    "screens",
    "theaters",
    "movies",
    "health"
]
