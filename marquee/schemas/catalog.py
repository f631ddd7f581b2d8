"""
Catalog schemas: theaters, formats, screens, movies, showtimes
"""

from typing import Optional
from uuid import UUID
from datetime import date, datetime
from decimal import Decimal

from marquee.schemas.base import BaseSchema, IDSchema


class TheaterResponse(IDSchema):
    name: str
    address: str
    city: str
    state: str
    zip_code: str
    phone_number: Optional[str] = None
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    standard: bool
    imax: bool
    screen_x: bool
    dolby: bool
    latitude: Optional[str] = None
    longitude: Optional[str] = None


class FormatResponse(IDSchema):
    type: str


class ScreenResponse(IDSchema):
    theater_id: UUID
    number: int
    format: FormatResponse


class MovieResponse(IDSchema):
    title: str
    description: Optional[str] = None
    runtime: Optional[str] = None
    rating: Optional[str] = None
    release_date: Optional[date] = None
    poster: Optional[str] = None
    trailer: Optional[str] = None
    now_playing: bool
    limited_release: bool


class ShowtimeResponse(IDSchema):
    time: datetime
    price: Decimal
    theater: TheaterResponse
    movie: MovieResponse
    screen: ScreenResponse


class ShowtimeSummary(BaseSchema):
    """Showtime as listed for a theater or movie"""
    id: UUID
    time: datetime
    price: Decimal
    theater_id: UUID
    movie_id: UUID
    screen: ScreenResponse
