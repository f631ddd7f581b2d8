"""
Read-only catalog queries: theaters, movies, screens and showtimes
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional
from uuid import UUID
import logging

from sqlalchemy import select, exists
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from marquee.core.database import DatabaseManager
from marquee.core.exceptions import ShowtimeNotFoundError, NotFoundError, StorageError, ValidationError
from marquee.models.theater import Theater, Format, Screen
from marquee.models.movie import Movie
from marquee.models.showtime import Showtime
from marquee.models.seat import Seat

logger = logging.getLogger(__name__)

MOVIE_CATEGORIES = ("all", "now_playing", "coming_soon", "limited")


def _showtime_options():
    return (
        selectinload(Showtime.theater),
        selectinload(Showtime.movie),
        selectinload(Showtime.screen).selectinload(Screen.format),
    )


class CatalogService:
    """
    Catalog lookups used for browsing and for validating reservations.
    Never writes.
    """

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager

    async def showtime_exists(self, showtime_id: UUID) -> bool:
        stmt = select(exists().where(Showtime.id == showtime_id))
        return bool(await self._scalar(stmt, "showtime_exists"))

    async def get_showtime(self, showtime_id: UUID) -> Showtime:
        stmt = select(Showtime).options(*_showtime_options()).where(Showtime.id == showtime_id)
        showtime = await self._scalar(stmt, "get_showtime")
        if showtime is None:
            raise ShowtimeNotFoundError(showtime_id)
        return showtime

    async def seats_for_showtime(self, showtime_id: UUID) -> List[Seat]:
        stmt = select(Seat).where(Seat.showtime_id == showtime_id).order_by(Seat.label)
        return await self._all(stmt, "seats_for_showtime")

    async def screen_for_showtime(self, showtime_id: UUID) -> Screen:
        showtime = await self.get_showtime(showtime_id)
        return showtime.screen

    async def list_showtimes(self) -> List[Showtime]:
        stmt = select(Showtime).options(*_showtime_options()).order_by(Showtime.time)
        return await self._all(stmt, "list_showtimes")

    async def list_screens(self) -> List[Screen]:
        stmt = (
            select(Screen)
            .options(selectinload(Screen.format))
            .order_by(Screen.theater_id, Screen.number)
        )
        return await self._all(stmt, "list_screens")

    async def list_formats(self) -> List[Format]:
        return await self._all(select(Format).order_by(Format.type), "list_formats")

    async def format_for_screen(self, screen_id: UUID) -> Format:
        stmt = select(Screen).options(selectinload(Screen.format)).where(Screen.id == screen_id)
        screen = await self._scalar(stmt, "format_for_screen")
        if screen is None:
            raise NotFoundError("Screen", screen_id)
        return screen.format

    async def list_theaters(self) -> List[Theater]:
        return await self._all(select(Theater).order_by(Theater.name), "list_theaters")

    async def showtimes_by_theater(self, theater_id: UUID) -> List[Showtime]:
        if not await self._scalar(select(exists().where(Theater.id == theater_id)), "theater_exists"):
            raise NotFoundError("Theater", theater_id)

        stmt = (
            select(Showtime)
            .options(*_showtime_options())
            .where(Showtime.theater_id == theater_id)
            .order_by(Showtime.time)
        )
        return await self._all(stmt, "showtimes_by_theater")

    async def showtimes_by_movie(self, movie_id: UUID, on_date: Optional[date] = None) -> List[Showtime]:
        """
        Showtimes of a movie, optionally restricted to one UTC calendar day
        """
        if not await self._scalar(select(exists().where(Movie.id == movie_id)), "movie_exists"):
            raise NotFoundError("Movie", movie_id)

        stmt = select(Showtime).options(*_showtime_options()).where(Showtime.movie_id == movie_id)
        if on_date is not None:
            day_start = datetime.combine(on_date, time.min, tzinfo=timezone.utc)
            stmt = stmt.where(Showtime.time >= day_start, Showtime.time < day_start + timedelta(days=1))

        return await self._all(stmt.order_by(Showtime.time), "showtimes_by_movie")

    async def list_movies(self, category: str = "all") -> List[Movie]:
        stmt = select(Movie)
        if category == "now_playing":
            stmt = stmt.where(Movie.now_playing.is_(True), Movie.limited_release.is_(False))
        elif category == "coming_soon":
            stmt = stmt.where(Movie.now_playing.is_(False))
        elif category == "limited":
            stmt = stmt.where(Movie.now_playing.is_(True), Movie.limited_release.is_(True))
        elif category != "all":
            raise ValidationError(
                f"Unknown movie category '{category}', expected one of {', '.join(MOVIE_CATEGORIES)}",
                field="category"
            )

        return await self._all(stmt.order_by(Movie.title), "list_movies")

    async def _scalar(self, stmt, operation: str):
        try:
            async with self.db_manager.session() as session:
                result = await session.execute(stmt)
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Catalog query {operation} failed: {e}")
            raise StorageError(operation) from e

    async def _all(self, stmt, operation: str) -> list:
        try:
            async with self.db_manager.session() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Catalog query {operation} failed: {e}")
            raise StorageError(operation) from e
