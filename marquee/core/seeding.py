"""
Demo data seeding for local development
"""
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
import logging

from sqlalchemy import select

from marquee.core.database import DatabaseManager
from marquee.models.theater import Theater, Format, Screen
from marquee.models.movie import Movie
from marquee.models.showtime import Showtime
from marquee.services.seat_inventory import SeatInventory

logger = logging.getLogger(__name__)

FORMAT_TYPES = ["Standard", "IMAX", "ScreenX", "Dolby"]
SEAT_ROWS = "ABCDE"
SEATS_PER_ROW = 10


def demo_seat_map(screen_id, showtime_id):
    """Seat specs for a 5x10 auditorium; row A is the accessible row"""
    return [
        {
            "screen_id": screen_id,
            "showtime_id": showtime_id,
            "label": f"{row}{number}",
            "accessible": row == "A",
        }
        for row in SEAT_ROWS
        for number in range(1, SEATS_PER_ROW + 1)
    ]


async def seed_if_empty(db_manager: DatabaseManager, seat_inventory: SeatInventory) -> bool:
    """
    Seed one theater with a showtime and its seat map, only if there are no theaters.
    Returns True when data was written.
    """
    async with db_manager.session() as session:
        result = await session.execute(select(Theater).limit(1))
        if result.scalar_one_or_none():
            logger.info("Database already contains data, skipping seeding")
            return False

    logger.info("Empty database detected, seeding demo data...")

    async with db_manager.atomic_transaction() as session:
        formats = {name: Format(type=name) for name in FORMAT_TYPES}
        session.add_all(formats.values())

        theater = Theater(
            name="Marquee Downtown",
            address="100 Main Street",
            city="Springfield",
            state="IL",
            zip_code="62701",
            phone_number="+1 217 555 0100",
            open_time="10:00",
            close_time="23:30",
            standard=True,
            imax=True,
            screen_x=False,
            dolby=False,
        )
        movie = Movie(
            title="The Long Matinee",
            description="A projectionist keeps the last reel running.",
            runtime="1h 52m",
            rating="PG-13",
            release_date=date.today() - timedelta(days=7),
            now_playing=True,
            limited_release=False,
        )
        session.add_all([theater, movie])
        await session.flush()

        screen = Screen(theater_id=theater.id, format_id=formats["IMAX"].id, number=1)
        session.add(screen)
        await session.flush()

        showtime = Showtime(
            theater_id=theater.id,
            movie_id=movie.id,
            screen_id=screen.id,
            time=(datetime.now(timezone.utc) + timedelta(days=1)).replace(hour=19, minute=0, second=0, microsecond=0),
            price=Decimal("15.00"),
        )
        session.add(showtime)
        await session.flush()
        screen_id, showtime_id = screen.id, showtime.id

    seats = await seat_inventory.bulk_create(demo_seat_map(screen_id, showtime_id))
    logger.info(f"Seeded showtime {showtime_id} with {len(seats)} seats")
    return True
