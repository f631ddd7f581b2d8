"""
Test configuration and fixtures
Each test gets its own SQLite database file, so tests never share state.
"""

import pytest
import pytest_asyncio
from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4
import os

from httpx import AsyncClient, ASGITransport

# Set test environment before anything reads settings
os.environ["APP_ENV"] = "testing"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SEED_DEMO_DATA"] = "false"
os.environ["RESERVATION_LOCK_TIMEOUT_SECONDS"] = "10"

from marquee.core.database import DatabaseManager
from marquee.models.theater import Theater, Format, Screen
from marquee.models.movie import Movie
from marquee.models.showtime import Showtime
from marquee.services import build_services


@pytest_asyncio.fixture
async def db_manager(tmp_path):
    """Started database manager backed by a fresh SQLite file"""
    manager = DatabaseManager().start(f"sqlite+aiosqlite:///{tmp_path / 'marquee_test.db'}")
    await manager.create_all()
    yield manager
    await manager.dispose()


@pytest.fixture
def services(db_manager):
    return build_services(db_manager)


@pytest_asyncio.fixture
async def cinema(db_manager):
    """One theater with an IMAX screen, a movie now playing and a format"""
    async with db_manager.atomic_transaction() as session:
        imax = Format(type="IMAX")
        theater = Theater(
            name="Test Cinema",
            address="1 Test Street",
            city="Testville",
            state="TS",
            zip_code="00000",
            standard=True,
            imax=True,
        )
        movie = Movie(
            title="Test Movie",
            runtime="2h 0m",
            rating="PG",
            release_date=date(2026, 1, 1),
            now_playing=True,
            limited_release=False,
        )
        session.add_all([imax, theater, movie])
        await session.flush()

        screen = Screen(theater_id=theater.id, format_id=imax.id, number=1)
        session.add(screen)

    return SimpleNamespace(format=imax, theater=theater, movie=movie, screen=screen)


@pytest.fixture
def make_showtime(db_manager, cinema):
    """Factory creating showtimes on the cinema's screen"""

    async def _make(time: datetime = None, price: Decimal = Decimal("15.00"), screen=None, movie=None):
        async with db_manager.atomic_transaction() as session:
            showtime = Showtime(
                theater_id=cinema.theater.id,
                movie_id=(movie or cinema.movie).id,
                screen_id=(screen or cinema.screen).id,
                time=time or datetime(2026, 11, 20, 19, 0, tzinfo=timezone.utc),
                price=price,
            )
            session.add(showtime)
        return showtime

    return _make


@pytest_asyncio.fixture
async def showtime(make_showtime):
    return await make_showtime()


@pytest_asyncio.fixture
async def seats(services, cinema, showtime):
    """Seats A1-A5 and B1-B5 of the showtime, keyed by label"""
    specs = [
        {
            "screen_id": cinema.screen.id,
            "showtime_id": showtime.id,
            "label": f"{row}{number}",
            "accessible": row == "A",
        }
        for row in "AB"
        for number in range(1, 6)
    ]
    created = await services.seat_inventory.bulk_create(specs)
    return {seat.label: seat for seat in created}


@pytest_asyncio.fixture
async def client(services):
    """HTTP client against the app, wired to the test services"""
    from marquee.main import app

    app.state.services = services
    try:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
            yield ac
    finally:
        del app.state.services


@pytest.fixture
def purchaser():
    return f"buyer_{uuid4().hex[:8]}@example.com"

