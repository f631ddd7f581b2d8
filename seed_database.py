"""
Database Seeding Script for Marquee
Creates the tables and a demo theater with one bookable showtime
"""

import argparse
import asyncio

from marquee.config import settings
from marquee.core.database import DatabaseManager
from marquee.core.logging import setup_logging
from marquee.core.seeding import seed_if_empty
from marquee.services import build_services


async def main(reset: bool):
    manager = DatabaseManager().start()
    try:
        if reset:
            await manager.drop_all()
            print("[OK] Existing tables dropped")

        await manager.create_all()
        print(f"[OK] Database tables created ({settings.DATABASE_URL.split('@')[-1]})")

        services = build_services(manager)
        if await seed_if_empty(manager, services.seat_inventory):
            print("[OK] Demo theater, movie, showtime and 50 seats created")
        else:
            print("[OK] Database already has data, nothing seeded")
    finally:
        await manager.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create Marquee tables and demo data")
    parser.add_argument("--reset", action="store_true", help="drop all tables first")
    args = parser.parse_args()

    setup_logging()
    asyncio.run(main(args.reset))
