"""
Seat inventory: per-showtime seat records and their availability.

This module is the only writer of Seat.availability.
"""

from collections import Counter
from typing import Dict, Iterable, List, Mapping, Sequence, Union
from uuid import UUID
import logging

import pydantic
from sqlalchemy import select, tuple_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marquee.config import settings
from marquee.core.database import DatabaseManager
from marquee.core.exceptions import (
    ShowtimeNotFoundError,
    StorageError,
    ValidationError,
)
from marquee.models.seat import Seat, SeatAvailability
from marquee.models.showtime import Showtime
from marquee.models.ticket import Ticket
from marquee.schemas.seat import SeatSpec

logger = logging.getLogger(__name__)

SeatSpecInput = Union[SeatSpec, Mapping]


class SeatInventory:
    """
    Reads never take the reservation lock; bulk creation is idempotent on
    (screen, showtime, label).
    """

    def __init__(self, db_manager: DatabaseManager, max_bulk_size: int = None):
        self.db_manager = db_manager
        self.max_bulk_size = max_bulk_size or settings.MAX_SEATS_PER_BULK_CREATE

    async def list_seats(self, showtime_id: UUID) -> List[Seat]:
        """
        Current snapshot of a showtime's seats, ordered by label
        """
        try:
            async with self.db_manager.session() as session:
                if await session.get(Showtime, showtime_id) is None:
                    raise ShowtimeNotFoundError(showtime_id)

                result = await session.execute(
                    select(Seat).where(Seat.showtime_id == showtime_id).order_by(Seat.label)
                )
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Failed to list seats for showtime {showtime_id}: {e}")
            raise StorageError("list_seats") from e

    async def availability_summary(self, showtime_id: UUID) -> Dict[str, int]:
        seats = await self.list_seats(showtime_id)
        return summarize(seats)

    async def bulk_create(self, seat_specs: Sequence[SeatSpecInput]) -> List[Seat]:
        """
        Create the seats described by seat_specs, skipping any that already exist.

        Returns every seat matching the specs, pre-existing ones included, so
        calling this twice with the same input returns the same seat set.
        """
        specs = self._validate_specs(seat_specs)

        try:
            return await self._insert_missing(specs)
        except IntegrityError:
            # Another caller inserted some of the same seats between our read
            # and our insert; the second pass finds them and skips them.
            logger.info("Concurrent seat creation detected, retrying bulk create once")
            try:
                return await self._insert_missing(specs)
            except SQLAlchemyError as e:
                logger.error(f"Bulk seat creation failed on retry: {e}")
                raise StorageError("bulk_create") from e
        except SQLAlchemyError as e:
            logger.error(f"Bulk seat creation failed: {e}")
            raise StorageError("bulk_create") from e

    def mark_sold(self, seats: Iterable[Seat], ticket: Ticket):
        """
        Claim seats for a ticket. Only called by the ticket issuer inside the
        reservation critical section, on seats loaded by its session.
        """
        for seat in seats:
            seat.transition_to(SeatAvailability.SOLD)
            seat.ticket_id = ticket.id

    def _validate_specs(self, seat_specs: Sequence[SeatSpecInput]) -> List[SeatSpec]:
        if seat_specs is None or isinstance(seat_specs, (str, bytes, Mapping)):
            raise ValidationError("Seat specs must be a list", field="seats")

        seat_specs = list(seat_specs)
        if not seat_specs:
            raise ValidationError("At least one seat spec is required", field="seats")
        if len(seat_specs) > self.max_bulk_size:
            raise ValidationError(
                f"Cannot create more than {self.max_bulk_size} seats at once",
                field="seats"
            )

        specs: Dict[tuple, SeatSpec] = {}
        for index, raw in enumerate(seat_specs):
            try:
                spec = raw if isinstance(raw, SeatSpec) else SeatSpec.model_validate(raw)
            except pydantic.ValidationError as e:
                first = e.errors()[0]
                location = ".".join(str(part) for part in first["loc"])
                raise ValidationError(
                    f"Invalid seat spec at index {index}: {first['msg']}",
                    field=f"seats[{index}].{location}"
                ) from e
            # Collapse duplicates inside one request
            specs.setdefault(spec.key, spec)

        return list(specs.values())

    async def _insert_missing(self, specs: List[SeatSpec]) -> List[Seat]:
        async with self.db_manager.atomic_transaction() as session:
            await self._check_showtimes(session, specs)

            keys = [spec.key for spec in specs]
            existing = await self._seats_by_keys(session, keys)
            existing_keys = {(s.screen_id, s.showtime_id, s.label) for s in existing}

            created = [
                Seat(
                    screen_id=spec.screen_id,
                    showtime_id=spec.showtime_id,
                    label=spec.label,
                    accessible=spec.accessible,
                    availability=SeatAvailability.AVAILABLE,
                    ticket_id=None,
                )
                for spec in specs
                if spec.key not in existing_keys
            ]
            session.add_all(created)
            await session.flush()

            if created:
                logger.info(f"Created {len(created)} seats, skipped {len(existing)} existing")

            return sorted(existing + created, key=lambda s: (str(s.showtime_id), s.label))

    async def _check_showtimes(self, session: AsyncSession, specs: List[SeatSpec]):
        showtime_ids = {spec.showtime_id for spec in specs}
        result = await session.execute(
            select(Showtime.id, Showtime.screen_id).where(Showtime.id.in_(list(showtime_ids)))
        )
        screens_by_showtime = {row.id: row.screen_id for row in result}

        missing = showtime_ids - set(screens_by_showtime)
        if missing:
            raise ShowtimeNotFoundError(sorted(str(m) for m in missing)[0])

        for spec in specs:
            if screens_by_showtime[spec.showtime_id] != spec.screen_id:
                raise ValidationError(
                    f"Seat {spec.label}: screen {spec.screen_id} is not the screen of showtime {spec.showtime_id}",
                    field="screen_id"
                )

    async def _seats_by_keys(self, session: AsyncSession, keys: List[tuple]) -> List[Seat]:
        found: List[Seat] = []
        # Stay well under driver bind-parameter limits
        for start in range(0, len(keys), 300):
            chunk = keys[start:start + 300]
            result = await session.execute(
                select(Seat).where(tuple_(Seat.screen_id, Seat.showtime_id, Seat.label).in_(chunk))
            )
            found.extend(result.scalars().all())
        return found


def summarize(seats: Iterable[Seat]) -> Dict[str, int]:
    counts = Counter(SeatAvailability(seat.availability).value for seat in seats)
    return {state.value: counts.get(state.value, 0) for state in SeatAvailability}
