"""
Reservation coordinator: serializes ticket purchases per showtime.

A purchase (reserve_and_issue) runs its check-then-claim sequence under an
exclusive lock scoped to the showtime and inside one database transaction:

1. wait for the showtime lock (the caller may still be cancelled here)
2. re-read the requested seats, locking their rows where the database supports it
3. reject the whole request if any seat is missing, foreign or not available
4. issue the ticket and mark every seat sold, then commit

Steps 2-4 run in their own task shielded from caller cancellation, so a seat
map is never left half-claimed. The lock is released when that task finishes,
whatever the outcome.

Purchases for different showtimes never contend. The lock is in-process; one
deployment instance is assumed.
"""

import asyncio
import functools
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Optional, Set, Tuple
from uuid import UUID
import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from marquee.config import settings
from marquee.core.database import DatabaseManager
from marquee.core.exceptions import (
    LockAcquisitionError,
    SeatNotFoundError,
    SeatUnavailableError,
    ShowtimeNotFoundError,
    StorageError,
    ValidationError,
)
from marquee.core.metrics import MetricsCollector, ReservationTracker
from marquee.models.seat import Seat
from marquee.models.showtime import Showtime
from marquee.models.ticket import Ticket
from marquee.services.catalog_service import CatalogService
from marquee.services.ticket_issuer import TicketIssuer

logger = logging.getLogger(__name__)


class ShowtimeLockRegistry:
    """
    One asyncio.Lock per showtime, created on demand and dropped once nobody
    holds or waits for it.
    """

    def __init__(self):
        self._locks: Dict[UUID, asyncio.Lock] = {}
        self._users: Dict[UUID, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def is_locked(self, showtime_id: UUID) -> bool:
        lock = self._locks.get(showtime_id)
        return lock is not None and lock.locked()

    def users(self, showtime_id: UUID) -> int:
        """Tasks holding or waiting for the showtime lock"""
        return self._users.get(showtime_id, 0)

    async def acquire(self, showtime_id: UUID, timeout: Optional[float] = None):
        lock = self._locks.get(showtime_id)
        if lock is None:
            lock = self._locks[showtime_id] = asyncio.Lock()
        self._users[showtime_id] = self._users.get(showtime_id, 0) + 1

        try:
            if timeout is None:
                await lock.acquire()
            else:
                await asyncio.wait_for(lock.acquire(), timeout)
        except asyncio.TimeoutError:
            self._forget(showtime_id)
            logger.warning(f"Timed out after {timeout}s waiting for showtime {showtime_id}")
            raise LockAcquisitionError(f"showtime:{showtime_id}") from None
        except BaseException:
            self._forget(showtime_id)
            raise

    def release(self, showtime_id: UUID):
        self._locks[showtime_id].release()
        self._forget(showtime_id)

    def _forget(self, showtime_id: UUID):
        remaining = self._users[showtime_id] - 1
        if remaining:
            self._users[showtime_id] = remaining
        else:
            del self._users[showtime_id]
            del self._locks[showtime_id]


class ReservationCoordinator:
    """
    Entry point for ticket purchases
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        ticket_issuer: TicketIssuer,
        catalog: CatalogService = None,
        lock_registry: ShowtimeLockRegistry = None,
        metrics: MetricsCollector = None,
        lock_timeout: Optional[float] = None,
        max_seats: Optional[int] = None,
    ):
        self.db_manager = db_manager
        self.ticket_issuer = ticket_issuer
        self.catalog = catalog or CatalogService(db_manager)
        self.locks = lock_registry or ShowtimeLockRegistry()
        self.metrics = metrics or MetricsCollector()
        self.lock_timeout = settings.RESERVATION_LOCK_TIMEOUT_SECONDS if lock_timeout is None else lock_timeout
        self.max_seats = max_seats or settings.MAX_SEATS_PER_TICKET

    async def reserve_and_issue(
        self,
        showtime_id: UUID,
        seat_ids: Iterable[UUID],
        purchaser: str,
        price,
    ) -> Ticket:
        """
        Claim every seat in seat_ids for purchaser and return the issued ticket.

        Raises ValidationError, ShowtimeNotFoundError, SeatNotFoundError,
        SeatUnavailableError, LockAcquisitionError or StorageError; on any of
        them no seat has changed and no ticket exists. Never retries.
        """
        async with self.metrics.track_reservation() as tracker:
            requested, purchaser, price = self._validate_request(seat_ids, purchaser, price)

            if not await self.catalog.showtime_exists(showtime_id):
                raise ShowtimeNotFoundError(showtime_id)

            await self.locks.acquire(showtime_id, timeout=self.lock_timeout)

            current = asyncio.current_task()
            if current is not None and current.cancelling():
                # Cancelled right as the lock was granted: give it back untouched
                self.locks.release(showtime_id)
                raise asyncio.CancelledError()

            claim = asyncio.ensure_future(self._claim(showtime_id, requested, purchaser, price))
            claim.add_done_callback(lambda _: self.locks.release(showtime_id))

            try:
                ticket = await asyncio.shield(claim)
            except asyncio.CancelledError:
                if not claim.done():
                    logger.warning(
                        f"Purchase for showtime {showtime_id} abandoned by caller mid-claim; completing it"
                    )
                    # The claim still commits, so its outcome is counted when it ends
                    tracker.detached = True
                    claim.add_done_callback(
                        functools.partial(self._record_abandoned_claim, tracker, len(requested))
                    )
                raise

            tracker.seats_sold = len(requested)
            logger.info(
                f"Ticket {ticket.id} issued: showtime={showtime_id} seats={len(requested)} purchaser={purchaser}"
            )
            return ticket

    async def _claim(
        self,
        showtime_id: UUID,
        seat_ids: Set[UUID],
        purchaser: str,
        price: Decimal
    ) -> Ticket:
        """
        The critical section. Caller holds the showtime lock.
        """
        try:
            async with self.db_manager.atomic_transaction() as session:
                showtime = await session.get(Showtime, showtime_id)
                if showtime is None:
                    raise ShowtimeNotFoundError(showtime_id)

                result = await session.execute(
                    select(Seat)
                    .where(Seat.id.in_(list(seat_ids)))
                    .order_by(Seat.label)
                    .with_for_update()
                )
                seats = list(result.scalars().all())

                belonging = {
                    seat.id for seat in seats
                    if seat.showtime_id == showtime.id and seat.screen_id == showtime.screen_id
                }
                missing = seat_ids - belonging
                if missing:
                    raise SeatNotFoundError(missing, showtime_id)

                unavailable = [seat.id for seat in seats if not seat.is_available]
                if unavailable:
                    logger.warning(
                        f"Seats {', '.join(str(s) for s in unavailable)} of showtime {showtime_id} already claimed"
                    )
                    raise SeatUnavailableError(unavailable)

                return await self.ticket_issuer.issue(session, showtime, seats, purchaser, price)
        except SQLAlchemyError as e:
            logger.error(f"Reservation for showtime {showtime_id} failed in storage: {e}")
            raise StorageError("reserve_and_issue") from e

    def _record_abandoned_claim(self, tracker: ReservationTracker, seats: int, claim: asyncio.Future):
        if claim.cancelled():
            outcome = "failed"
        elif isinstance(claim.exception(), SeatUnavailableError):
            outcome = "unavailable"
        elif claim.exception() is not None:
            error = claim.exception()
            logger.error(f"Abandoned purchase failed: {type(error).__name__}: {error}")
            outcome = "failed"
        else:
            outcome = "success"
            logger.info(f"Abandoned purchase completed: ticket {claim.result().id}")

        self.metrics.record_reservation(outcome, tracker.elapsed(), seats if outcome == "success" else 0)

    def _validate_request(self, seat_ids, purchaser, price) -> Tuple[Set[UUID], str, Decimal]:
        if seat_ids is None or isinstance(seat_ids, (str, bytes)):
            raise ValidationError("seat_ids must be a collection of seat ids", field="seat_ids")

        requested: Set[UUID] = set()
        for seat_id in seat_ids:
            try:
                requested.add(seat_id if isinstance(seat_id, UUID) else UUID(str(seat_id)))
            except ValueError:
                raise ValidationError(f"Invalid seat id: {seat_id}", field="seat_ids") from None

        if not requested:
            raise ValidationError("At least one seat must be selected", field="seat_ids")
        if len(requested) > self.max_seats:
            raise ValidationError(
                f"A ticket can hold at most {self.max_seats} seats",
                field="seat_ids"
            )

        if not isinstance(purchaser, str) or not purchaser.strip():
            raise ValidationError("Purchaser is required", field="email")

        try:
            price = Decimal(str(price))
        except (InvalidOperation, ValueError):
            raise ValidationError(f"Invalid price: {price}", field="price") from None
        if not price.is_finite() or price <= 0:
            raise ValidationError("Price must be positive", field="price")

        return requested, purchaser.strip(), price

