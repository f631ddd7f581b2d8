"""
Ticket issuer: persists a ticket for seats already validated and locked
"""

from decimal import Decimal
from typing import List
from uuid import UUID
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from marquee.core.database import DatabaseManager
from marquee.core.exceptions import StorageError, TicketNotFoundError
from marquee.models.seat import Seat
from marquee.models.showtime import Showtime
from marquee.models.ticket import Ticket
from marquee.services.seat_inventory import SeatInventory

logger = logging.getLogger(__name__)


class TicketIssuer:
    """
    issue() runs inside the reservation coordinator's critical section and on
    its session. It does no locking and never commits; the coordinator's
    transaction commits the ticket and the seat claims together.
    """

    def __init__(self, db_manager: DatabaseManager, seat_inventory: SeatInventory):
        self.db_manager = db_manager
        self.seat_inventory = seat_inventory

    async def issue(
        self,
        session: AsyncSession,
        showtime: Showtime,
        seats: List[Seat],
        purchaser: str,
        price: Decimal
    ) -> Ticket:
        # Id assigned up front so seats can point at the ticket before the flush
        ticket = Ticket(
            id=uuid.uuid4(),
            showtime_id=showtime.id,
            email=purchaser,
            price=price,
            seats=[],
        )
        self.seat_inventory.mark_sold(seats, ticket)
        ticket.seats.extend(sorted(seats, key=lambda s: s.label))

        session.add(ticket)
        await session.flush()

        logger.debug(f"Ticket {ticket.id} issued for {len(seats)} seats of showtime {showtime.id}")
        return ticket

    async def get_ticket(self, ticket_id: UUID) -> Ticket:
        try:
            async with self.db_manager.session() as session:
                result = await session.execute(
                    select(Ticket).options(selectinload(Ticket.seats)).where(Ticket.id == ticket_id)
                )
                ticket = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Failed to load ticket {ticket_id}: {e}")
            raise StorageError("get_ticket") from e

        if ticket is None:
            raise TicketNotFoundError(ticket_id)
        return ticket
