"""
Ticket purchase endpoints
"""

from typing import Any
from uuid import UUID
import logging
from fastapi import APIRouter, Depends, status

from marquee.api.deps import get_coordinator, get_ticket_issuer
from marquee.schemas.ticket import TicketCreate, TicketResponse
from marquee.services import ReservationCoordinator, TicketIssuer

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def purchase_ticket(
    payload: TicketCreate,
    coordinator: ReservationCoordinator = Depends(get_coordinator)
) -> Any:
    """
    Buy a ticket for a set of seats of one showtime.

    Either every requested seat is sold to this ticket or nothing changes.
    A 409 SEATS_UNAVAILABLE means another purchase got there first: reload
    the seat map and pick again.
    """
    logger.debug(f"Purchase request for showtime {payload.showtime_id}: {len(payload.seat_ids)} seats")
    return await coordinator.reserve_and_issue(
        payload.showtime_id,
        payload.seat_ids,
        payload.email,
        payload.price
    )


@router.get("/{ticket_id}", response_model=TicketResponse)
async def get_ticket(
    ticket_id: UUID,
    ticket_issuer: TicketIssuer = Depends(get_ticket_issuer)
) -> Any:
    return await ticket_issuer.get_ticket(ticket_id)
