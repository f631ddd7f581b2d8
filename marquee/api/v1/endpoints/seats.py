"""
Seat management endpoints
"""

from typing import Any, List
from fastapi import APIRouter, Depends, status

from marquee.api.deps import get_seat_inventory
from marquee.schemas.seat import BulkSeatCreate, SeatResponse
from marquee.services import SeatInventory

router = APIRouter()


@router.post("/bulk", response_model=List[SeatResponse], status_code=status.HTTP_201_CREATED)
async def bulk_create_seats(
    payload: BulkSeatCreate,
    seat_inventory: SeatInventory = Depends(get_seat_inventory)
) -> Any:
    """
    Create seats for showtimes. Seats that already exist are returned unchanged,
    so repeating the request is safe.
    """
    return await seat_inventory.bulk_create(payload.seats)
