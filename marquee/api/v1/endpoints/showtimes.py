"""
Showtime endpoints: details, screen and seat map
"""

from typing import Any, List
from uuid import UUID
from fastapi import APIRouter, Depends

from marquee.api.deps import get_catalog, get_seat_inventory
from marquee.schemas.catalog import ShowtimeResponse, ScreenResponse
from marquee.schemas.seat import SeatMapResponse, SeatResponse
from marquee.services import CatalogService, SeatInventory
from marquee.services.seat_inventory import summarize

router = APIRouter()


@router.get("", response_model=List[ShowtimeResponse])
async def list_showtimes(
    catalog: CatalogService = Depends(get_catalog)
) -> Any:
    """
    Every scheduled showtime, earliest first
    """
    return await catalog.list_showtimes()


@router.get("/{showtime_id}", response_model=ShowtimeResponse)
async def get_showtime(
    showtime_id: UUID,
    catalog: CatalogService = Depends(get_catalog)
) -> Any:
    """
    Get showtime details with its theater, movie and screen
    """
    return await catalog.get_showtime(showtime_id)


@router.get("/{showtime_id}/screen", response_model=ScreenResponse)
async def get_showtime_screen(
    showtime_id: UUID,
    catalog: CatalogService = Depends(get_catalog)
) -> Any:
    return await catalog.screen_for_showtime(showtime_id)


@router.get("/{showtime_id}/seats", response_model=SeatMapResponse)
async def get_seat_map(
    showtime_id: UUID,
    seat_inventory: SeatInventory = Depends(get_seat_inventory)
) -> Any:
    """
    Current seat map of a showtime. Never waits on purchases in progress, so
    a seat shown as available may be sold by the time a purchase is submitted.
    """
    seats = await seat_inventory.list_seats(showtime_id)
    return SeatMapResponse(
        showtime_id=showtime_id,
        summary=summarize(seats),
        seats=[SeatResponse.model_validate(seat) for seat in seats]
    )
