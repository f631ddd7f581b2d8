"""
Theater endpoints
"""

from typing import Any, List
from uuid import UUID
from fastapi import APIRouter, Depends

from marquee.api.deps import get_catalog
from marquee.schemas.catalog import TheaterResponse, ShowtimeSummary
from marquee.services import CatalogService

router = APIRouter()


@router.get("", response_model=List[TheaterResponse])
async def list_theaters(
    catalog: CatalogService = Depends(get_catalog)
) -> Any:
    return await catalog.list_theaters()


@router.get("/{theater_id}/showtimes", response_model=List[ShowtimeSummary])
async def list_theater_showtimes(
    theater_id: UUID,
    catalog: CatalogService = Depends(get_catalog)
) -> Any:
    """
    All showtimes scheduled at a theater, earliest first
    """
    return await catalog.showtimes_by_theater(theater_id)
