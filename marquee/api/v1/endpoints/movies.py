"""
Movie endpoints
"""

from datetime import date
from typing import Any, List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query

from marquee.api.deps import get_catalog
from marquee.schemas.catalog import MovieResponse, ShowtimeSummary
from marquee.services import CatalogService

router = APIRouter()


@router.get("", response_model=List[MovieResponse])
async def list_movies(
    category: str = Query("all", description="all, now_playing, coming_soon or limited"),
    catalog: CatalogService = Depends(get_catalog)
) -> Any:
    return await catalog.list_movies(category)


@router.get("/{movie_id}/showtimes", response_model=List[ShowtimeSummary])
async def list_movie_showtimes(
    movie_id: UUID,
    on_date: Optional[date] = Query(None, alias="date", description="UTC day, YYYY-MM-DD"),
    catalog: CatalogService = Depends(get_catalog)
) -> Any:
    """
    Showtimes of a movie across all theaters, optionally for one day
    """
    return await catalog.showtimes_by_movie(movie_id, on_date)
