"""
Screen and format endpoints
"""

from typing import Any, List
from uuid import UUID
from fastapi import APIRouter, Depends

from marquee.api.deps import get_catalog
from marquee.schemas.catalog import ScreenResponse, FormatResponse
from marquee.services import CatalogService

router = APIRouter()
formats_router = APIRouter()


@router.get("", response_model=List[ScreenResponse])
async def list_screens(
    catalog: CatalogService = Depends(get_catalog)
) -> Any:
    return await catalog.list_screens()


@router.get("/{screen_id}/format", response_model=FormatResponse)
async def get_screen_format(
    screen_id: UUID,
    catalog: CatalogService = Depends(get_catalog)
) -> Any:
    return await catalog.format_for_screen(screen_id)


@formats_router.get("", response_model=List[FormatResponse])
async def list_formats(
    catalog: CatalogService = Depends(get_catalog)
) -> Any:
    """
    Projection formats (Standard, IMAX, ScreenX, Dolby)
    """
    return await catalog.list_formats()
