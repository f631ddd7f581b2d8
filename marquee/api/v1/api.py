"""
Main API Router
Aggregates all API endpoints for v1
"""

from fastapi import APIRouter
from marquee.api.v1.endpoints import (
    seats,
    tickets,
    showtimes,
    screens,
    theaters,
    movies,
    health
)

api_router = APIRouter()

api_router.include_router(showtimes.router, prefix="/showtimes", tags=["showtimes"])
api_router.include_router(seats.router, prefix="/seats", tags=["seats"])
api_router.include_router(tickets.router, prefix="/tickets", tags=["tickets"])
api_router.include_router(screens.router, prefix="/screens", tags=["screens"])
api_router.include_router(screens.formats_router, prefix="/formats", tags=["formats"])
api_router.include_router(theaters.router, prefix="/theaters", tags=["theaters"])
api_router.include_router(movies.router, prefix="/movies", tags=["movies"])
api_router.include_router(health.router, prefix="/health", tags=["health"])
