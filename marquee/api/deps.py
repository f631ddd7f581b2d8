"""
Request dependencies: resolve the services wired onto the application at startup
"""

from fastapi import Request

from marquee.core.database import DatabaseManager
from marquee.core.metrics import MetricsCollector
from marquee.services import (
    Services,
    CatalogService,
    SeatInventory,
    TicketIssuer,
    ReservationCoordinator,
)


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_db_manager(request: Request) -> DatabaseManager:
    return get_services(request).db_manager


def get_metrics(request: Request) -> MetricsCollector:
    return get_services(request).metrics


def get_catalog(request: Request) -> CatalogService:
    return get_services(request).catalog


def get_seat_inventory(request: Request) -> SeatInventory:
    return get_services(request).seat_inventory


def get_ticket_issuer(request: Request) -> TicketIssuer:
    return get_services(request).ticket_issuer


def get_coordinator(request: Request) -> ReservationCoordinator:
    return get_services(request).coordinator
