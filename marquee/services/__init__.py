"""
Service wiring
"""

from dataclasses import dataclass

from marquee.core.database import DatabaseManager
from marquee.core.metrics import MetricsCollector
from marquee.services.catalog_service import CatalogService
from marquee.services.seat_inventory import SeatInventory
from marquee.services.ticket_issuer import TicketIssuer
from marquee.services.reservation_coordinator import ReservationCoordinator, ShowtimeLockRegistry


@dataclass
class Services:
    db_manager: DatabaseManager
    metrics: MetricsCollector
    catalog: CatalogService
    seat_inventory: SeatInventory
    ticket_issuer: TicketIssuer
    coordinator: ReservationCoordinator


def build_services(db_manager: DatabaseManager, metrics: MetricsCollector = None) -> Services:
    """
    Wire every component to the same database manager
    """
    metrics = metrics or MetricsCollector()
    catalog = CatalogService(db_manager)
    seat_inventory = SeatInventory(db_manager)
    ticket_issuer = TicketIssuer(db_manager, seat_inventory)
    coordinator = ReservationCoordinator(
        db_manager,
        ticket_issuer,
        catalog=catalog,
        lock_registry=ShowtimeLockRegistry(),
        metrics=metrics,
    )
    return Services(
        db_manager=db_manager,
        metrics=metrics,
        catalog=catalog,
        seat_inventory=seat_inventory,
        ticket_issuer=ticket_issuer,
        coordinator=coordinator,
    )


__all__ = [
    "Services",
    "build_services",
    "CatalogService",
    "SeatInventory",
    "TicketIssuer",
    "ReservationCoordinator",
    "ShowtimeLockRegistry",
]
