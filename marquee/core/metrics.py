"""
Reservation metrics: in-process collector plus Prometheus series
"""

import time
import logging
from typing import Dict, List
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from prometheus_client import Counter, Histogram, REGISTRY

from marquee.core.exceptions import SeatUnavailableError

logger = logging.getLogger(__name__)


def _counter(name: str, documentation: str, labels: List[str]) -> Counter:
    # Re-importing the module (tests, reloaders) must not register twice
    try:
        return Counter(name, documentation, labels)
    except ValueError:
        return REGISTRY._names_to_collectors[name]


def _histogram(name: str, documentation: str, labels: List[str]) -> Histogram:
    try:
        return Histogram(name, documentation, labels)
    except ValueError:
        return REGISTRY._names_to_collectors[name]


REQUEST_COUNT = _counter("marquee_requests", "Total requests", ["method", "endpoint", "status"])
REQUEST_DURATION = _histogram("marquee_request_duration_seconds", "Request duration", ["method", "endpoint"])
RESERVATION_OUTCOMES = _counter("marquee_reservations", "Reservation attempts by outcome", ["outcome"])
RESERVATION_DURATION = _histogram("marquee_reservation_duration_seconds", "Reservation duration", ["outcome"])


@dataclass
class ReservationMetrics:
    """Reservation system metrics"""
    total_reservations: int = 0
    successful_reservations: int = 0
    unavailable_reservations: int = 0
    failed_reservations: int = 0
    seats_sold: int = 0

    # Concurrency metrics
    concurrent_reservations: int = 0
    max_concurrent_reservations: int = 0

    # Reservation times for percentile calculation
    reservation_times: list = field(default_factory=list)

    def add_reservation_time(self, duration: float):
        self.reservation_times.append(duration)
        if len(self.reservation_times) > 1000:  # Keep only last 1000 for memory
            self.reservation_times = self.reservation_times[-1000:]

    def get_percentiles(self) -> Dict[str, float]:
        if not self.reservation_times:
            return {"p50": 0.0, "p95": 0.0, "p99": 0.0}

        sorted_times = sorted(self.reservation_times)
        length = len(sorted_times)
        return {
            "p50": sorted_times[int(length * 0.5)],
            "p95": sorted_times[min(int(length * 0.95), length - 1)],
            "p99": sorted_times[min(int(length * 0.99), length - 1)],
        }

    def get_success_rate(self) -> float:
        if self.total_reservations == 0:
            return 0.0
        return (self.successful_reservations / self.total_reservations) * 100

    def to_dict(self) -> Dict:
        percentiles = self.get_percentiles()
        return {
            "total_reservations": self.total_reservations,
            "successful_reservations": self.successful_reservations,
            "unavailable_reservations": self.unavailable_reservations,
            "failed_reservations": self.failed_reservations,
            "seats_sold": self.seats_sold,
            "success_rate_percent": self.get_success_rate(),
            "performance": {
                "percentiles_ms": {key: value * 1000 for key, value in percentiles.items()},
            },
            "concurrency": {
                "current_concurrent_reservations": self.concurrent_reservations,
                "max_concurrent_reservations": self.max_concurrent_reservations,
            },
        }


class ReservationTracker:
    """
    Handle yielded by track_reservation; the caller reports seats sold on success.

    A detached tracker is not recorded when the context exits: its outcome
    arrives later through MetricsCollector.record_reservation.
    """

    def __init__(self, start_time: float):
        self.start_time = start_time
        self.seats_sold = 0
        self.detached = False

    def elapsed(self) -> float:
        return time.perf_counter() - self.start_time


class MetricsCollector:
    """
    Metrics collector for the reservation path.
    Updates never await, so they are atomic on the event loop.
    """

    def __init__(self):
        self.metrics = ReservationMetrics()
        self.logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def track_reservation(self):
        """Context manager to track one reserve-and-issue call"""
        tracker = ReservationTracker(time.perf_counter())

        self.metrics.concurrent_reservations += 1
        if self.metrics.concurrent_reservations > self.metrics.max_concurrent_reservations:
            self.metrics.max_concurrent_reservations = self.metrics.concurrent_reservations

        outcome = "success"
        try:
            yield tracker
        except SeatUnavailableError:
            outcome = "unavailable"
            raise
        except BaseException:
            outcome = "failed"
            raise
        finally:
            self.metrics.concurrent_reservations -= 1
            if not tracker.detached:
                self.record_reservation(outcome, tracker.elapsed(), tracker.seats_sold)

    def record_reservation(self, outcome: str, duration: float, seats_sold: int = 0):
        """Count one finished reservation: success, unavailable or failed"""
        self.metrics.total_reservations += 1
        self.metrics.add_reservation_time(duration)
        if outcome == "success":
            self.metrics.successful_reservations += 1
            self.metrics.seats_sold += seats_sold
        elif outcome == "unavailable":
            self.metrics.unavailable_reservations += 1
        else:
            self.metrics.failed_reservations += 1

        RESERVATION_OUTCOMES.labels(outcome=outcome).inc()
        RESERVATION_DURATION.labels(outcome=outcome).observe(duration)

        if duration > 5.0:  # Log slow operations
            self.logger.warning(f"Slow reservation ({outcome}): {duration:.2f}s")

    async def get_metrics(self) -> Dict:
        return self.metrics.to_dict()
