"""
Reservation coordinator tests
Covers the purchase contract, atomicity on conflict and serialization of
concurrent purchases for one showtime.
"""

import asyncio
import random
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from marquee.core.exceptions import (
    LockAcquisitionError,
    SeatNotFoundError,
    SeatUnavailableError,
    ShowtimeNotFoundError,
    ValidationError,
)
from marquee.models.seat import Seat, SeatAvailability
from marquee.models.ticket import Ticket
from marquee.services.reservation_coordinator import ReservationCoordinator


async def _ticket_count(db_manager) -> int:
    async with db_manager.session() as session:
        return (await session.execute(select(func.count(Ticket.id)))).scalar()


async def _seat_states(db_manager, showtime_id) -> dict:
    async with db_manager.session() as session:
        result = await session.execute(select(Seat).where(Seat.showtime_id == showtime_id))
        return {seat.label: (seat.availability, seat.ticket_id) for seat in result.scalars()}


@pytest.mark.unit
@pytest.mark.asyncio
class TestReserveAndIssue:

    async def test_purchase_claims_every_seat(self, services, db_manager, showtime, seats):
        ticket = await services.coordinator.reserve_and_issue(
            showtime.id, {seats["A1"].id, seats["A2"].id}, "a@x.com", 15.0
        )

        assert ticket.id is not None
        assert ticket.showtime_id == showtime.id
        assert ticket.email == "a@x.com"
        assert ticket.price == Decimal("15.0")
        assert sorted(ticket.seat_ids) == sorted([seats["A1"].id, seats["A2"].id])
        assert all(seat.availability == SeatAvailability.SOLD for seat in ticket.seats)

        states = await _seat_states(db_manager, showtime.id)
        assert states["A1"] == (SeatAvailability.SOLD, ticket.id)
        assert states["A2"] == (SeatAvailability.SOLD, ticket.id)
        assert states["A3"] == (SeatAvailability.AVAILABLE, None)

    async def test_sold_seat_cannot_be_bought_again(self, services, db_manager, showtime, seats):
        first = await services.coordinator.reserve_and_issue(
            showtime.id, {seats["A1"].id, seats["A2"].id}, "a@x.com", 15.0
        )

        with pytest.raises(SeatUnavailableError) as exc_info:
            await services.coordinator.reserve_and_issue(showtime.id, {seats["A1"].id}, "b@x.com", 15.0)

        assert exc_info.value.seat_ids == [str(seats["A1"].id)]
        assert await _ticket_count(db_manager) == 1
        states = await _seat_states(db_manager, showtime.id)
        assert states["A1"] == (SeatAvailability.SOLD, first.id)

    async def test_disjoint_concurrent_purchases_both_succeed(self, services, db_manager, showtime, seats):
        first, second = await asyncio.gather(
            services.coordinator.reserve_and_issue(showtime.id, {seats["A1"].id}, "a@x.com", 15.0),
            services.coordinator.reserve_and_issue(showtime.id, {seats["A2"].id}, "b@x.com", 15.0),
        )

        assert first.seat_ids == [seats["A1"].id]
        assert second.seat_ids == [seats["A2"].id]
        assert await _ticket_count(db_manager) == 2

    async def test_empty_seat_set_rejected(self, services, db_manager, showtime, seats):
        with pytest.raises(ValidationError) as exc_info:
            await services.coordinator.reserve_and_issue(showtime.id, set(), "a@x.com", 15.0)

        assert exc_info.value.details["field"] == "seat_ids"
        assert await _ticket_count(db_manager) == 0

    async def test_conflict_leaves_every_seat_unchanged(self, services, db_manager, showtime, seats):
        await services.coordinator.reserve_and_issue(showtime.id, {seats["A2"].id}, "a@x.com", 15.0)
        before = await _seat_states(db_manager, showtime.id)

        with pytest.raises(SeatUnavailableError) as exc_info:
            await services.coordinator.reserve_and_issue(
                showtime.id, {seats["A1"].id, seats["A2"].id, seats["A3"].id}, "b@x.com", 15.0
            )

        assert exc_info.value.seat_ids == [str(seats["A2"].id)]
        assert await _seat_states(db_manager, showtime.id) == before
        assert await _ticket_count(db_manager) == 1

    async def test_unknown_showtime(self, services, seats):
        with pytest.raises(ShowtimeNotFoundError):
            await services.coordinator.reserve_and_issue(uuid4(), {seats["A1"].id}, "a@x.com", 15.0)

    async def test_unknown_seat(self, services, db_manager, showtime, seats):
        missing = uuid4()
        with pytest.raises(SeatNotFoundError) as exc_info:
            await services.coordinator.reserve_and_issue(
                showtime.id, {seats["A1"].id, missing}, "a@x.com", 15.0
            )

        assert exc_info.value.details["seat_ids"] == [str(missing)]
        assert (await _seat_states(db_manager, showtime.id))["A1"][0] == SeatAvailability.AVAILABLE

    async def test_seat_of_another_showtime(self, services, db_manager, cinema, make_showtime, showtime, seats):
        other = await make_showtime(price=Decimal("12.00"))
        [foreign] = await services.seat_inventory.bulk_create([
            {"screen_id": cinema.screen.id, "showtime_id": other.id, "label": "A1"}
        ])

        with pytest.raises(SeatNotFoundError):
            await services.coordinator.reserve_and_issue(
                showtime.id, {seats["A1"].id, foreign.id}, "a@x.com", 15.0
            )

        assert await _ticket_count(db_manager) == 0
        assert (await _seat_states(db_manager, other.id))["A1"][0] == SeatAvailability.AVAILABLE

    @pytest.mark.parametrize("price", [0, -5, "abc", "NaN", None])
    async def test_invalid_price(self, services, showtime, seats, price):
        with pytest.raises(ValidationError) as exc_info:
            await services.coordinator.reserve_and_issue(showtime.id, {seats["A1"].id}, "a@x.com", price)
        assert exc_info.value.details["field"] == "price"

    @pytest.mark.parametrize("purchaser", ["", "   ", None])
    async def test_purchaser_required(self, services, showtime, seats, purchaser):
        with pytest.raises(ValidationError) as exc_info:
            await services.coordinator.reserve_and_issue(showtime.id, {seats["A1"].id}, purchaser, 15.0)
        assert exc_info.value.details["field"] == "email"

    async def test_too_many_seats(self, db_manager, services, showtime, seats):
        coordinator = ReservationCoordinator(db_manager, services.ticket_issuer, max_seats=2)
        with pytest.raises(ValidationError):
            await coordinator.reserve_and_issue(
                showtime.id, [seats[label].id for label in ("A1", "A2", "A3")], "a@x.com", 15.0
            )

    async def test_malformed_seat_id(self, services, showtime):
        with pytest.raises(ValidationError):
            await services.coordinator.reserve_and_issue(showtime.id, ["not-a-uuid"], "a@x.com", 15.0)

    async def test_outcomes_are_recorded(self, services, showtime, seats):
        await services.coordinator.reserve_and_issue(showtime.id, {seats["A1"].id}, "a@x.com", 15.0)
        with pytest.raises(SeatUnavailableError):
            await services.coordinator.reserve_and_issue(showtime.id, {seats["A1"].id}, "b@x.com", 15.0)
        with pytest.raises(ValidationError):
            await services.coordinator.reserve_and_issue(showtime.id, [], "b@x.com", 15.0)

        metrics = await services.metrics.get_metrics()
        assert metrics["total_reservations"] == 3
        assert metrics["successful_reservations"] == 1
        assert metrics["unavailable_reservations"] == 1
        assert metrics["failed_reservations"] == 1
        assert metrics["seats_sold"] == 1


@pytest.mark.concurrency
@pytest.mark.asyncio
class TestConcurrentPurchases:

    async def test_one_winner_per_seat(self, services, db_manager, showtime, seats):
        seat_id = seats["B3"].id

        results = await asyncio.gather(
            *[
                services.coordinator.reserve_and_issue(showtime.id, {seat_id}, f"user{n}@x.com", 15.0)
                for n in range(10)
            ],
            return_exceptions=True
        )

        tickets = [r for r in results if isinstance(r, Ticket)]
        conflicts = [r for r in results if isinstance(r, SeatUnavailableError)]
        assert len(tickets) == 1
        assert len(conflicts) == 9
        assert await _ticket_count(db_manager) == 1

    async def test_overlapping_requests_produce_disjoint_tickets(self, services, db_manager, showtime, seats):
        rng = random.Random(7)
        labels = sorted(seats)
        requests = [rng.sample(labels, rng.randint(1, 4)) for _ in range(20)]

        results = await asyncio.gather(
            *[
                services.coordinator.reserve_and_issue(
                    showtime.id, [seats[label].id for label in request], f"user{n}@x.com", 15.0
                )
                for n, request in enumerate(requests)
            ],
            return_exceptions=True
        )

        tickets = [r for r in results if isinstance(r, Ticket)]
        assert tickets
        assert all(isinstance(r, (Ticket, SeatUnavailableError)) for r in results)

        # Every sold seat belongs to exactly one ticket, and each ticket got all it asked for
        claimed = [seat_id for ticket in tickets for seat_id in ticket.seat_ids]
        assert len(claimed) == len(set(claimed))
        for ticket, request in ((r, q) for r, q in zip(results, requests) if isinstance(r, Ticket)):
            assert set(ticket.seat_ids) == {seats[label].id for label in request}

        states = await _seat_states(db_manager, showtime.id)
        sold = {label for label, (availability, _) in states.items() if availability == SeatAvailability.SOLD}
        assert {seats[label].id for label in sold} == set(claimed)
        assert await _ticket_count(db_manager) == len(tickets)

    async def test_lock_is_dropped_after_purchases(self, services, showtime, seats):
        await asyncio.gather(
            services.coordinator.reserve_and_issue(showtime.id, {seats["A1"].id}, "a@x.com", 15.0),
            services.coordinator.reserve_and_issue(showtime.id, {seats["A1"].id}, "b@x.com", 15.0),
            return_exceptions=True
        )
        assert len(services.coordinator.locks) == 0

    async def test_lock_timeout(self, db_manager, services, showtime, seats):
        coordinator = ReservationCoordinator(
            db_manager,
            services.ticket_issuer,
            lock_registry=services.coordinator.locks,
            lock_timeout=0.05,
        )
        await services.coordinator.locks.acquire(showtime.id)
        try:
            with pytest.raises(LockAcquisitionError):
                await coordinator.reserve_and_issue(showtime.id, {seats["A1"].id}, "a@x.com", 15.0)
        finally:
            services.coordinator.locks.release(showtime.id)

        assert len(services.coordinator.locks) == 0
        assert await _ticket_count(db_manager) == 0

    async def test_cancelled_while_waiting_changes_nothing(self, services, db_manager, showtime, seats):
        locks = services.coordinator.locks
        await locks.acquire(showtime.id)

        purchase = asyncio.create_task(
            services.coordinator.reserve_and_issue(showtime.id, {seats["A1"].id}, "a@x.com", 15.0)
        )
        # Wait until the purchase is queued behind the held lock
        while locks.users(showtime.id) < 2:
            await asyncio.sleep(0.01)

        purchase.cancel()
        with pytest.raises(asyncio.CancelledError):
            await purchase
        locks.release(showtime.id)

        assert len(locks) == 0
        assert await _ticket_count(db_manager) == 0
        assert (await _seat_states(db_manager, showtime.id))["A1"] == (SeatAvailability.AVAILABLE, None)

    async def test_cancelled_inside_critical_section_still_completes(
        self, services, db_manager, showtime, seats, monkeypatch
    ):
        entered = asyncio.Event()
        issue = services.ticket_issuer.issue

        async def slow_issue(*args, **kwargs):
            entered.set()
            await asyncio.sleep(0.1)
            return await issue(*args, **kwargs)

        monkeypatch.setattr(services.ticket_issuer, "issue", slow_issue)

        purchase = asyncio.create_task(
            services.coordinator.reserve_and_issue(
                showtime.id, {seats["A1"].id, seats["A2"].id}, "a@x.com", 15.0
            )
        )
        await entered.wait()
        purchase.cancel()
        with pytest.raises(asyncio.CancelledError):
            await purchase

        # The claim keeps running, frees the lock and records its outcome once committed
        for _ in range(200):
            if (await services.metrics.get_metrics())["total_reservations"] == 1:
                break
            await asyncio.sleep(0.01)

        assert len(services.coordinator.locks) == 0
        assert await _ticket_count(db_manager) == 1
        states = await _seat_states(db_manager, showtime.id)
        assert states["A1"][0] == SeatAvailability.SOLD
        assert states["A2"][0] == SeatAvailability.SOLD
        assert states["A1"][1] == states["A2"][1]

        # Counted as the sale that was committed, not as a failure
        metrics = await services.metrics.get_metrics()
        assert metrics["total_reservations"] == 1
        assert metrics["successful_reservations"] == 1
        assert metrics["failed_reservations"] == 0
        assert metrics["seats_sold"] == 2
        assert metrics["concurrency"]["current_concurrent_reservations"] == 0

    async def test_abandoned_claim_that_conflicts_counts_as_unavailable(
        self, services, db_manager, showtime, seats, monkeypatch
    ):
        await services.coordinator.reserve_and_issue(showtime.id, {seats["A1"].id}, "a@x.com", 15.0)

        entered = asyncio.Event()
        execute_claim = services.coordinator._claim

        async def slow_claim(*args, **kwargs):
            entered.set()
            await asyncio.sleep(0.05)
            return await execute_claim(*args, **kwargs)

        monkeypatch.setattr(services.coordinator, "_claim", slow_claim)

        purchase = asyncio.create_task(
            services.coordinator.reserve_and_issue(showtime.id, {seats["A1"].id}, "b@x.com", 15.0)
        )
        await entered.wait()
        purchase.cancel()
        with pytest.raises(asyncio.CancelledError):
            await purchase

        for _ in range(200):
            if (await services.metrics.get_metrics())["total_reservations"] == 2:
                break
            await asyncio.sleep(0.01)

        metrics = await services.metrics.get_metrics()
        assert metrics["unavailable_reservations"] == 1
        assert metrics["failed_reservations"] == 0
        assert metrics["seats_sold"] == 1
        assert await _ticket_count(db_manager) == 1
