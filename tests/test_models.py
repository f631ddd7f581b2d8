"""
Model tests: seat lifecycle rules
"""

import pytest
from uuid import uuid4

from marquee.core.exceptions import InvalidSeatTransitionError
from marquee.models.seat import Seat, SeatAvailability, can_transition


def _seat(availability: SeatAvailability) -> Seat:
    return Seat(
        id=uuid4(),
        screen_id=uuid4(),
        showtime_id=uuid4(),
        label="C7",
        availability=availability,
    )


@pytest.mark.unit
class TestSeatTransitions:

    @pytest.mark.parametrize("from_state,to_state", [
        (SeatAvailability.AVAILABLE, SeatAvailability.SOLD),
        (SeatAvailability.AVAILABLE, SeatAvailability.RESERVED),
        (SeatAvailability.RESERVED, SeatAvailability.SOLD),
        (SeatAvailability.RESERVED, SeatAvailability.AVAILABLE),
    ])
    def test_allowed_transitions(self, from_state, to_state):
        seat = _seat(from_state)
        seat.transition_to(to_state)
        assert seat.availability == to_state

    @pytest.mark.parametrize("to_state", list(SeatAvailability))
    def test_sold_is_terminal(self, to_state):
        seat = _seat(SeatAvailability.SOLD)
        with pytest.raises(InvalidSeatTransitionError) as exc_info:
            seat.transition_to(to_state)

        assert seat.availability == SeatAvailability.SOLD
        assert exc_info.value.status_code == 409
        assert exc_info.value.details["from"] == "sold"

    def test_same_state_is_not_a_transition(self):
        assert not can_transition(SeatAvailability.AVAILABLE, SeatAvailability.AVAILABLE)

    def test_is_available(self):
        assert _seat(SeatAvailability.AVAILABLE).is_available
        assert not _seat(SeatAvailability.RESERVED).is_available
        assert not _seat(SeatAvailability.SOLD).is_available
