"""
Booking status transitions.

    reserved -> in_progress -> completed
    reserved | in_progress -> cancelled

completed and cancelled are terminal. reserved -> completed is only
allowed for walk-in completion, when the policy switch is on.
"""
from groombook.errors import InvalidTransitionError, NotFoundError
from groombook.models import Booking, BookingStatus

TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.RESERVED: frozenset({BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED}),
    BookingStatus.IN_PROGRESS: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)


def can_transition(current: str, target: BookingStatus, allow_walk_in: bool = False) -> bool:
    current = BookingStatus(current)
    if allow_walk_in and current == BookingStatus.RESERVED and target == BookingStatus.COMPLETED:
        return True
    return target in TRANSITIONS[current]


def ensure_transition(booking_id: int, current: str, target: BookingStatus, allow_walk_in: bool = False) -> None:
    """Raise InvalidTransitionError unless `current -> target` is allowed"""
    if not can_transition(current, target, allow_walk_in):
        allowed = sorted(t.value for t in TRANSITIONS[BookingStatus(current)])
        raise InvalidTransitionError(
            f"Booking {booking_id} cannot go from '{current}' to '{target.value}'"
            f" (allowed: {', '.join(allowed) or 'none'})"
        )


def load_booking(storage, ctx, booking_id: int) -> Booking:
    """Fetch a booking owned by the caller's organization"""
    booking = storage.get(Booking, booking_id)
    if booking is None or booking.organization_id != ctx.organization_id:
        raise NotFoundError(f"Booking {booking_id} not found")
    return booking
