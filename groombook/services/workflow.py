"""
Completion & Feedback Workflow
Moves a booking through reserved -> in_progress -> completed and
records the optional feedback afterwards.
"""
import logging
from dataclasses import dataclass
from groombook.config import settings
from groombook.context import ActorContext
from groombook.errors import ConstraintViolation, InvalidTransitionError, ValidationError
from groombook.models import Booking, BookingFeedback, BookingStatus, HistoricalBooking
from groombook.services.history import take_snapshot
from groombook.services.lifecycle import ensure_transition, load_booking
from groombook.services.notifications import BookingEvent, Notifier, NullNotifier
from groombook.services.selection import SelectionView
from groombook.storage import Storage

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


@dataclass(frozen=True)
class CompletionResult:
    booking: Booking
    frozen_selections: list[SelectionView]


class BookingWorkflow:
    """Status transitions after a booking has been made"""

    def __init__(self, storage: Storage, notifier: Notifier | None = None,
                 allow_walk_in_completion: bool | None = None):
        self.storage = storage
        self.notifier = notifier or NullNotifier()
        if allow_walk_in_completion is None:
            allow_walk_in_completion = settings.allow_walk_in_completion
        self.allow_walk_in_completion = allow_walk_in_completion

    def start_service(self, ctx: ActorContext, booking_id: int) -> Booking:
        """reserved -> in_progress"""
        booking = load_booking(self.storage, ctx, booking_id)
        ensure_transition(booking.id, booking.status, BookingStatus.IN_PROGRESS)
        with self.storage.atomic():
            booking = self.storage.update(Booking, booking.id, {"status": BookingStatus.IN_PROGRESS.value})
        logger.info("Booking %s started by %s", booking_id, ctx.actor)
        self.notifier.send(booking_id, BookingEvent.STARTED)
        return booking

    def complete_booking(self, ctx: ActorContext, booking_id: int) -> CompletionResult:
        """
        Mark a booking completed and freeze its selected services.

        The status change and the snapshot are committed together.
        Feedback is not needed to complete.
        """
        booking = load_booking(self.storage, ctx, booking_id)
        ensure_transition(booking.id, booking.status, BookingStatus.COMPLETED,
                          allow_walk_in=self.allow_walk_in_completion)

        with self.storage.atomic():
            _, frozen = take_snapshot(self.storage, booking, BookingStatus.COMPLETED.value)
            booking = self.storage.update(Booking, booking.id, {"status": BookingStatus.COMPLETED.value})

        logger.info("Booking %s completed by %s with %d service(s)", booking_id, ctx.actor, len(frozen))
        self.notifier.send(booking_id, BookingEvent.COMPLETED)
        return CompletionResult(booking=booking, frozen_selections=frozen)

    def submit_feedback(self, ctx: ActorContext, booking_id: int, rating: int | None = None,
                        comment: str | None = None) -> None:
        """
        Record feedback for a completed booking, once.

        Both fields are optional; an empty submission is the same as
        skipping, but still uses up the single submission.
        """
        booking = load_booking(self.storage, ctx, booking_id)
        if booking.status != BookingStatus.COMPLETED.value:
            raise InvalidTransitionError(
                f"Booking {booking_id} is {booking.status}; feedback needs a completed booking"
            )
        if booking.feedback is not None:
            raise InvalidTransitionError(f"Feedback for booking {booking_id} was already recorded")
        if rating is not None and not MIN_RATING <= rating <= MAX_RATING:
            raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")

        comment = (comment or "").strip() or None
        try:
            with self.storage.atomic():
                self._record_feedback(booking, rating, comment)
        except ConstraintViolation as e:
            raise InvalidTransitionError(f"Feedback for booking {booking_id} was already recorded") from e

        logger.info("Feedback recorded for booking %s (rating=%s)", booking_id, rating)

    def _record_feedback(self, booking: Booking, rating: int | None, comment: str | None) -> None:
        self.storage.insert(BookingFeedback, {
            "booking_id": booking.id,
            "rating": rating,
            "comment": comment,
        })
        snapshot = self.storage.first(
            HistoricalBooking,
            original_booking_id=booking.id,
            status=BookingStatus.COMPLETED.value,
        )
        if snapshot is not None:
            self.storage.update(HistoricalBooking, snapshot.id, {"feedback": {"rating": rating, "comment": comment}})
