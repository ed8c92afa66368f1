"""
Booking Store
Creates, moves and cancels bookings while keeping at most one active
booking on each (date, sub-time-slot).
"""
import logging
from datetime import date
from pydantic import BaseModel, Field
from groombook.context import ActorContext
from groombook.errors import ConstraintViolation, InvalidTransitionError, SlotConflictError, ValidationError
from groombook.models import ACTIVE_STATUSES, Booking, BookingStatus
from groombook.services.history import take_snapshot
from groombook.services.lifecycle import ensure_transition, load_booking
from groombook.services.notifications import BookingEvent, Notifier, NullNotifier
from groombook.services.slot_catalog import SlotCatalog, is_offered_on
from groombook.storage import Storage

logger = logging.getLogger(__name__)


class BookingDetails(BaseModel):
    """Customer and dog details of a new booking"""

    shop_id: int
    customer_name: str = Field(min_length=1, max_length=255)
    contact_number: str = Field(min_length=1, max_length=20)
    dog_name: str = Field(min_length=1, max_length=255)
    dog_breed: str | None = Field(default=None, max_length=255)
    booking_date: date


class BookingStore:
    """Write side of bookings"""

    def __init__(self, storage: Storage, notifier: Notifier | None = None):
        self.storage = storage
        self.catalog = SlotCatalog(storage)
        self.notifier = notifier or NullNotifier()

    def get_booking(self, ctx: ActorContext, booking_id: int) -> Booking:
        return load_booking(self.storage, ctx, booking_id)

    def create_booking(self, ctx: ActorContext, details: BookingDetails,
                       sub_time_slot_id: int | None = None) -> Booking:
        """
        Create a reserved booking, optionally claiming a sub-time-slot.

        Without a slot the booking is unscheduled (walk-in or deferred).
        Raises SlotConflictError if the slot is already held on that date.
        """
        for field in ("customer_name", "contact_number", "dog_name"):
            if not getattr(details, field).strip():
                raise ValidationError(f"{field.replace('_', ' ').capitalize()} is required")
        self.catalog.get_shop(ctx, details.shop_id)

        slot_time = None
        if sub_time_slot_id is not None:
            slot_time = self._resolve_slot(ctx, details.shop_id, sub_time_slot_id, details.booking_date)

        values = {
            "organization_id": ctx.organization_id,
            "shop_id": details.shop_id,
            "customer_name": details.customer_name.strip(),
            "contact_number": details.contact_number.strip(),
            "dog_name": details.dog_name.strip(),
            "dog_breed": details.dog_breed.strip() if details.dog_breed else None,
            "booking_date": details.booking_date,
            "slot_time": slot_time,
            "sub_time_slot_id": sub_time_slot_id,
            "status": BookingStatus.RESERVED.value,
        }
        try:
            with self.storage.atomic():
                self._ensure_slot_free(sub_time_slot_id, details.booking_date)
                booking = self.storage.insert(Booking, values)
        except ConstraintViolation as e:
            if sub_time_slot_id is None:
                raise
            # Lost the race between the occupancy read and the commit
            raise _conflict(sub_time_slot_id, details.booking_date) from e

        logger.info("Booking %s created by %s (slot %s on %s)",
                    booking.id, ctx.actor, sub_time_slot_id, details.booking_date)
        self.notifier.send(booking.id, BookingEvent.CREATED)
        return booking

    def reschedule_booking(self, ctx: ActorContext, booking_id: int, new_sub_time_slot_id: int | None,
                           booking_date: date | None = None) -> Booking:
        """Move an active booking to another sub-slot (and optionally another date)"""
        booking = load_booking(self.storage, ctx, booking_id)
        if not booking.is_active:
            raise InvalidTransitionError(f"Booking {booking.id} is {booking.status} and cannot be rescheduled")

        target_date = booking_date or booking.booking_date
        slot_time = None
        if new_sub_time_slot_id is not None:
            slot_time = self._resolve_slot(ctx, booking.shop_id, new_sub_time_slot_id, target_date)

        try:
            with self.storage.atomic():
                self._ensure_slot_free(new_sub_time_slot_id, target_date, exclude_booking_id=booking.id)
                booking = self.storage.update(Booking, booking.id, {
                    "sub_time_slot_id": new_sub_time_slot_id,
                    "booking_date": target_date,
                    "slot_time": slot_time,
                    "reminder_sent": False,
                })
        except ConstraintViolation as e:
            if new_sub_time_slot_id is None:
                raise
            raise _conflict(new_sub_time_slot_id, target_date) from e

        logger.info("Booking %s moved to slot %s on %s by %s",
                    booking.id, new_sub_time_slot_id, target_date, ctx.actor)
        self.notifier.send(booking.id, BookingEvent.RESCHEDULED)
        return booking

    def cancel_booking(self, ctx: ActorContext, booking_id: int) -> None:
        """Cancel an active booking; its slot becomes free again"""
        booking = load_booking(self.storage, ctx, booking_id)
        ensure_transition(booking.id, booking.status, BookingStatus.CANCELLED)

        with self.storage.atomic():
            take_snapshot(self.storage, booking, BookingStatus.CANCELLED.value)
            self.storage.update(Booking, booking.id, {"status": BookingStatus.CANCELLED.value})

        logger.info("Booking %s cancelled by %s", booking_id, ctx.actor)
        self.notifier.send(booking_id, BookingEvent.CANCELLED)

    def delete_booking(self, ctx: ActorContext, booking_id: int) -> None:
        """Remove a booking together with its selections and feedback"""
        load_booking(self.storage, ctx, booking_id)
        with self.storage.atomic():
            self.storage.delete(Booking, booking_id)
        logger.info("Booking %s deleted by %s", booking_id, ctx.actor)

    def _resolve_slot(self, ctx: ActorContext, shop_id: int, sub_time_slot_id: int, day: date):
        """Validate the sub-slot for the shop and date; return its start time"""
        sub = self.catalog.get_sub_time_slot(ctx, sub_time_slot_id)
        time_slot = sub.time_slot
        if time_slot.shop_id != shop_id:
            raise ValidationError(f"Sub-time-slot {sub_time_slot_id} does not belong to shop {shop_id}")
        if not is_offered_on(time_slot, day):
            raise ValidationError(f"Sub-time-slot {sub_time_slot_id} is not offered on {day.isoformat()}")
        return time_slot.start_time

    def _ensure_slot_free(self, sub_time_slot_id: int | None, day: date,
                          exclude_booking_id: int | None = None) -> None:
        if sub_time_slot_id is None:
            return
        holders = self.storage.query(
            Booking,
            Booking.status.in_(ACTIVE_STATUSES),
            sub_time_slot_id=sub_time_slot_id,
            booking_date=day,
        )
        if any(b.id != exclude_booking_id for b in holders):
            raise _conflict(sub_time_slot_id, day)


def _conflict(sub_time_slot_id: int, day: date) -> SlotConflictError:
    return SlotConflictError(
        f"Sub-time-slot {sub_time_slot_id} is already booked on {day.isoformat()}",
        sub_time_slot_id=sub_time_slot_id,
        booking_date=day,
    )
