"""
Slot Catalog
Read model of the time slots and sub-slots a shop offers on a date,
plus the configuration operations that shape it.
"""
import logging
from dataclasses import dataclass
from datetime import date, time
from groombook.context import ActorContext
from groombook.errors import NotFoundError, ValidationError
from groombook.models import ACTIVE_STATUSES, Booking, Shop, SubTimeSlot, TimeSlot
from groombook.storage import Storage

logger = logging.getLogger(__name__)

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


@dataclass(frozen=True)
class SlotAvailability:
    sub_time_slot_id: int
    time_slot_id: int
    start_time: time
    label: str
    is_occupied: bool


def is_offered_on(time_slot: TimeSlot, day: date) -> bool:
    """True if the time slot runs on the weekday of `day`"""
    if time_slot.repeat_all_days:
        return True
    return WEEKDAYS[day.weekday()] in (time_slot.specific_days or [])


class SlotCatalog:
    """Lookup and configuration of shop time slots"""

    def __init__(self, storage: Storage):
        self.storage = storage

    def get_shop(self, ctx: ActorContext, shop_id: int) -> Shop:
        shop = self.storage.get(Shop, shop_id)
        if shop is None or shop.organization_id != ctx.organization_id:
            raise NotFoundError(f"Shop {shop_id} not found")
        return shop

    def get_time_slot(self, ctx: ActorContext, time_slot_id: int) -> TimeSlot:
        time_slot = self.storage.get(TimeSlot, time_slot_id)
        if time_slot is None or time_slot.shop.organization_id != ctx.organization_id:
            raise NotFoundError(f"Time slot {time_slot_id} not found")
        return time_slot

    def get_sub_time_slot(self, ctx: ActorContext, sub_time_slot_id: int) -> SubTimeSlot:
        sub = self.storage.get(SubTimeSlot, sub_time_slot_id)
        if sub is None or sub.time_slot.shop.organization_id != ctx.organization_id:
            raise NotFoundError(f"Sub-time-slot {sub_time_slot_id} not found")
        return sub

    def list_available_slots(self, ctx: ActorContext, shop_id: int, day: date) -> list[SlotAvailability]:
        """
        List every sub-slot the shop offers on `day`, flagged with occupancy.

        A fully booked day yields a fully occupied list. A day with no
        configured slots at all raises NotFoundError.
        """
        self.get_shop(ctx, shop_id)

        time_slots = [
            ts for ts in self.storage.query(TimeSlot, shop_id=shop_id, order_by=TimeSlot.start_time)
            if is_offered_on(ts, day)
        ]
        sub_slots = [(ts, sub) for ts in time_slots for sub in ts.sub_time_slots]
        if not sub_slots:
            raise NotFoundError(f"Shop {shop_id} has no time slots configured for {day.isoformat()}")

        occupied = self.occupied_sub_slot_ids(shop_id, day)
        return [
            SlotAvailability(
                sub_time_slot_id=sub.id,
                time_slot_id=ts.id,
                start_time=ts.start_time,
                label=sub.label,
                is_occupied=sub.id in occupied,
            )
            for ts, sub in sub_slots
        ]

    def occupied_sub_slot_ids(self, shop_id: int, day: date) -> set[int]:
        """Sub-slots held by an active booking on `day`"""
        bookings = self.storage.query(
            Booking,
            Booking.status.in_(ACTIVE_STATUSES),
            Booking.sub_time_slot_id.isnot(None),
            shop_id=shop_id,
            booking_date=day,
        )
        return {b.sub_time_slot_id for b in bookings}

    # Configuration

    def add_shop(self, ctx: ActorContext, name: str, directions: str | None = None,
                 phone_number: str | None = None) -> Shop:
        if not name or not name.strip():
            raise ValidationError("Shop name is required")
        with self.storage.atomic():
            shop = self.storage.insert(Shop, {
                "organization_id": ctx.organization_id,
                "name": name.strip(),
                "directions": directions,
                "phone_number": phone_number,
            })
        logger.info("Shop %s created by %s", shop.id, ctx.actor)
        return shop

    def add_time_slot(self, ctx: ActorContext, shop_id: int, start_time: time,
                      repeat_all_days: bool = True, specific_days: list[str] | None = None) -> TimeSlot:
        self.get_shop(ctx, shop_id)
        days = list(specific_days or [])
        unknown = [d for d in days if d not in WEEKDAYS]
        if unknown:
            raise ValidationError(f"Unknown weekday(s): {', '.join(unknown)}")
        if not repeat_all_days and not days:
            raise ValidationError("Pick at least one day or repeat the slot on all days")

        with self.storage.atomic():
            time_slot = self.storage.insert(TimeSlot, {
                "shop_id": shop_id,
                "start_time": start_time,
                "repeat_all_days": repeat_all_days,
                "specific_days": None if repeat_all_days else days,
            })
        return time_slot

    def add_sub_time_slot(self, ctx: ActorContext, time_slot_id: int,
                          slot_number: int | None = None, description: str | None = None) -> SubTimeSlot:
        time_slot = self.get_time_slot(ctx, time_slot_id)
        if slot_number is None:
            slot_number = max((s.slot_number for s in time_slot.sub_time_slots), default=0) + 1
        with self.storage.atomic():
            sub = self.storage.insert(SubTimeSlot, {
                "time_slot_id": time_slot_id,
                "slot_number": slot_number,
                "description": description,
            })
        return sub

    def remove_sub_time_slot(self, ctx: ActorContext, sub_time_slot_id: int) -> None:
        """Delete a sub-slot; bookings referencing it become unscheduled"""
        self.get_sub_time_slot(ctx, sub_time_slot_id)
        with self.storage.atomic():
            self._detach_bookings([sub_time_slot_id])
            self.storage.delete(SubTimeSlot, sub_time_slot_id)
        logger.info("Sub-time-slot %s removed by %s", sub_time_slot_id, ctx.actor)

    def remove_time_slot(self, ctx: ActorContext, time_slot_id: int) -> None:
        """Delete a time slot with its sub-slots; bookings are kept, unscheduled"""
        time_slot = self.get_time_slot(ctx, time_slot_id)
        sub_ids = [s.id for s in time_slot.sub_time_slots]
        with self.storage.atomic():
            self._detach_bookings(sub_ids)
            self.storage.delete(TimeSlot, time_slot_id)
        logger.info("Time slot %s removed by %s", time_slot_id, ctx.actor)

    def _detach_bookings(self, sub_time_slot_ids: list[int]) -> None:
        if not sub_time_slot_ids:
            return
        for booking in self.storage.query(Booking, Booking.sub_time_slot_id.in_(sub_time_slot_ids)):
            self.storage.update(Booking, booking.id, {"sub_time_slot_id": None, "slot_time": None})
