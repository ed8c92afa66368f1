"""
Unit tests for the booking store
"""
from datetime import time, timedelta
import pytest
from groombook.errors import InvalidTransitionError, NotFoundError, SlotConflictError, ValidationError
from groombook.models import ACTIVE_STATUSES, Booking, HistoricalBooking, SelectedService
from groombook.services.notifications import BookingEvent
from tests.conftest import BOOKING_DATE


def active_holders(session, sub_time_slot_id, day):
    return session.query(Booking).filter(
        Booking.sub_time_slot_id == sub_time_slot_id,
        Booking.booking_date == day,
        Booking.status.in_(ACTIVE_STATUSES),
    ).count()


class TestCreateBooking:
    """Test booking creation"""

    def test_create_with_slot(self, store, ctx, booking_details, sub_slots, notifier):
        """Test creating a booking on a free sub-slot"""
        booking = store.create_booking(ctx, booking_details(), sub_slots[0].id)

        assert booking.id is not None
        assert booking.status == "reserved"
        assert booking.sub_time_slot_id == sub_slots[0].id
        assert booking.slot_time == time(9, 0)
        assert booking.organization_id == ctx.organization_id
        assert notifier.events_for(booking.id) == [BookingEvent.CREATED]

    def test_create_unscheduled(self, store, ctx, booking_details, sample_shop):
        """Test creating a booking without a slot"""
        booking = store.create_booking(ctx, booking_details(), None)

        assert booking.status == "reserved"
        assert booking.sub_time_slot_id is None
        assert booking.slot_time is None

    def test_two_unscheduled_bookings_same_day(self, store, ctx, booking_details, sample_shop):
        """Test unscheduled bookings never conflict"""
        first = store.create_booking(ctx, booking_details(), None)
        second = store.create_booking(ctx, booking_details(dog_name="Coco"), None)

        assert first.id != second.id

    def test_slot_conflict(self, store, ctx, booking_details, sub_slots, sample_booking, notifier):
        """Test a taken sub-slot raises SlotConflictError"""
        with pytest.raises(SlotConflictError) as exc_info:
            store.create_booking(ctx, booking_details(customer_name="Rahul"), sub_slots[0].id)

        assert exc_info.value.sub_time_slot_id == sub_slots[0].id
        assert exc_info.value.booking_date == BOOKING_DATE
        assert len(notifier.sent) == 1

    def test_same_slot_other_date(self, store, ctx, booking_details, sub_slots, sample_booking):
        """Test the same sub-slot is free on another date"""
        booking = store.create_booking(
            ctx, booking_details(booking_date=BOOKING_DATE + timedelta(days=1)), sub_slots[0].id
        )

        assert booking.sub_time_slot_id == sub_slots[0].id

    def test_conflict_then_cancel_then_succeed(self, store, ctx, booking_details, sub_slots, test_db_session):
        """Test a slot can be rebooked after cancellation"""
        first = store.create_booking(ctx, booking_details(), sub_slots[0].id)
        with pytest.raises(SlotConflictError):
            store.create_booking(ctx, booking_details(customer_name="Second"), sub_slots[0].id)

        store.cancel_booking(ctx, first.id)
        third = store.create_booking(ctx, booking_details(customer_name="Third"), sub_slots[0].id)

        assert third.status == "reserved"
        assert active_holders(test_db_session, sub_slots[0].id, BOOKING_DATE) == 1

    def test_unique_index_catches_lost_race(self, store, ctx, booking_details, sub_slots, sample_booking, monkeypatch):
        """A writer that slipped past the occupancy read still loses at commit"""
        monkeypatch.setattr(store, "_ensure_slot_free", lambda *args, **kwargs: None)

        with pytest.raises(SlotConflictError):
            store.create_booking(ctx, booking_details(customer_name="Racer"), sub_slots[0].id)

    def test_blank_customer_name(self, store, ctx, booking_details, sub_slots):
        """Test blank customer names are rejected"""
        with pytest.raises(ValidationError):
            store.create_booking(ctx, booking_details(customer_name="   "), sub_slots[0].id)

    def test_unknown_shop(self, store, ctx, booking_details, sub_slots):
        """Test booking an unknown shop"""
        with pytest.raises(NotFoundError):
            store.create_booking(ctx, booking_details(shop_id=999), None)

    def test_unknown_sub_slot(self, store, ctx, booking_details, sub_slots):
        """Test booking an unknown sub-slot"""
        with pytest.raises(NotFoundError):
            store.create_booking(ctx, booking_details(), 999)

    def test_sub_slot_of_other_shop(self, store, catalog, ctx, booking_details, sub_slots):
        """Test a sub-slot must belong to the booked shop"""
        other_shop = catalog.add_shop(ctx, "Second Branch")

        with pytest.raises(ValidationError):
            store.create_booking(ctx, booking_details(shop_id=other_shop.id), sub_slots[0].id)

    def test_sub_slot_not_offered_that_day(self, store, catalog, ctx, booking_details, sample_shop):
        """Test a sub-slot must be offered on the booking date"""
        weekend = catalog.add_time_slot(ctx, sample_shop.id, time(10, 0),
                                        repeat_all_days=False, specific_days=["Sunday"])
        sub = catalog.add_sub_time_slot(ctx, weekend.id)

        with pytest.raises(ValidationError):
            store.create_booking(ctx, booking_details(), sub.id)

    def test_other_organization_shop(self, store, other_ctx, booking_details, sub_slots):
        """Test shops of other organizations cannot be booked"""
        with pytest.raises(NotFoundError):
            store.create_booking(other_ctx, booking_details(), sub_slots[0].id)


class TestRescheduleBooking:
    """Test moving bookings between slots"""

    def test_move_to_free_slot(self, store, ctx, sub_slots, sample_booking, notifier, test_db_session):
        """Test rescheduling to a free sub-slot"""
        moved = store.reschedule_booking(ctx, sample_booking.id, sub_slots[1].id)

        assert moved.sub_time_slot_id == sub_slots[1].id
        assert active_holders(test_db_session, sub_slots[0].id, BOOKING_DATE) == 0
        assert BookingEvent.RESCHEDULED in notifier.events_for(sample_booking.id)

    def test_move_onto_taken_slot(self, store, ctx, booking_details, sub_slots, sample_booking):
        """Test rescheduling onto a taken sub-slot"""
        other = store.create_booking(ctx, booking_details(customer_name="Anita"), sub_slots[1].id)

        with pytest.raises(SlotConflictError):
            store.reschedule_booking(ctx, other.id, sub_slots[0].id)

    def test_unique_index_catches_lost_race_on_move(self, store, ctx, booking_details, sub_slots, sample_booking,
                                                    monkeypatch):
        """Test a move that slipped past the occupancy read still loses at commit"""
        other = store.create_booking(ctx, booking_details(customer_name="Anita"), sub_slots[1].id)
        monkeypatch.setattr(store, "_ensure_slot_free", lambda *args, **kwargs: None)

        with pytest.raises(SlotConflictError):
            store.reschedule_booking(ctx, other.id, sub_slots[0].id)
        assert store.get_booking(ctx, other.id).sub_time_slot_id == sub_slots[1].id

    def test_move_onto_own_slot_is_allowed(self, store, ctx, sub_slots, sample_booking):
        """Test rescheduling onto the booking's own sub-slot"""
        moved = store.reschedule_booking(ctx, sample_booking.id, sub_slots[0].id)

        assert moved.sub_time_slot_id == sub_slots[0].id

    def test_move_to_other_date(self, store, ctx, sub_slots, sample_booking):
        """Test rescheduling to another date"""
        new_date = BOOKING_DATE + timedelta(days=3)
        moved = store.reschedule_booking(ctx, sample_booking.id, sub_slots[0].id, booking_date=new_date)

        assert moved.booking_date == new_date

    def test_unschedule(self, store, ctx, sample_booking):
        """Test clearing a booking's slot"""
        moved = store.reschedule_booking(ctx, sample_booking.id, None)

        assert moved.sub_time_slot_id is None
        assert moved.slot_time is None

    def test_cancelled_booking_cannot_move(self, store, ctx, sub_slots, sample_booking):
        """Test cancelled bookings cannot be rescheduled"""
        store.cancel_booking(ctx, sample_booking.id)

        with pytest.raises(InvalidTransitionError):
            store.reschedule_booking(ctx, sample_booking.id, sub_slots[1].id)

    def test_in_progress_booking_can_move(self, store, workflow, ctx, sub_slots, sample_booking):
        """Test in-progress bookings can still be rescheduled"""
        workflow.start_service(ctx, sample_booking.id)

        moved = store.reschedule_booking(ctx, sample_booking.id, sub_slots[1].id)

        assert moved.status == "in_progress"


class TestCancelAndDelete:
    """Test cancellation and deletion"""

    def test_cancel_writes_history(self, store, ctx, sample_booking, test_db_session, notifier):
        """Test cancelling writes a history snapshot"""
        store.cancel_booking(ctx, sample_booking.id)

        booking = test_db_session.get(Booking, sample_booking.id)
        assert booking.status == "cancelled"
        history = test_db_session.query(HistoricalBooking).filter_by(original_booking_id=booking.id).one()
        assert history.status == "cancelled"
        assert history.slot_description == "Table A"
        assert history.shop_name == "Paws & Suds"
        assert notifier.events_for(booking.id)[-1] == BookingEvent.CANCELLED

    def test_cancel_twice(self, store, ctx, sample_booking):
        """Test cancelling twice fails"""
        store.cancel_booking(ctx, sample_booking.id)

        with pytest.raises(InvalidTransitionError):
            store.cancel_booking(ctx, sample_booking.id)

    def test_cancel_unknown(self, store, ctx):
        """Test cancelling an unknown booking"""
        with pytest.raises(NotFoundError):
            store.cancel_booking(ctx, 12345)

    def test_delete_cascades_selections(self, store, selections, ctx, sample_booking, sample_services,
                                        test_db_session):
        """Test deleting a booking removes its selections"""
        selections.select_service(ctx, sample_booking.id, sample_services["bath"].id)

        store.delete_booking(ctx, sample_booking.id)

        assert test_db_session.get(Booking, sample_booking.id) is None
        assert test_db_session.query(SelectedService).count() == 0

    def test_other_organization_cannot_cancel(self, store, other_ctx, sample_booking):
        """Test other organizations cannot cancel a booking"""
        with pytest.raises(NotFoundError):
            store.cancel_booking(other_ctx, sample_booking.id)


class TestSlotUniqueness:
    """At most one active booking per sub-slot and date after any operation sequence"""

    def test_sequence_keeps_invariant(self, store, workflow, ctx, booking_details, sub_slots, test_db_session):
        """Test one active booking per slot across mixed operations"""
        a = store.create_booking(ctx, booking_details(customer_name="A"), sub_slots[0].id)
        b = store.create_booking(ctx, booking_details(customer_name="B"), sub_slots[1].id)
        with pytest.raises(SlotConflictError):
            store.reschedule_booking(ctx, b.id, sub_slots[0].id)
        workflow.start_service(ctx, a.id)
        store.cancel_booking(ctx, a.id)
        store.reschedule_booking(ctx, b.id, sub_slots[0].id)
        c = store.create_booking(ctx, booking_details(customer_name="C"), sub_slots[1].id)
        with pytest.raises(SlotConflictError):
            store.create_booking(ctx, booking_details(customer_name="D"), sub_slots[0].id)

        for sub in sub_slots:
            assert active_holders(test_db_session, sub.id, BOOKING_DATE) == 1
        assert test_db_session.get(Booking, c.id).sub_time_slot_id == sub_slots[1].id
