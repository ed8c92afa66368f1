"""
Frozen booking snapshots for reporting
"""
from datetime import datetime
from groombook.models import Booking, HistoricalBooking
from groombook.services.selection import SelectionView, build_selection_views
from groombook.storage import Storage


def feedback_snapshot(booking: Booking) -> dict | None:
    if booking.feedback is None:
        return None
    return {"rating": booking.feedback.rating, "comment": booking.feedback.comment}


def take_snapshot(storage: Storage, booking: Booking, status: str) -> tuple[HistoricalBooking, list[SelectionView]]:
    """
    Copy a booking and its current selections into historical_bookings.

    Must run inside the caller's atomic block so the snapshot and the
    status change land together.
    """
    selections = build_selection_views(booking)
    sub = booking.sub_time_slot
    record = storage.insert(HistoricalBooking, {
        "original_booking_id": booking.id,
        "organization_id": booking.organization_id,
        "shop_id": booking.shop_id,
        "shop_name": booking.shop.name if booking.shop else None,
        "customer_name": booking.customer_name,
        "contact_number": booking.contact_number,
        "dog_name": booking.dog_name,
        "dog_breed": booking.dog_breed,
        "booking_date": booking.booking_date,
        "slot_time": booking.slot_time,
        "sub_time_slot_id": booking.sub_time_slot_id,
        "slot_description": sub.label if sub else None,
        "status": status,
        "services": [s.to_snapshot() for s in selections] or None,
        "feedback": feedback_snapshot(booking),
        "completed_at": datetime.now(),
    })
    return record, selections
