"""
Query/Reporting Facade
Read paths for booking lists, booking detail and the frozen history
that analytics and receipt collaborators consume.
"""
from dataclasses import dataclass
from datetime import date
from sqlalchemy import or_
from groombook.context import ActorContext
from groombook.models import Booking, BookingFeedback, HistoricalBooking, SelectedService
from groombook.services.lifecycle import load_booking
from groombook.services.selection import SelectionManager, SelectionView
from groombook.storage import Storage

DEFAULT_PAGE_SIZE = 10


@dataclass(frozen=True)
class BookingPage:
    items: list[Booking]
    total: int
    page: int
    page_size: int


@dataclass(frozen=True)
class BookingDetail:
    booking: Booking
    slot_label: str | None
    selections: list[SelectionView]
    feedback: BookingFeedback | None

    @property
    def total_price(self) -> float:
        return round(sum(s.price for s in self.selections), 2)


class ReportingFacade:
    """Read-only queries over bookings and their history"""

    def __init__(self, storage: Storage):
        self.storage = storage
        self.selections = SelectionManager(storage)

    def list_bookings(self, ctx: ActorContext, booking_date: date | None = None, shop_id: int | None = None,
                      search: str | None = None, service_ids: list[int] | None = None,
                      page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> BookingPage:
        """
        Newest-first page of bookings.

        `search` matches customer name, dog breed, contact number or dog
        name (case-insensitive). `service_ids` keeps bookings with at
        least one of those services selected.
        """
        criteria = []
        filters = {"organization_id": ctx.organization_id}
        if booking_date is not None:
            filters["booking_date"] = booking_date
        if shop_id is not None:
            filters["shop_id"] = shop_id
        if search:
            pattern = f"%{search.strip()}%"
            criteria.append(or_(
                Booking.customer_name.ilike(pattern),
                Booking.dog_breed.ilike(pattern),
                Booking.contact_number.ilike(pattern),
                Booking.dog_name.ilike(pattern),
            ))
        if service_ids:
            matching = self.storage.query(SelectedService, SelectedService.service_id.in_(service_ids))
            booking_ids = {s.booking_id for s in matching}
            if not booking_ids:
                return BookingPage(items=[], total=0, page=page, page_size=page_size)
            criteria.append(Booking.id.in_(booking_ids))

        rows = self.storage.query(
            Booking, *criteria, order_by=(Booking.created_at.desc(), Booking.id.desc()), **filters
        )
        page = max(page, 1)
        start = (page - 1) * page_size
        return BookingPage(items=rows[start:start + page_size], total=len(rows), page=page, page_size=page_size)

    def get_booking_detail(self, ctx: ActorContext, booking_id: int) -> BookingDetail:
        booking = load_booking(self.storage, ctx, booking_id)
        return BookingDetail(
            booking=booking,
            slot_label=booking.sub_time_slot.label if booking.sub_time_slot else None,
            selections=self.selections.list_selections(ctx, booking_id),
            feedback=booking.feedback,
        )

    def list_history(self, ctx: ActorContext, start_date: date | None = None, end_date: date | None = None,
                     shop_id: int | None = None, status: str | None = None) -> list[HistoricalBooking]:
        """Frozen snapshots of completed and cancelled bookings, oldest first"""
        criteria = []
        filters = {"organization_id": ctx.organization_id}
        if start_date is not None:
            criteria.append(HistoricalBooking.booking_date >= start_date)
        if end_date is not None:
            criteria.append(HistoricalBooking.booking_date <= end_date)
        if shop_id is not None:
            filters["shop_id"] = shop_id
        if status:
            filters["status"] = status.lower()
        return self.storage.query(
            HistoricalBooking, *criteria,
            order_by=(HistoricalBooking.booking_date, HistoricalBooking.id),
            **filters,
        )
