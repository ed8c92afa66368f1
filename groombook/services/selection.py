"""
Service Selection Manager
Attaches grooming services to a booking, each with an optional
free-text care tip for "input" type services.
"""
import logging
from dataclasses import dataclass, asdict
from datetime import datetime
from groombook.context import ActorContext
from groombook.errors import (
    ConstraintViolation, DuplicateSelectionError, ImmutableStateError, NotFoundError, ValidationError
)
from groombook.models import Booking, BookingStatus, HistoricalBooking, SelectedService, Service, ServiceType
from groombook.services.lifecycle import load_booking
from groombook.services.service_catalog import ServiceCatalog
from groombook.storage import Storage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionView:
    """A selected service joined with its catalog name and price"""
    id: int
    booking_id: int
    service_id: int
    name: str
    price: float
    type: str
    input_value: str | None
    created_at: datetime | None = None

    def to_snapshot(self) -> dict:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat() if self.created_at else None
        return data

    @classmethod
    def from_snapshot(cls, booking_id: int, data: dict) -> "SelectionView":
        created_at = data.get("created_at")
        return cls(
            id=data["id"],
            booking_id=booking_id,
            service_id=data["service_id"],
            name=data["name"],
            price=data["price"],
            type=data["type"],
            input_value=data.get("input_value"),
            created_at=datetime.fromisoformat(created_at) if created_at else None,
        )


def build_selection_views(booking: Booking) -> list[SelectionView]:
    """Live selections of a booking, joined with the current catalog"""
    return [
        SelectionView(
            id=row.id,
            booking_id=row.booking_id,
            service_id=row.service_id,
            name=row.service.name,
            price=float(row.service.price or 0),
            type=row.service.type,
            input_value=row.input_value,
            created_at=row.created_at,
        )
        for row in booking.selected_services
    ]


def _clean_note(service: Service, input_value: str | None) -> str | None:
    """Checkbox services carry no note; input services need one"""
    if service.type == ServiceType.CHECKBOX.value:
        return None
    note = (input_value or "").strip() or None
    if note is None and service.type == ServiceType.INPUT.value:
        raise ValidationError(f"Service '{service.name}' needs a note")
    return note


class SelectionManager:
    """Selected services and care tips of a booking"""

    def __init__(self, storage: Storage):
        self.storage = storage
        self.catalog = ServiceCatalog(storage)

    def _editable_booking(self, ctx: ActorContext, booking_id: int) -> Booking:
        booking = load_booking(self.storage, ctx, booking_id)
        if booking.status in (BookingStatus.COMPLETED.value, BookingStatus.CANCELLED.value):
            raise ImmutableStateError(
                f"Booking {booking_id} is {booking.status}; its services can no longer change"
            )
        return booking

    def select_service(self, ctx: ActorContext, booking_id: int, service_id: int,
                       input_value: str | None = None) -> SelectedService:
        booking = self._editable_booking(ctx, booking_id)
        service = self.catalog.get_service(ctx, service_id)
        note = _clean_note(service, input_value)

        existing = self.storage.first(SelectedService, booking_id=booking.id, service_id=service.id)
        if existing is not None:
            raise DuplicateSelectionError(
                f"Service '{service.name}' is already selected for booking {booking_id}"
            )

        try:
            with self.storage.atomic():
                selection = self.storage.insert(SelectedService, {
                    "booking_id": booking.id,
                    "service_id": service.id,
                    "input_value": note,
                })
        except ConstraintViolation as e:
            raise DuplicateSelectionError(
                f"Service '{service.name}' is already selected for booking {booking_id}"
            ) from e

        logger.info("Booking %s: selected service %s", booking_id, service_id)
        return selection

    def update_selection_note(self, ctx: ActorContext, selection_id: int, input_value: str | None) -> SelectedService:
        selection = self.storage.get(SelectedService, selection_id)
        if selection is None:
            raise NotFoundError(f"Selection {selection_id} not found")
        self._editable_booking(ctx, selection.booking_id)
        note = _clean_note(selection.service, input_value)

        with self.storage.atomic():
            return self.storage.update(SelectedService, selection_id, {"input_value": note})

    def deselect_service(self, ctx: ActorContext, booking_id: int, service_id: int) -> None:
        booking = self._editable_booking(ctx, booking_id)
        selection = self.storage.first(SelectedService, booking_id=booking.id, service_id=service_id)
        if selection is None:
            raise NotFoundError(f"Service {service_id} is not selected for booking {booking_id}")
        with self.storage.atomic():
            self.storage.delete(SelectedService, selection.id)
        logger.info("Booking %s: deselected service %s", booking_id, service_id)

    def list_selections(self, ctx: ActorContext, booking_id: int) -> list[SelectionView]:
        """
        Selections of a booking with catalog name and price.

        Completed bookings answer from their frozen snapshot.
        """
        booking = load_booking(self.storage, ctx, booking_id)
        if booking.status == BookingStatus.COMPLETED.value:
            snapshot = self.storage.first(
                HistoricalBooking,
                original_booking_id=booking.id,
                status=BookingStatus.COMPLETED.value,
            )
            if snapshot is not None:
                return [SelectionView.from_snapshot(booking.id, item) for item in snapshot.services or []]
        return build_selection_views(booking)
