from datetime import date
from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from groombook import errors
from groombook.config import settings
from groombook.context import ActorContext
from groombook.database import get_db
from groombook.schemas import (
    BookingCreateRequest, BookingDetailOut, BookingOut, BookingPageOut, CompletionOut, FeedbackRequest,
    HistoricalBookingOut, RescheduleRequest, SelectedServiceOut, SelectServiceRequest, SelectionViewOut,
    ServiceCreate, ServiceOut, ServiceUpdate, ShopCreate, ShopOut, SlotAvailabilityOut, SubTimeSlotCreate,
    SubTimeSlotOut, TimeSlotCreate, TimeSlotOut, UpdateNoteRequest,
)
from groombook.services.booking_store import BookingDetails, BookingStore
from groombook.services.notifications import get_notifier
from groombook.services.reporting import ReportingFacade
from groombook.services.selection import SelectionManager
from groombook.services.service_catalog import ServiceCatalog
from groombook.services.slot_catalog import SlotCatalog
from groombook.services.workflow import BookingWorkflow
from groombook.storage import Storage

router = APIRouter()

ERROR_STATUS = {
    errors.NotFoundError: 404,
    errors.ValidationError: 422,
    errors.SlotConflictError: 409,
    errors.DuplicateSelectionError: 409,
    errors.InvalidTransitionError: 409,
    errors.ImmutableStateError: 409,
    errors.StorageError: 503,
}


async def groombook_error_handler(request: Request, exc: errors.GroombookError):
    """Map core errors to HTTP responses"""
    status_code = next(
        (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 500
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


def get_context(
    x_organization_id: int | None = Header(default=None),
    x_actor: str = Header(default="staff"),
) -> ActorContext:
    """Caller context from request headers"""
    if x_organization_id is None:
        raise HTTPException(status_code=400, detail="X-Organization-Id header is required")
    return ActorContext(organization_id=x_organization_id, actor=x_actor)


def get_storage(db: Session = Depends(get_db)) -> Storage:
    return Storage(db)


def get_booking_store(storage: Storage = Depends(get_storage), notifier=Depends(get_notifier)) -> BookingStore:
    return BookingStore(storage, notifier)


def get_workflow(storage: Storage = Depends(get_storage), notifier=Depends(get_notifier)) -> BookingWorkflow:
    return BookingWorkflow(storage, notifier)


@router.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "ok", "app": settings.app_name}


# Shop configuration

@router.post("/shops", response_model=ShopOut, status_code=201)
def create_shop(request: ShopCreate, ctx: ActorContext = Depends(get_context),
                storage: Storage = Depends(get_storage)):
    return SlotCatalog(storage).add_shop(ctx, request.name, request.directions, request.phone_number)


@router.post("/shops/{shop_id}/time-slots", response_model=TimeSlotOut, status_code=201)
def create_time_slot(shop_id: int, request: TimeSlotCreate, ctx: ActorContext = Depends(get_context),
                     storage: Storage = Depends(get_storage)):
    return SlotCatalog(storage).add_time_slot(
        ctx, shop_id, request.start_time, request.repeat_all_days, request.specific_days
    )


@router.delete("/time-slots/{time_slot_id}", status_code=204)
def delete_time_slot(time_slot_id: int, ctx: ActorContext = Depends(get_context),
                     storage: Storage = Depends(get_storage)):
    SlotCatalog(storage).remove_time_slot(ctx, time_slot_id)
    return Response(status_code=204)


@router.post("/time-slots/{time_slot_id}/sub-slots", response_model=SubTimeSlotOut, status_code=201)
def create_sub_time_slot(time_slot_id: int, request: SubTimeSlotCreate, ctx: ActorContext = Depends(get_context),
                         storage: Storage = Depends(get_storage)):
    return SlotCatalog(storage).add_sub_time_slot(ctx, time_slot_id, request.slot_number, request.description)


@router.delete("/sub-slots/{sub_time_slot_id}", status_code=204)
def delete_sub_time_slot(sub_time_slot_id: int, ctx: ActorContext = Depends(get_context),
                         storage: Storage = Depends(get_storage)):
    SlotCatalog(storage).remove_sub_time_slot(ctx, sub_time_slot_id)
    return Response(status_code=204)


@router.get("/shops/{shop_id}/slots", response_model=list[SlotAvailabilityOut])
def list_slots(shop_id: int, date: date, ctx: ActorContext = Depends(get_context),
               storage: Storage = Depends(get_storage)):
    """Sub-slots offered on a date with occupancy"""
    return SlotCatalog(storage).list_available_slots(ctx, shop_id, date)


# Service catalog

@router.get("/services", response_model=list[ServiceOut])
def list_services(ctx: ActorContext = Depends(get_context), storage: Storage = Depends(get_storage)):
    return ServiceCatalog(storage).list_services(ctx)


@router.post("/services", response_model=ServiceOut, status_code=201)
def create_service(request: ServiceCreate, ctx: ActorContext = Depends(get_context),
                   storage: Storage = Depends(get_storage)):
    return ServiceCatalog(storage).add_service(ctx, request.name, request.price, request.type)


@router.patch("/services/{service_id}", response_model=ServiceOut)
def update_service(service_id: int, request: ServiceUpdate, ctx: ActorContext = Depends(get_context),
                   storage: Storage = Depends(get_storage)):
    return ServiceCatalog(storage).update_service(ctx, service_id, request.name, request.price)


# Bookings

@router.post("/bookings", response_model=BookingOut, status_code=201)
def create_booking(request: BookingCreateRequest, ctx: ActorContext = Depends(get_context),
                   store: BookingStore = Depends(get_booking_store)):
    details = BookingDetails(**request.model_dump(exclude={"sub_time_slot_id"}))
    return store.create_booking(ctx, details, request.sub_time_slot_id)


@router.get("/bookings", response_model=BookingPageOut)
def list_bookings(
    booking_date: date | None = None,
    shop_id: int | None = None,
    search: str | None = None,
    service_ids: list[int] | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=100),
    ctx: ActorContext = Depends(get_context),
    storage: Storage = Depends(get_storage),
):
    """Get bookings, newest first"""
    result = ReportingFacade(storage).list_bookings(
        ctx, booking_date, shop_id, search, service_ids, page, page_size
    )
    return BookingPageOut(
        items=[BookingOut.model_validate(b) for b in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
    )


@router.get("/bookings/{booking_id}", response_model=BookingDetailOut)
def get_booking(booking_id: int, ctx: ActorContext = Depends(get_context),
                storage: Storage = Depends(get_storage)):
    detail = ReportingFacade(storage).get_booking_detail(ctx, booking_id)
    return BookingDetailOut(
        booking=BookingOut.model_validate(detail.booking),
        slot_label=detail.slot_label,
        selections=[SelectionViewOut.model_validate(s) for s in detail.selections],
        feedback=detail.feedback,
        total_price=detail.total_price,
    )


@router.put("/bookings/{booking_id}/slot", response_model=BookingOut)
def reschedule_booking(booking_id: int, request: RescheduleRequest, ctx: ActorContext = Depends(get_context),
                       store: BookingStore = Depends(get_booking_store)):
    return store.reschedule_booking(ctx, booking_id, request.sub_time_slot_id, request.booking_date)


@router.post("/bookings/{booking_id}/cancel", status_code=204)
def cancel_booking(booking_id: int, ctx: ActorContext = Depends(get_context),
                   store: BookingStore = Depends(get_booking_store)):
    store.cancel_booking(ctx, booking_id)
    return Response(status_code=204)


@router.delete("/bookings/{booking_id}", status_code=204)
def delete_booking(booking_id: int, ctx: ActorContext = Depends(get_context),
                   store: BookingStore = Depends(get_booking_store)):
    store.delete_booking(ctx, booking_id)
    return Response(status_code=204)


# Selected services

@router.get("/bookings/{booking_id}/services", response_model=list[SelectionViewOut])
def list_selections(booking_id: int, ctx: ActorContext = Depends(get_context),
                    storage: Storage = Depends(get_storage)):
    return SelectionManager(storage).list_selections(ctx, booking_id)


@router.post("/bookings/{booking_id}/services", response_model=SelectedServiceOut, status_code=201)
def select_service(booking_id: int, request: SelectServiceRequest, ctx: ActorContext = Depends(get_context),
                   storage: Storage = Depends(get_storage)):
    return SelectionManager(storage).select_service(ctx, booking_id, request.service_id, request.input_value)


@router.delete("/bookings/{booking_id}/services/{service_id}", status_code=204)
def deselect_service(booking_id: int, service_id: int, ctx: ActorContext = Depends(get_context),
                     storage: Storage = Depends(get_storage)):
    SelectionManager(storage).deselect_service(ctx, booking_id, service_id)
    return Response(status_code=204)


@router.patch("/selections/{selection_id}", response_model=SelectedServiceOut)
def update_selection_note(selection_id: int, request: UpdateNoteRequest, ctx: ActorContext = Depends(get_context),
                          storage: Storage = Depends(get_storage)):
    return SelectionManager(storage).update_selection_note(ctx, selection_id, request.input_value)


# Workflow

@router.post("/bookings/{booking_id}/start", response_model=BookingOut)
def start_service(booking_id: int, ctx: ActorContext = Depends(get_context),
                  workflow: BookingWorkflow = Depends(get_workflow)):
    return workflow.start_service(ctx, booking_id)


@router.post("/bookings/{booking_id}/complete", response_model=CompletionOut)
def complete_booking(booking_id: int, ctx: ActorContext = Depends(get_context),
                     workflow: BookingWorkflow = Depends(get_workflow)):
    result = workflow.complete_booking(ctx, booking_id)
    return CompletionOut(
        booking=BookingOut.model_validate(result.booking),
        frozen_selections=[SelectionViewOut.model_validate(s) for s in result.frozen_selections],
    )


@router.post("/bookings/{booking_id}/feedback", status_code=201)
def submit_feedback(booking_id: int, request: FeedbackRequest, ctx: ActorContext = Depends(get_context),
                    workflow: BookingWorkflow = Depends(get_workflow)):
    """Submit or skip feedback; either way the client returns to its default view"""
    workflow.submit_feedback(ctx, booking_id, request.rating, request.comment)
    return {"status": "ok", "booking_id": booking_id}


# Reports

@router.get("/reports/history", response_model=list[HistoricalBookingOut])
def list_history(
    start_date: date | None = None,
    end_date: date | None = None,
    shop_id: int | None = None,
    status: str | None = None,
    ctx: ActorContext = Depends(get_context),
    storage: Storage = Depends(get_storage),
):
    """Frozen booking snapshots for analytics"""
    return ReportingFacade(storage).list_history(ctx, start_date, end_date, shop_id, status)
