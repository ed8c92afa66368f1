"""
Request and response models for the HTTP API
"""
from datetime import date, datetime, time
from pydantic import BaseModel, ConfigDict, Field


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class ShopCreate(BaseModel):
    name: str
    directions: str | None = None
    phone_number: str | None = None


class ShopOut(ORMModel):
    id: int
    name: str
    directions: str | None = None
    phone_number: str | None = None


class TimeSlotCreate(BaseModel):
    start_time: time
    repeat_all_days: bool = True
    specific_days: list[str] | None = None


class TimeSlotOut(ORMModel):
    id: int
    shop_id: int
    start_time: time
    repeat_all_days: bool
    specific_days: list[str] | None = None


class SubTimeSlotCreate(BaseModel):
    slot_number: int | None = None
    description: str | None = None


class SubTimeSlotOut(ORMModel):
    id: int
    time_slot_id: int
    slot_number: int
    description: str | None = None
    label: str


class SlotAvailabilityOut(ORMModel):
    sub_time_slot_id: int
    time_slot_id: int
    start_time: time
    label: str
    is_occupied: bool


class ServiceCreate(BaseModel):
    name: str
    price: float
    type: str = "checkbox"


class ServiceUpdate(BaseModel):
    name: str | None = None
    price: float | None = None


class ServiceOut(ORMModel):
    id: int
    name: str
    price: float
    type: str


class BookingCreateRequest(BaseModel):
    """Request model for POST /bookings"""

    shop_id: int
    customer_name: str = Field(min_length=1, max_length=255)
    contact_number: str = Field(min_length=1, max_length=20)
    dog_name: str = Field(min_length=1, max_length=255)
    dog_breed: str | None = Field(default=None, max_length=255)
    booking_date: date
    sub_time_slot_id: int | None = None


class RescheduleRequest(BaseModel):
    sub_time_slot_id: int | None = None
    booking_date: date | None = None


class BookingOut(ORMModel):
    id: int
    shop_id: int
    customer_name: str
    contact_number: str
    dog_name: str
    dog_breed: str | None = None
    booking_date: date
    slot_time: time | None = None
    sub_time_slot_id: int | None = None
    status: str
    created_at: datetime | None = None


class BookingPageOut(BaseModel):
    items: list[BookingOut]
    total: int
    page: int
    page_size: int


class SelectServiceRequest(BaseModel):
    service_id: int
    input_value: str | None = None


class UpdateNoteRequest(BaseModel):
    input_value: str | None = None


class SelectedServiceOut(ORMModel):
    id: int
    booking_id: int
    service_id: int
    input_value: str | None = None


class SelectionViewOut(ORMModel):
    id: int
    booking_id: int
    service_id: int
    name: str
    price: float
    type: str
    input_value: str | None = None


class CompletionOut(BaseModel):
    booking: BookingOut
    frozen_selections: list[SelectionViewOut]


class FeedbackRequest(BaseModel):
    rating: int | None = None
    comment: str | None = None


class FeedbackOut(ORMModel):
    rating: int | None = None
    comment: str | None = None


class BookingDetailOut(BaseModel):
    booking: BookingOut
    slot_label: str | None = None
    selections: list[SelectionViewOut]
    feedback: FeedbackOut | None = None
    total_price: float


class HistoricalBookingOut(ORMModel):
    id: int
    original_booking_id: int
    shop_id: int | None = None
    shop_name: str | None = None
    customer_name: str | None = None
    dog_name: str | None = None
    dog_breed: str | None = None
    booking_date: date | None = None
    slot_time: time | None = None
    slot_description: str | None = None
    status: str
    services: list[dict] | None = None
    feedback: dict | None = None
    completed_at: datetime | None = None
