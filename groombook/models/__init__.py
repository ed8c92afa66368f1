from groombook.models.shop import Shop
from groombook.models.time_slot import TimeSlot, SubTimeSlot
from groombook.models.booking import Booking, BookingStatus, ACTIVE_STATUSES
from groombook.models.service import Service, ServiceType, SelectedService
from groombook.models.feedback import BookingFeedback
from groombook.models.history import HistoricalBooking

__all__ = [
    "Shop",
    "TimeSlot",
    "SubTimeSlot",
    "Booking",
    "BookingStatus",
    "ACTIVE_STATUSES",
    "Service",
    "ServiceType",
    "SelectedService",
    "BookingFeedback",
    "HistoricalBooking",
]
