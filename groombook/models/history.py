from sqlalchemy import Column, Integer, String, Date, DateTime, Time, JSON, func
from groombook.database import Base


class HistoricalBooking(Base):
    """Frozen copy of a booking taken when it completes or is cancelled.

    Reporting reads service names and prices from here, so later
    catalog edits do not rewrite history. No foreign keys: the row
    outlives the booking it was taken from.
    """
    __tablename__ = "historical_bookings"

    id = Column(Integer, primary_key=True, index=True)
    original_booking_id = Column(Integer, index=True, nullable=False)
    organization_id = Column(Integer, index=True, nullable=False)
    shop_id = Column(Integer, index=True)
    shop_name = Column(String(255), nullable=True)
    customer_name = Column(String(255))
    contact_number = Column(String(20))
    dog_name = Column(String(255))
    dog_breed = Column(String(255), nullable=True)
    booking_date = Column(Date, index=True)
    slot_time = Column(Time, nullable=True)
    sub_time_slot_id = Column(Integer, nullable=True)
    slot_description = Column(String(255), nullable=True)
    status = Column(String(20), index=True)
    services = Column(JSON, nullable=True)  # [{"service_id", "name", "price", "type", "input_value"}]
    feedback = Column(JSON, nullable=True)  # {"rating", "comment"}
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=func.now())
