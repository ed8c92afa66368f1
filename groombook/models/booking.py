from enum import Enum
from sqlalchemy import (
    Column, Integer, String, Date, DateTime, Time, Boolean, ForeignKey, Index, func, text
)
from sqlalchemy.orm import relationship
from groombook.database import Base


class BookingStatus(str, Enum):
    RESERVED = "reserved"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ACTIVE_STATUSES = (BookingStatus.RESERVED.value, BookingStatus.IN_PROGRESS.value)

_active_slot_clause = text(
    "sub_time_slot_id IS NOT NULL AND status IN ('reserved', 'in_progress')"
)


class Booking(Base):
    """Store booking data"""
    __tablename__ = "bookings"
    __table_args__ = (
        # At most one active booking per (date, sub-time-slot)
        Index(
            "uq_bookings_active_slot",
            "booking_date",
            "sub_time_slot_id",
            unique=True,
            sqlite_where=_active_slot_clause,
            postgresql_where=_active_slot_clause,
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, index=True, nullable=False)
    shop_id = Column(Integer, ForeignKey("shops.id"), index=True, nullable=False)
    customer_name = Column(String(255), nullable=False)
    contact_number = Column(String(20), nullable=False)
    dog_name = Column(String(255), nullable=False)
    dog_breed = Column(String(255), nullable=True)
    booking_date = Column(Date, index=True, nullable=False)
    slot_time = Column(Time, nullable=True)
    sub_time_slot_id = Column(
        Integer, ForeignKey("sub_time_slots.id", ondelete="SET NULL"), index=True, nullable=True
    )  # NULL means unscheduled
    status = Column(String(20), default=BookingStatus.RESERVED.value, index=True, nullable=False)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
    reminder_sent = Column(Boolean, default=False)  # Track if reminder message sent
    feedback_request_sent = Column(Boolean, default=False)  # Track if feedback request sent

    # Relationships
    shop = relationship("Shop")
    sub_time_slot = relationship("SubTimeSlot")
    selected_services = relationship(
        "SelectedService",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="SelectedService.id",
    )
    feedback = relationship(
        "BookingFeedback",
        back_populates="booking",
        cascade="all, delete-orphan",
        uselist=False,
    )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES
