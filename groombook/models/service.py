from enum import Enum
from sqlalchemy import (
    Column, Integer, String, DateTime, Numeric, Text, ForeignKey, UniqueConstraint, func
)
from sqlalchemy.orm import relationship
from groombook.database import Base


class ServiceType(str, Enum):
    CHECKBOX = "checkbox"
    INPUT = "input"  # Requires a free-text value when selected


class Service(Base):
    """Grooming service catalog entry"""
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    type = Column(String(20), nullable=False, default=ServiceType.CHECKBOX.value)
    created_at = Column(DateTime, default=func.now())


class SelectedService(Base):
    """A service attached to a booking, with an optional care tip"""
    __tablename__ = "booking_services_selected"
    __table_args__ = (
        UniqueConstraint("booking_id", "service_id", name="uq_selection_booking_service"),
    )

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), index=True, nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), index=True, nullable=False)
    input_value = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now())

    # Relationships
    booking = relationship("Booking", back_populates="selected_services")
    service = relationship("Service")
