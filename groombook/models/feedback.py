from sqlalchemy import Column, Integer, DateTime, Text, ForeignKey, func
from sqlalchemy.orm import relationship
from groombook.database import Base


class BookingFeedback(Base):
    """Optional rating and comment captured after completion"""
    __tablename__ = "booking_feedback"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(
        Integer, ForeignKey("bookings.id", ondelete="CASCADE"), unique=True, index=True, nullable=False
    )
    rating = Column(Integer, nullable=True)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now())

    # Relationships
    booking = relationship("Booking", back_populates="feedback")
