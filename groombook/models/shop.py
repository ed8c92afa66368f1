from sqlalchemy import Column, Integer, String, DateTime, Text, func
from sqlalchemy.orm import relationship
from groombook.database import Base


class Shop(Base):
    """A grooming location that owns a set of time slots"""
    __tablename__ = "shops"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    directions = Column(Text, nullable=True)  # Map link or free-text directions
    phone_number = Column(String(20), nullable=True)
    created_at = Column(DateTime, default=func.now())

    # Relationships
    time_slots = relationship("TimeSlot", back_populates="shop", cascade="all, delete-orphan")
