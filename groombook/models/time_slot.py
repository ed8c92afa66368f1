from sqlalchemy import Column, Integer, String, DateTime, Time, Boolean, JSON, ForeignKey, func
from sqlalchemy.orm import relationship
from groombook.database import Base


class TimeSlot(Base):
    """Coarse start time offered by a shop"""
    __tablename__ = "time_slots"

    id = Column(Integer, primary_key=True, index=True)
    shop_id = Column(Integer, ForeignKey("shops.id", ondelete="CASCADE"), index=True, nullable=False)
    start_time = Column(Time, nullable=False)
    repeat_all_days = Column(Boolean, default=True)
    specific_days = Column(JSON, nullable=True)  # e.g. ["Monday", "Saturday"]
    created_at = Column(DateTime, default=func.now())

    # Relationships
    shop = relationship("Shop", back_populates="time_slots")
    sub_time_slots = relationship(
        "SubTimeSlot",
        back_populates="time_slot",
        cascade="all, delete-orphan",
        order_by="SubTimeSlot.slot_number",
    )


class SubTimeSlot(Base):
    """Bookable unit inside a time slot, one active booking at a time"""
    __tablename__ = "sub_time_slots"

    id = Column(Integer, primary_key=True, index=True)
    time_slot_id = Column(Integer, ForeignKey("time_slots.id", ondelete="CASCADE"), index=True, nullable=False)
    slot_number = Column(Integer, nullable=False)
    description = Column(String(255), nullable=True)

    # Relationships
    time_slot = relationship("TimeSlot", back_populates="sub_time_slots")

    @property
    def label(self) -> str:
        return self.description or f"Slot {self.slot_number}"
