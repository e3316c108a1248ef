from sqlalchemy import (
    Column, Integer, String, Text, Date, DateTime, Boolean, ForeignKey, JSON, UniqueConstraint,
    Enum as SQLEnum, func,
)
from sqlalchemy.orm import relationship
from database import Base
import enum

class CaptureType(enum.Enum):
    DAILY_MOMENT = "DAILY_MOMENT"
    ACTIVITY_MOMENT = "ACTIVITY_MOMENT"

class Memory(Base):
    __tablename__ = "memories"
    # A scope can never hold more committed captures than there are slot numbers
    __table_args__ = (
        UniqueConstraint(
            "author_id", "trip_id", "capture_day", "capture_scope", "capture_slot",
            name="uq_memory_capture_slot",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(String, ForeignKey("users.firebase_uid", ondelete="CASCADE"), nullable=False, index=True)
    activity_id = Column(Integer, ForeignKey("activities.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String(500), nullable=False)
    taken_at = Column(DateTime(timezone=True), nullable=False, index=True)
    capture_type = Column(SQLEnum(CaptureType), nullable=True, index=True)
    capture_day = Column(Date, nullable=True)
    capture_scope = Column(String(40), nullable=True)  # "daily" or "activity:<id>"
    capture_slot = Column(Integer, nullable=True)
    is_favorite = Column(Boolean, default=False, nullable=False)
    tags = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    trip = relationship("Trip", back_populates="memories")
    author = relationship("User", lazy="joined")
    activity = relationship("Activity", back_populates="memories")
