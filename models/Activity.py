from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Float, ForeignKey, Enum as SQLEnum, func
from sqlalchemy.orm import relationship
from database import Base
import enum

class ActivityType(enum.Enum):
    FLIGHT = "FLIGHT"
    HOTEL = "HOTEL"
    RESTAURANT = "RESTAURANT"
    ATTRACTION = "ATTRACTION"
    TRANSPORTATION = "TRANSPORTATION"
    EVENT = "EVENT"
    ACTIVITY = "ACTIVITY"
    SHOPPING = "SHOPPING"
    BEACH = "BEACH"
    HIKING = "HIKING"
    MUSEUM = "MUSEUM"
    CONCERT = "CONCERT"
    SPORTS = "SPORTS"

class ActivityStatus(enum.Enum):
    PLANNED = "PLANNED"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

class ActivityPriority(enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

class Activity(Base):
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=True)  # HH:MM
    end_time = Column(String(5), nullable=True)
    type = Column(SQLEnum(ActivityType), default=ActivityType.ACTIVITY, nullable=False)
    status = Column(SQLEnum(ActivityStatus), default=ActivityStatus.PLANNED, nullable=False)
    priority = Column(SQLEnum(ActivityPriority), default=ActivityPriority.MEDIUM, nullable=False)
    cost = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    trip = relationship("Trip", back_populates="activities")
    participants = relationship("ActivityParticipant", back_populates="activity", cascade="all, delete-orphan")
    memories = relationship("Memory", back_populates="activity")
