from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, func, Boolean
from sqlalchemy.orm import relationship
from database import Base
from models.TripMember import MemberStatus

class Trip(Base):
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String, ForeignKey("users.firebase_uid", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(150), nullable=False)
    description = Column(Text)
    destination = Column(String(200), nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    cover_image = Column(String(500), nullable=True)
    is_public = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    owner = relationship("User", back_populates="owned_trips", lazy="joined")
    members = relationship("TripMember", back_populates="trip", cascade="all, delete-orphan")
    invitations = relationship("TripInvitation", back_populates="trip", cascade="all, delete-orphan")
    activities = relationship("Activity", back_populates="trip", cascade="all, delete-orphan",
                              order_by="Activity.date")
    memories = relationship("Memory", back_populates="trip", cascade="all, delete-orphan")

    @property
    def accepted_members(self):
        return [m for m in self.members if m.status == MemberStatus.ACCEPTED]
