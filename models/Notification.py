from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from database import Base

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.firebase_uid", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(40), nullable=False)  # "invitation" | "info" | "friend_request" | "friend_request_accepted"
    title = Column(String(200), nullable=False)
    message = Column(String(500), nullable=False)
    data = Column(JSON, nullable=True)
    is_read = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="notifications")
