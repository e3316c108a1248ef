from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
import datetime as dt
from datetime import date, datetime

from models.TripMember import MemberRole, MemberStatus
from models.TripInvitation import InvitationStatus
from models.Activity import ActivityType, ActivityStatus, ActivityPriority
from models.ActivityParticipant import ParticipantStatus
from models.Memory import CaptureType
from models.FriendRequest import FriendRequestStatus


# ---------- Users ----------
class UserBase(BaseModel):
    username: str
    email: EmailStr
    name: Optional[str] = None
    avatar_url: Optional[str] = None

class UserWrite(UserBase):
    pass

class UserUpdate(BaseModel):
    """Partial update for the current user"""
    username: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None

class UserRead(UserBase):
    firebase_uid: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class UserSummary(BaseModel):
    firebase_uid: str
    username: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True

class FCMTokenUpdate(BaseModel):
    fcm_token: Optional[str] = None


# ---------- Trips ----------
class TripBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None
    destination: Optional[str] = None
    start_date: date
    end_date: date
    cover_image: Optional[str] = None
    is_public: bool = False

class TripWrite(TripBase):
    @field_validator("title", "description", "destination")
    @classmethod
    def strip_text(cls, v):
        if v is None:
            return v
        return v.strip() or None

class TripUpdate(BaseModel):
    """Partial update (PATCH) - all fields optional"""
    title: Optional[str] = None
    description: Optional[str] = None
    destination: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    cover_image: Optional[str] = None
    is_public: Optional[bool] = None

class TripRead(TripBase):
    id: int
    owner_id: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ---------- Trip Members ----------
class TripMemberRead(BaseModel):
    id: int
    trip_id: int
    user_id: str
    role: MemberRole
    status: MemberStatus
    joined_at: Optional[datetime] = None
    user: Optional[UserSummary] = None

    class Config:
        from_attributes = True

class TripMemberRoleUpdate(BaseModel):
    role: MemberRole

class TripDetail(TripRead):
    owner: Optional[UserSummary] = None
    members: List[TripMemberRead] = []
    role: Optional[MemberRole] = None  # Caller's role in this trip
    activities_count: int = 0
    memories_count: int = 0


# ---------- Invitations ----------
class TripInvitationWrite(BaseModel):
    email: EmailStr
    message: Optional[str] = Field(None, max_length=500)

class TripInvitationRead(BaseModel):
    id: int
    trip_id: int
    invited_user_id: str
    invited_by_id: str
    status: InvitationStatus
    message: Optional[str] = None
    expires_at: datetime
    created_at: datetime
    responded_at: Optional[datetime] = None
    invited_user: Optional[UserSummary] = None
    invited_by: Optional[UserSummary] = None

    class Config:
        from_attributes = True

class TripSummary(BaseModel):
    id: int
    title: str
    destination: Optional[str] = None
    start_date: date
    end_date: date
    owner_id: str

    class Config:
        from_attributes = True

class TripInvitationDetail(TripInvitationRead):
    trip: Optional[TripSummary] = None

class TripInvitationByUsername(BaseModel):
    username: str
    message: Optional[str] = Field(None, max_length=500)

class TripInvitationForFriend(BaseModel):
    friend_id: str
    message: Optional[str] = Field(None, max_length=500)

class InvitationResponse(BaseModel):
    accept: bool


# ---------- Activities ----------
class ActivityBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None
    date: date
    start_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    end_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    type: ActivityType = ActivityType.ACTIVITY
    status: ActivityStatus = ActivityStatus.PLANNED
    priority: ActivityPriority = ActivityPriority.MEDIUM
    cost: Optional[float] = None
    notes: Optional[str] = None

    @field_validator("type", "status", "priority", mode="before")
    @classmethod
    def upper_enum(cls, v):
        return v.upper() if isinstance(v, str) else v

class ActivityWrite(ActivityBase):
    pass

class ActivityUpdate(BaseModel):
    """Partial update - all fields optional"""
    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[dt.date] = None
    start_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    end_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    type: Optional[ActivityType] = None
    status: Optional[ActivityStatus] = None
    priority: Optional[ActivityPriority] = None
    cost: Optional[float] = None
    notes: Optional[str] = None

    @field_validator("type", "status", "priority", mode="before")
    @classmethod
    def upper_enum(cls, v):
        return v.upper() if isinstance(v, str) else v

class ParticipantRead(BaseModel):
    user_id: str
    status: ParticipantStatus
    user: Optional[UserSummary] = None

    class Config:
        from_attributes = True

class ActivityRead(ActivityBase):
    id: int
    trip_id: int
    created_at: datetime
    participants: List[ParticipantRead] = []

    class Config:
        from_attributes = True

class ParticipationWrite(BaseModel):
    """Either `status` or the legacy `going` flag"""
    status: Optional[ParticipantStatus] = None
    going: Optional[bool] = None

    @field_validator("status", mode="before")
    @classmethod
    def upper_status(cls, v):
        return v.upper() if isinstance(v, str) else v


# ---------- Memories ----------
class MemoryRead(BaseModel):
    id: int
    trip_id: int
    author_id: str
    activity_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    image_url: str
    taken_at: datetime
    capture_type: Optional[CaptureType] = None
    is_favorite: bool
    tags: Optional[List[str]] = None
    created_at: datetime
    author: Optional[UserSummary] = None

    class Config:
        from_attributes = True

class ActivityDetail(ActivityRead):
    memories: List[MemoryRead] = []

class FavoriteUpdate(BaseModel):
    is_favorite: bool

class ScopeLimit(BaseModel):
    used: int
    total: int
    remaining: int

class ActivityScopeLimit(ScopeLimit):
    activityId: int
    title: str

class CaptureLimits(BaseModel):
    daily: ScopeLimit
    activities: List[ActivityScopeLimit] = []

class MemoryBatchRead(BaseModel):
    message: str
    memories: List[MemoryRead]


# ---------- Notifications ----------
class NotificationRead(BaseModel):
    id: int
    type: str
    title: str
    message: str
    data: Optional[dict] = None
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True

class NotificationsMarkRead(BaseModel):
    notification_ids: Optional[List[int]] = None


# ---------- Friends ----------
class FriendRequestWrite(BaseModel):
    user_id: str

class FriendRequestRead(BaseModel):
    id: int
    sender_id: str
    receiver_id: str
    status: FriendRequestStatus
    created_at: datetime
    responded_at: Optional[datetime] = None
    sender: Optional[UserSummary] = None
    receiver: Optional[UserSummary] = None

    class Config:
        from_attributes = True

class FriendRequestResponse(BaseModel):
    request_id: int
    accept: bool


# ---------- Posts ----------
class PostWrite(BaseModel):
    content: str
    is_public: bool = True

class PostUpdate(BaseModel):
    content: Optional[str] = None
    is_public: Optional[bool] = None

class PostRead(BaseModel):
    id: int
    author_id: str
    author: Optional[UserSummary] = None
    content: str
    is_public: bool
    likes_count: int
    comments_count: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class CommentWrite(BaseModel):
    content: str

class CommentRead(BaseModel):
    id: int
    post_id: int
    author_id: str
    author: Optional[UserSummary] = None
    content: str
    created_at: datetime

    class Config:
        from_attributes = True
