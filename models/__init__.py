# Import every model so relationship() string targets resolve on first use
from models.User import User
from models.TripMember import TripMember, MemberRole, MemberStatus
from models.Trip import Trip
from models.TripInvitation import TripInvitation, InvitationStatus
from models.Activity import Activity, ActivityType, ActivityStatus, ActivityPriority
from models.ActivityParticipant import ActivityParticipant, ParticipantStatus
from models.Memory import Memory, CaptureType
from models.Notification import Notification
from models.FriendRequest import FriendRequest, FriendRequestStatus
from models.Friendship import Friendship
from models.Post import Post
from models.PostLike import PostLike
from models.Comment import Comment

__all__ = [
    "User",
    "Trip",
    "TripMember",
    "MemberRole",
    "MemberStatus",
    "TripInvitation",
    "InvitationStatus",
    "Activity",
    "ActivityType",
    "ActivityStatus",
    "ActivityPriority",
    "ActivityParticipant",
    "ParticipantStatus",
    "Memory",
    "CaptureType",
    "Notification",
    "FriendRequest",
    "FriendRequestStatus",
    "Friendship",
    "Post",
    "PostLike",
    "Comment",
]
