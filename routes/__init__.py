from . import users
from . import trips
from . import trip_members
from . import trip_invitations
from . import user_invitations
from . import activities
from . import memories
from . import notifications
from . import friends
from . import posts

__all__ = [
    "users",
    "trips",
    "trip_members",
    "trip_invitations",
    "user_invitations",
    "activities",
    "memories",
    "notifications",
    "friends",
    "posts",
]
