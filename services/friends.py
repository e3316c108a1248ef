"""Friendship lookups shared by the friends and trip invitation routes."""
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from models.FriendRequest import FriendRequest, FriendRequestStatus
from models.Friendship import Friendship
from models.User import User

FRIENDS = "friends"
PENDING = "pending"
INCOMING = "incoming"
NONE = "none"


def ordered_pair(a: str, b: str) -> Tuple[str, str]:
    return (a, b) if a < b else (b, a)


def get_friendship(db: Session, a: str, b: str) -> Optional[Friendship]:
    user1_id, user2_id = ordered_pair(a, b)
    return db.query(Friendship).filter_by(user1_id=user1_id, user2_id=user2_id).first()


def are_friends(db: Session, a: str, b: str) -> bool:
    return get_friendship(db, a, b) is not None


def pending_request(db: Session, sender_id: str, receiver_id: str) -> Optional[FriendRequest]:
    return db.query(FriendRequest).filter(
        FriendRequest.sender_id == sender_id,
        FriendRequest.receiver_id == receiver_id,
        FriendRequest.status == FriendRequestStatus.PENDING,
    ).first()


def relationship_status(db: Session, user_id: str, other_id: str) -> str:
    """friends, pending (sent by user_id), incoming (sent to user_id) or none"""
    if are_friends(db, user_id, other_id):
        return FRIENDS
    if pending_request(db, user_id, other_id):
        return PENDING
    if pending_request(db, other_id, user_id):
        return INCOMING
    return NONE


def list_friends(db: Session, user_id: str) -> List[User]:
    rows = db.query(Friendship).filter(
        (Friendship.user1_id == user_id) | (Friendship.user2_id == user_id)
    ).order_by(Friendship.created_at, Friendship.id).all()
    return [row.user2 if row.user1_id == user_id else row.user1 for row in rows]
