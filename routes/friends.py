from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from models.FriendRequest import FriendRequest, FriendRequestStatus
from models.Friendship import Friendship
from models.User import User
from schemas import FriendRequestWrite, FriendRequestRead, FriendRequestResponse, UserSummary
from database import get_db
from dependencies import get_current_user, get_current_user_id, get_clock
from exceptions import Conflict, NotFound, ValidationError
from services.clock import Clock
from services import friends, notifications

router = APIRouter(prefix="/friends", tags=["Friends"])


@router.post("/request", response_model=FriendRequestRead, status_code=status.HTTP_201_CREATED)
def send_friend_request(
    payload: FriendRequestWrite,
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    if payload.user_id == user.firebase_uid:
        raise ValidationError("You cannot send a friend request to yourself")

    target = db.query(User).filter(User.firebase_uid == payload.user_id).first()
    if not target:
        raise NotFound("User not found")

    if friends.are_friends(db, user.firebase_uid, target.firebase_uid):
        raise Conflict("This user is already your friend")
    if friends.pending_request(db, target.firebase_uid, user.firebase_uid):
        raise Conflict("This user already sent you a friend request")

    request = db.query(FriendRequest).filter_by(
        sender_id=user.firebase_uid, receiver_id=target.firebase_uid
    ).first()
    if request and request.status == FriendRequestStatus.PENDING:
        raise Conflict("Friend request already sent")
    if request is None:
        request = FriendRequest(sender_id=user.firebase_uid, receiver_id=target.firebase_uid)
        db.add(request)
    else:
        # A declined request can be sent again
        request.created_at = clock.now()
        request.responded_at = None
    request.status = FriendRequestStatus.PENDING
    db.flush()

    sender_name = user.name or user.username
    notifications.notify(
        db,
        target,
        notifications.FRIEND_REQUEST,
        title="New friend request",
        message=f"{sender_name} wants to add you as a friend",
        data={"request_id": request.id, "sender_id": user.firebase_uid, "sender_name": sender_name},
    )
    db.commit()
    notifications.send_pending(db)
    db.refresh(request)
    return request


@router.post("/respond")
def respond_friend_request(
    payload: FriendRequestResponse,
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    request = db.query(FriendRequest).filter(
        FriendRequest.id == payload.request_id,
        FriendRequest.receiver_id == user.firebase_uid,
        FriendRequest.status == FriendRequestStatus.PENDING,
    ).first()
    if not request:
        raise NotFound("Friend request not found")

    request.responded_at = clock.now()
    if not payload.accept:
        request.status = FriendRequestStatus.REJECTED
        db.commit()
        return {"message": "Friend request declined"}

    request.status = FriendRequestStatus.ACCEPTED
    if not friends.are_friends(db, request.sender_id, user.firebase_uid):
        user1_id, user2_id = friends.ordered_pair(request.sender_id, user.firebase_uid)
        db.add(Friendship(user1_id=user1_id, user2_id=user2_id))

    friend_name = user.name or user.username
    notifications.notify(
        db,
        request.sender,
        notifications.FRIEND_REQUEST_ACCEPTED,
        title="Friend request accepted",
        message=f"{friend_name} accepted your friend request",
        data={"friend_id": user.firebase_uid, "friend_name": friend_name},
    )
    db.commit()
    notifications.send_pending(db)
    return {
        "message": "Friend request accepted",
        "friend": UserSummary.model_validate(request.sender).model_dump(),
    }


@router.get("/", response_model=List[UserSummary])
def list_my_friends(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return friends.list_friends(db, user_id)


@router.get("/requests", response_model=List[FriendRequestRead])
def list_incoming_requests(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """Pending requests addressed to the current user"""
    return db.query(FriendRequest).filter(
        FriendRequest.receiver_id == user_id,
        FriendRequest.status == FriendRequestStatus.PENDING,
    ).order_by(FriendRequest.created_at.desc(), FriendRequest.id.desc()).all()


@router.get("/status/{other_id}")
def friendship_status(other_id: str, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    if not db.query(User.firebase_uid).filter(User.firebase_uid == other_id).first():
        raise NotFound("User not found")
    return {"status": friends.relationship_status(db, user_id, other_id)}
