from datetime import timedelta
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session, joinedload

from models.Trip import Trip
from models.TripInvitation import TripInvitation, InvitationStatus
from models.TripMember import TripMember, MemberStatus
from models.User import User
from schemas import TripInvitationWrite, TripInvitationRead, TripInvitationByUsername, TripInvitationForFriend
from database import get_db
from config import INVITATION_TTL_DAYS
from dependencies import get_current_user, get_clock
from exceptions import Conflict, Forbidden, NotFound, ValidationError
from services.access import require_trip_access, WRITE_ROLES
from services.clock import Clock, as_utc
from services import friends, notifications

router = APIRouter(prefix="/trips/{trip_id}/invitations", tags=["Trip Invitations"])


def _invite(
    db: Session,
    trip: Trip,
    inviter: User,
    invited_user: User,
    message: Optional[str],
    clock: Clock,
) -> TripInvitation:
    """Create a pending invitation, notify the invitee and commit"""
    if invited_user.firebase_uid == inviter.firebase_uid:
        raise ValidationError("You cannot invite yourself")

    existing_member = db.query(TripMember).filter(
        TripMember.trip_id == trip.id,
        TripMember.user_id == invited_user.firebase_uid,
        TripMember.status == MemberStatus.ACCEPTED,
    ).first()
    if existing_member or invited_user.firebase_uid == trip.owner_id:
        raise Conflict("This user is already a member of the trip")

    now = clock.now()
    pending = db.query(TripInvitation).filter(
        TripInvitation.trip_id == trip.id,
        TripInvitation.invited_user_id == invited_user.firebase_uid,
        TripInvitation.status == InvitationStatus.PENDING,
    ).first()
    if pending:
        if as_utc(pending.expires_at) > now:
            raise Conflict("This user already has a pending invitation")
        # Expired invitations are replaced
        db.delete(pending)
        db.flush()

    invitation = TripInvitation(
        trip_id=trip.id,
        invited_user_id=invited_user.firebase_uid,
        invited_by_id=inviter.firebase_uid,
        message=message,
        status=InvitationStatus.PENDING,
        expires_at=as_utc(now + timedelta(days=INVITATION_TTL_DAYS)),
    )
    db.add(invitation)
    db.flush()

    inviter_name = inviter.name or inviter.username
    notifications.notify(
        db,
        invited_user,
        notifications.INVITATION,
        title="Trip invitation",
        message=f'{inviter_name} invited you to the trip "{trip.title}"',
        data={
            "invitation_id": invitation.id,
            "trip_id": trip.id,
            "trip_title": trip.title,
            "invited_by_name": inviter_name,
            "status": InvitationStatus.PENDING.value,
        },
    )
    db.commit()
    notifications.send_pending(db)
    db.refresh(invitation)
    return invitation


@router.post("/", response_model=TripInvitationRead, status_code=status.HTTP_201_CREATED)
def create_invitation(
    trip_id: int,
    payload: TripInvitationWrite,
    inviter: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    """Invite a registered user to the trip by email"""
    trip, _ = require_trip_access(db, inviter.firebase_uid, trip_id, WRITE_ROLES)

    invited_user = db.query(User).filter(User.email == payload.email).first()
    if not invited_user:
        raise NotFound("No user found with that email")
    return _invite(db, trip, inviter, invited_user, payload.message, clock)


@router.post("/by-username", response_model=TripInvitationRead, status_code=status.HTTP_201_CREATED)
def create_invitation_by_username(
    trip_id: int,
    payload: TripInvitationByUsername,
    inviter: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    trip, _ = require_trip_access(db, inviter.firebase_uid, trip_id, WRITE_ROLES)

    username = payload.username.strip().lstrip("@")
    invited_user = db.query(User).filter(User.username == username).first()
    if not invited_user:
        raise NotFound("No user found with that username")
    return _invite(db, trip, inviter, invited_user, payload.message, clock)


@router.post("/friend", response_model=TripInvitationRead, status_code=status.HTTP_201_CREATED)
def invite_friend(
    trip_id: int,
    payload: TripInvitationForFriend,
    inviter: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    """Invite one of the current user's friends"""
    trip, _ = require_trip_access(db, inviter.firebase_uid, trip_id, WRITE_ROLES)

    if not friends.are_friends(db, inviter.firebase_uid, payload.friend_id):
        raise Forbidden("This user is not your friend")
    friend = db.query(User).filter(User.firebase_uid == payload.friend_id).first()
    if not friend:
        raise NotFound("Friend not found")
    return _invite(db, trip, inviter, friend, payload.message, clock)


@router.get("/", response_model=List[TripInvitationRead])
def list_invitations(
    trip_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List every invitation sent for a trip"""
    require_trip_access(db, user.firebase_uid, trip_id, WRITE_ROLES)
    return db.query(TripInvitation).options(
        joinedload(TripInvitation.invited_by),
        joinedload(TripInvitation.invited_user)
    ).filter(
        TripInvitation.trip_id == trip_id
    ).order_by(TripInvitation.created_at.desc()).all()


@router.delete("/{invitation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invitation(
    trip_id: int,
    invitation_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Withdraw an invitation (the inviter or the trip owner)"""
    _, access = require_trip_access(db, user.firebase_uid, trip_id)
    invitation = db.query(TripInvitation).filter(
        TripInvitation.id == invitation_id,
        TripInvitation.trip_id == trip_id,
    ).first()
    if not invitation:
        raise NotFound("Invitation not found")

    if invitation.invited_by_id != user.firebase_uid and not access.is_owner:
        raise Forbidden("You don't have permission to delete this invitation")

    db.delete(invitation)
    db.commit()
