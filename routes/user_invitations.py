from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session, joinedload

from models.Notification import Notification
from models.TripInvitation import TripInvitation, InvitationStatus
from models.TripMember import TripMember, MemberRole, MemberStatus
from models.User import User
from schemas import TripInvitationDetail, InvitationResponse
from database import get_db
from dependencies import get_current_user, get_clock
from exceptions import NotFound, ValidationError
from services.clock import Clock, as_utc
from services import notifications

router = APIRouter(prefix="/invitations", tags=["User Invitations"])


def _mark_invitation_notification(db: Session, user_id: str, invitation_id: int, new_status: InvitationStatus):
    rows = db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.type == notifications.INVITATION,
    ).all()
    for row in rows:
        data = dict(row.data or {})
        if data.get("invitation_id") == invitation_id:
            data["status"] = new_status.value
            row.data = data


def _respond(db: Session, user: User, invitation_id: int, accept: bool, clock: Clock) -> dict:
    invitation = db.query(TripInvitation).filter(
        TripInvitation.id == invitation_id,
        TripInvitation.invited_user_id == user.firebase_uid,
    ).first()

    if not invitation:
        raise NotFound("Invitation not found")

    if invitation.status != InvitationStatus.PENDING:
        raise ValidationError("This invitation has already been answered")

    now = clock.now()
    if now > as_utc(invitation.expires_at):
        raise ValidationError("This invitation has expired")

    trip = invitation.trip
    new_status = InvitationStatus.ACCEPTED if accept else InvitationStatus.REJECTED
    invitation.status = new_status
    invitation.responded_at = now

    if accept:
        member = db.query(TripMember).filter_by(trip_id=trip.id, user_id=user.firebase_uid).first()
        if member is None:
            member = TripMember(trip_id=trip.id, user_id=user.firebase_uid, role=MemberRole.MEMBER)
            db.add(member)
        member.status = MemberStatus.ACCEPTED
        member.joined_at = now

    user_name = user.name or user.username
    verb = "accepted" if accept else "declined"
    inviter = invitation.invited_by
    if inviter is not None:
        notifications.notify(
            db,
            inviter,
            notifications.INFO,
            title=f"Invitation {verb}",
            message=f'{user_name} {verb} your invitation to "{trip.title}"',
            data={"trip_id": trip.id, "trip_title": trip.title, "responded_by_name": user_name},
        )
    _mark_invitation_notification(db, user.firebase_uid, invitation.id, new_status)

    db.commit()
    notifications.send_pending(db)

    if accept:
        return {"message": "Invitation accepted", "trip_id": trip.id}
    return {"message": "Invitation declined", "trip_id": trip.id}


@router.get("/", response_model=List[TripInvitationDetail])
def list_my_invitations(
    status_filter: Optional[InvitationStatus] = Query(None, alias="status"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Invitations addressed to the current user"""
    query = db.query(TripInvitation).options(
        joinedload(TripInvitation.trip),
        joinedload(TripInvitation.invited_by),
    ).filter(
        TripInvitation.invited_user_id == user.firebase_uid
    )
    if status_filter:
        query = query.filter(TripInvitation.status == status_filter)
    return query.order_by(TripInvitation.created_at.desc()).all()


@router.post("/{invitation_id}/respond", status_code=status.HTTP_200_OK)
def respond_invitation(
    invitation_id: int,
    payload: InvitationResponse,
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    return _respond(db, user, invitation_id, payload.accept, clock)


@router.post("/{invitation_id}/accept", status_code=status.HTTP_200_OK)
def accept_invitation(
    invitation_id: int,
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    return _respond(db, user, invitation_id, True, clock)


@router.post("/{invitation_id}/reject", status_code=status.HTTP_200_OK)
def reject_invitation(
    invitation_id: int,
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    return _respond(db, user, invitation_id, False, clock)
