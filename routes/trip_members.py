from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from models.TripMember import TripMember, MemberRole
from schemas import TripMemberRead, TripMemberRoleUpdate
from database import get_db
from dependencies import get_current_user_id
from exceptions import NotFound, ValidationError
from services.access import require_trip_access, OWNER_ONLY
from services import notifications

router = APIRouter(prefix="/trips/{trip_id}/members", tags=["Trip Members"])


def _get_member(db: Session, trip_id: int, member_id: int) -> TripMember:
    tm = db.query(TripMember).filter_by(id=member_id, trip_id=trip_id).first()
    if not tm:
        raise NotFound("Member not found")
    return tm


@router.get("/", response_model=List[TripMemberRead])
def list_members(trip_id: int, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    require_trip_access(db, user_id, trip_id)
    return (
        db.query(TripMember)
        .filter(TripMember.trip_id == trip_id)
        .order_by(TripMember.created_at, TripMember.id)
        .all()
    )


@router.patch("/{member_id}", response_model=TripMemberRead)
def update_member_role(
    trip_id: int,
    member_id: int,
    payload: TripMemberRoleUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    trip, _ = require_trip_access(db, user_id, trip_id, OWNER_ONLY)
    tm = _get_member(db, trip_id, member_id)

    if tm.user_id == trip.owner_id:
        raise ValidationError("The owner's role cannot be changed")
    if payload.role == MemberRole.OWNER:
        raise ValidationError("Ownership cannot be transferred")

    tm.role = payload.role
    db.commit()
    db.refresh(tm)
    return tm


@router.delete("/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    trip_id: int,
    member_id: int,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    trip, _ = require_trip_access(db, user_id, trip_id, OWNER_ONLY)
    tm = _get_member(db, trip_id, member_id)

    if tm.user_id == trip.owner_id:
        raise ValidationError("The owner cannot be removed. Delete the trip instead")

    removed_user = tm.user
    db.delete(tm)
    notifications.notify(
        db,
        removed_user,
        notifications.INFO,
        title="Removed from trip",
        message=f'You were removed from the trip "{trip.title}"',
        data={"trip_id": trip.id, "trip_title": trip.title},
    )
    db.commit()
    notifications.send_pending(db)
