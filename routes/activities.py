from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from sqlalchemy import or_, and_

from models.Activity import Activity
from models.ActivityParticipant import ActivityParticipant, ParticipantStatus
from models.Memory import Memory, CaptureType
from schemas import (
    ActivityWrite, ActivityUpdate, ActivityRead, ActivityDetail, MemoryRead,
    ParticipantRead, ParticipationWrite,
)
from database import get_db
from dependencies import get_current_user_id, get_clock
from exceptions import NotFound, ValidationError
from services.access import require_trip_access, READ_ROLES, WRITE_ROLES
from services.clock import Clock

# Nested under a trip for listing/creating, flat for the rest
router = APIRouter(prefix="/trips/{trip_id}/activities", tags=["Activities"])
router2 = APIRouter(prefix="/activities", tags=["Activities"])

PARTICIPATION_MESSAGES = {
    ParticipantStatus.GOING: "You are going to this activity",
    ParticipantStatus.MAYBE: "You might go to this activity",
    ParticipantStatus.NOT_GOING: "You are not going to this activity",
}


def _get_activity(db: Session, user_id: str, activity_id: int, roles=READ_ROLES) -> Activity:
    activity = db.query(Activity).filter(Activity.id == activity_id).first()
    if not activity:
        raise NotFound("Activity not found")
    require_trip_access(db, user_id, activity.trip_id, roles)
    return activity


def _check_activity_date(trip, day):
    if day < trip.start_date or day > trip.end_date:
        raise ValidationError("Activity date must be within the trip dates")


def _going_count(db: Session, activity_id: int) -> int:
    return db.query(ActivityParticipant).filter(
        ActivityParticipant.activity_id == activity_id,
        ActivityParticipant.status == ParticipantStatus.GOING,
    ).count()


def _has_activity_moments(db: Session, activity_id: int) -> bool:
    return db.query(Memory.id).filter(
        Memory.activity_id == activity_id,
        Memory.capture_type == CaptureType.ACTIVITY_MOMENT,
    ).first() is not None


@router.get("/", response_model=List[ActivityRead])
def list_activities(trip_id: int, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    require_trip_access(db, user_id, trip_id)
    return (
        db.query(Activity)
        .filter(Activity.trip_id == trip_id)
        .order_by(Activity.date, Activity.start_time, Activity.id)
        .all()
    )


@router.post("/", response_model=ActivityRead, status_code=status.HTTP_201_CREATED)
def create_activity(
    trip_id: int,
    payload: ActivityWrite,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    trip, _ = require_trip_access(db, user_id, trip_id, WRITE_ROLES)
    if not payload.title.strip():
        raise ValidationError("Title cannot be empty")
    _check_activity_date(trip, payload.date)

    activity = Activity(**payload.model_dump(), trip_id=trip_id)
    # The creator is going by default
    activity.participants.append(ActivityParticipant(user_id=user_id, status=ParticipantStatus.GOING))
    db.add(activity)
    db.commit()
    db.refresh(activity)
    return activity


@router2.get("/{activity_id}", response_model=ActivityDetail)
def get_activity(
    activity_id: int,
    user_id: str = Depends(get_current_user_id),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    """Activity with its photos: linked memories plus any trip photo taken that day"""
    activity = _get_activity(db, user_id, activity_id)
    start, end = clock.day_bounds(activity.date)
    memories = (
        db.query(Memory)
        .filter(or_(
            Memory.activity_id == activity.id,
            and_(
                Memory.trip_id == activity.trip_id,
                Memory.taken_at >= start,
                Memory.taken_at < end,
            ),
        ))
        .order_by(Memory.taken_at, Memory.id)
        .all()
    )
    detail = ActivityDetail.model_validate(activity)
    detail.memories = [MemoryRead.model_validate(m) for m in memories]
    return detail


@router2.put("/{activity_id}", response_model=ActivityRead)
def update_activity(
    activity_id: int,
    payload: ActivityUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    activity = _get_activity(db, user_id, activity_id, WRITE_ROLES)

    data = payload.model_dump(exclude_unset=True)
    if "title" in data and not (data["title"] or "").strip():
        raise ValidationError("Title cannot be empty")
    for key in ("date", "type", "status", "priority"):
        if key in data and data[key] is None:
            raise ValidationError(f"{key} cannot be empty")
    if "date" in data:
        _check_activity_date(activity.trip, data["date"])
        # Activity moments are counted against the activity's day
        if data["date"] != activity.date and _has_activity_moments(db, activity.id):
            raise ValidationError("The date of an activity with captured moments cannot be changed")

    for k, v in data.items():
        setattr(activity, k, v)
    db.commit()
    db.refresh(activity)
    return activity


@router2.delete("/{activity_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_activity(
    activity_id: int,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    activity = _get_activity(db, user_id, activity_id, WRITE_ROLES)
    # Photos stay in the trip gallery as plain uploads
    for memory in activity.memories:
        memory.activity_id = None
        memory.capture_type = None
        memory.capture_scope = None
        memory.capture_slot = None
    db.delete(activity)
    db.commit()


@router2.post("/{activity_id}/participate")
def set_participation(
    activity_id: int,
    payload: ParticipationWrite,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    _get_activity(db, user_id, activity_id)

    if payload.status is not None:
        new_status = payload.status
    elif payload.going is not None:
        new_status = ParticipantStatus.GOING if payload.going else ParticipantStatus.NOT_GOING
    else:
        raise ValidationError("Either status or going is required")

    participation = db.query(ActivityParticipant).filter_by(
        activity_id=activity_id, user_id=user_id
    ).first()
    if participation is None:
        participation = ActivityParticipant(activity_id=activity_id, user_id=user_id)
        db.add(participation)
    participation.status = new_status
    db.commit()
    db.refresh(participation)

    return {
        "participation": ParticipantRead.model_validate(participation).model_dump(mode="json"),
        "goingParticipantsCount": _going_count(db, activity_id),
        "message": PARTICIPATION_MESSAGES[new_status],
    }


@router2.get("/{activity_id}/participate")
def get_participation(
    activity_id: int,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    _get_activity(db, user_id, activity_id)
    participation = db.query(ActivityParticipant).filter_by(
        activity_id=activity_id, user_id=user_id
    ).first()
    return {
        "isGoing": participation is not None and participation.status == ParticipantStatus.GOING,
        "status": participation.status.value if participation else None,
        "goingParticipantsCount": _going_count(db, activity_id),
    }
