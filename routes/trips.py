from datetime import datetime, timezone
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from sqlalchemy import or_, and_

from models.Trip import Trip
from models.TripMember import TripMember, MemberRole, MemberStatus
from models.Activity import Activity
from models.Memory import Memory
from schemas import TripWrite, TripUpdate, TripRead, TripDetail, TripMemberRead, UserSummary
from database import get_db
from dependencies import get_current_user_id, get_clock, get_storage
from exceptions import ValidationError
from services.access import require_trip_access, WRITE_ROLES, OWNER_ONLY, TripAccess
from services.clock import Clock
from services.storage import PhotoStorage

router = APIRouter(prefix="/trips", tags=["Trips"])


def _trip_detail(db: Session, trip: Trip, access: TripAccess) -> TripDetail:
    detail = TripDetail.model_validate(trip)
    detail.owner = UserSummary.model_validate(trip.owner) if trip.owner else None
    detail.members = [TripMemberRead.model_validate(m) for m in trip.accepted_members]
    detail.role = access.role
    detail.activities_count = db.query(Activity).filter(Activity.trip_id == trip.id).count()
    detail.memories_count = db.query(Memory).filter(Memory.trip_id == trip.id).count()
    return detail


def _check_dates(start_date, end_date):
    if start_date >= end_date:
        raise ValidationError("Start date must be before end date")


@router.get("/", response_model=List[TripRead])
def list_my_trips(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """Trips the current user owns or has joined"""
    return (
        db.query(Trip)
        .outerjoin(TripMember, and_(
            TripMember.trip_id == Trip.id,
            TripMember.user_id == user_id,
            TripMember.status == MemberStatus.ACCEPTED,
        ))
        .filter(or_(Trip.owner_id == user_id, TripMember.id.isnot(None)))
        .order_by(Trip.start_date)
        .all()
    )


@router.post("/", response_model=TripDetail, status_code=status.HTTP_201_CREATED)
def create_trip(
    payload: TripWrite,
    user_id: str = Depends(get_current_user_id),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    _check_dates(payload.start_date, payload.end_date)
    if payload.start_date < clock.today():
        raise ValidationError("Start date cannot be in the past")

    trip = Trip(**payload.model_dump(), owner_id=user_id)
    # The owner is also an accepted member
    trip.members.append(TripMember(
        user_id=user_id,
        role=MemberRole.OWNER,
        status=MemberStatus.ACCEPTED,
        joined_at=datetime.now(timezone.utc),
    ))
    db.add(trip)
    db.commit()
    db.refresh(trip)
    return _trip_detail(db, trip, TripAccess(allowed=True, role=MemberRole.OWNER))


@router.get("/{trip_id}", response_model=TripDetail)
def get_trip(trip_id: int, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    trip, access = require_trip_access(db, user_id, trip_id)
    return _trip_detail(db, trip, access)


@router.patch("/{trip_id}", response_model=TripDetail)
def update_trip(
    trip_id: int,
    payload: TripUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    trip, access = require_trip_access(db, user_id, trip_id, WRITE_ROLES)

    data = payload.model_dump(exclude_unset=True)
    if "title" in data and not (data["title"] or "").strip():
        raise ValidationError("Title cannot be empty")
    for key in ("start_date", "end_date"):
        if key in data and data[key] is None:
            raise ValidationError(f"{key} cannot be empty")
    _check_dates(data.get("start_date", trip.start_date), data.get("end_date", trip.end_date))

    for k, v in data.items():
        setattr(trip, k, v)
    db.commit()
    db.refresh(trip)
    return _trip_detail(db, trip, access)


@router.delete("/{trip_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_trip(
    trip_id: int,
    user_id: str = Depends(get_current_user_id),
    storage: PhotoStorage = Depends(get_storage),
    db: Session = Depends(get_db),
):
    trip, _ = require_trip_access(db, user_id, trip_id, OWNER_ONLY)
    image_urls = [m.image_url for m in trip.memories]
    db.delete(trip)
    db.commit()
    for url in image_urls:
        storage.delete(url)
