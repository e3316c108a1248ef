"""
Per-day capture quotas for "moment" photos.

Two scopes are tracked for every (author, trip, local day):

* daily scope    - DAILY_MOMENT memories with no activity link
* activity scope - ACTIVITY_MOMENT memories linked to one activity, only
                   usable on the day the activity is scheduled

The allowance is always recomputed from committed Memory rows. Each capture
also occupies a numbered slot (1..cap) that is unique per scope, so the
database rejects any commit that would push a scope past its cap.
"""
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from config import CAPTURE_ACTIVITY_LIMIT, CAPTURE_DAILY_LIMIT
from exceptions import InvalidScope, NotFound, QuotaExceeded
from models.Activity import Activity
from models.Memory import Memory, CaptureType
from services.clock import Clock

DAILY_SCOPE_KEY = "daily"


@dataclass(frozen=True)
class CaptureScope:
    subject_id: str
    trip_id: int
    day: date
    capture_type: CaptureType
    activity_id: Optional[int] = None

    @property
    def key(self) -> str:
        if self.capture_type == CaptureType.ACTIVITY_MOMENT:
            return f"activity:{self.activity_id}"
        return DAILY_SCOPE_KEY

    @property
    def cap(self) -> int:
        if self.capture_type == CaptureType.ACTIVITY_MOMENT:
            return CAPTURE_ACTIVITY_LIMIT
        return CAPTURE_DAILY_LIMIT


def used(db: Session, scope: CaptureScope, clock: Clock) -> int:
    """Committed captures of the scope taken during its local day."""
    start, end = clock.day_bounds(scope.day)
    query = db.query(Memory).filter(
        Memory.author_id == scope.subject_id,
        Memory.trip_id == scope.trip_id,
        Memory.capture_type == scope.capture_type,
        Memory.taken_at >= start,
        Memory.taken_at < end,
    )
    if scope.capture_type == CaptureType.ACTIVITY_MOMENT:
        query = query.filter(Memory.activity_id == scope.activity_id)
    else:
        query = query.filter(Memory.activity_id.is_(None))
    return query.count()


def remaining(db: Session, scope: CaptureScope, clock: Clock) -> int:
    return max(0, scope.cap - used(db, scope, clock))


def free_slots(db: Session, scope: CaptureScope) -> List[int]:
    rows = db.query(Memory.capture_slot).filter(
        Memory.author_id == scope.subject_id,
        Memory.trip_id == scope.trip_id,
        Memory.capture_day == scope.day,
        Memory.capture_scope == scope.key,
    ).all()
    taken = {slot for (slot,) in rows}
    return [slot for slot in range(1, scope.cap + 1) if slot not in taken]


def reserve(db: Session, scope: CaptureScope, count: int, clock: Clock) -> List[int]:
    """Slot numbers for `count` new captures, or QuotaExceeded.

    Nothing is written here; the slots are claimed by the Memory rows the
    caller inserts in the same transaction.
    """
    left = remaining(db, scope, clock)
    if count > left:
        raise QuotaExceeded(left)
    slots = free_slots(db, scope)
    if count > len(slots):
        raise QuotaExceeded(len(slots))
    return slots[:count]


def validate_activity_scope(db: Session, trip_id: int, activity_id: int, today: date) -> Activity:
    activity = db.query(Activity).filter(
        Activity.id == activity_id,
        Activity.trip_id == trip_id,
    ).first()
    if not activity:
        raise NotFound("Activity not found")
    if activity.date != today:
        raise InvalidScope("Activity moments can only be captured on the day of the activity")
    return activity


def limits(db: Session, subject_id: str, trip_id: int, clock: Clock) -> dict:
    today = clock.today()

    daily = CaptureScope(subject_id, trip_id, today, CaptureType.DAILY_MOMENT)
    daily_used = used(db, daily, clock)

    activities = db.query(Activity).filter(
        Activity.trip_id == trip_id,
        Activity.date == today,
    ).order_by(Activity.id).all()

    activity_limits = []
    for activity in activities:
        scope = CaptureScope(subject_id, trip_id, today, CaptureType.ACTIVITY_MOMENT, activity.id)
        count = used(db, scope, clock)
        activity_limits.append({
            "activityId": activity.id,
            "title": activity.title,
            "used": count,
            "total": scope.cap,
            "remaining": max(0, scope.cap - count),
        })

    return {
        "daily": {
            "used": daily_used,
            "total": daily.cap,
            "remaining": max(0, daily.cap - daily_used),
        },
        "activities": activity_limits,
    }
