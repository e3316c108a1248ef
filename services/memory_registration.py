"""
Admission of photo batches as Memory rows.

A batch is all-or-nothing: either every photo is committed or none is. For
capture batches (DAILY_MOMENT / ACTIVITY_MOMENT) the allowance is read and
the rows are inserted in one transaction, after locking the author's
membership row so captures by the same author in the same trip serialize.
The per-scope slot constraint on ``memories`` backs this up on databases
without row locks.
"""
import logging
from datetime import timezone
from typing import List, Optional, Sequence, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, lazyload

from exceptions import NotFound, QuotaExceeded, ValidationError
from models.Activity import Activity
from models.Memory import Memory, CaptureType
from models.Trip import Trip
from models.TripMember import TripMember
from services import capture_quota
from services.access import require_trip_access
from services.capture_quota import CaptureScope
from services.clock import Clock
from services.storage import PhotoStorage, PhotoUpload, validate_photo

logger = logging.getLogger(__name__)

MEMORY_TITLES = {
    CaptureType.DAILY_MOMENT: "Moment of the day",
    CaptureType.ACTIVITY_MOMENT: "Activity moment",
    None: "Trip photo",
}


def parse_capture_type(value: Union[str, CaptureType, None]) -> Optional[CaptureType]:
    if value is None or isinstance(value, CaptureType):
        return value
    value = value.strip().upper()
    if not value or value == "NONE":
        return None
    try:
        return CaptureType(value)
    except ValueError:
        raise ValidationError(f"Invalid capture type: {value}")


def _lock_author_captures(db: Session, trip_id: int, subject_id: str) -> None:
    member = db.query(TripMember).filter(
        TripMember.trip_id == trip_id,
        TripMember.user_id == subject_id,
    ).options(lazyload("*")).with_for_update().first()
    if member is None:
        # owners of trips created before owner rows existed
        db.query(Trip).options(lazyload("*")).filter(Trip.id == trip_id).with_for_update().first()


def _discard(storage: PhotoStorage, urls: Sequence[str]) -> None:
    for url in urls:
        storage.delete(url)


def register_batch(
    db: Session,
    subject_id: str,
    trip_id: int,
    photos: Sequence[PhotoUpload],
    *,
    clock: Clock,
    storage: PhotoStorage,
    capture_type: Union[str, CaptureType, None] = None,
    activity_id: Optional[int] = None,
) -> List[Memory]:
    require_trip_access(db, subject_id, trip_id)

    if not photos:
        raise ValidationError("At least one photo is required")
    for photo in photos:
        validate_photo(photo)

    capture_type = parse_capture_type(capture_type)
    now = clock.now()
    today = clock.local_date(now)

    scope = None
    if capture_type == CaptureType.ACTIVITY_MOMENT:
        if activity_id is None:
            raise ValidationError("activity_id is required for activity moments")
        capture_quota.validate_activity_scope(db, trip_id, activity_id, today)
        scope = CaptureScope(subject_id, trip_id, today, capture_type, activity_id)
    elif capture_type == CaptureType.DAILY_MOMENT:
        if activity_id is not None:
            raise ValidationError("Daily moments cannot be linked to an activity")
        scope = CaptureScope(subject_id, trip_id, today, capture_type)
    elif activity_id is not None:
        exists = db.query(Activity.id).filter(
            Activity.id == activity_id,
            Activity.trip_id == trip_id,
        ).first()
        if not exists:
            raise NotFound("Activity not found")

    slots: List[Optional[int]] = [None] * len(photos)
    if scope is not None:
        try:
            _lock_author_captures(db, trip_id, subject_id)
            slots = capture_quota.reserve(db, scope, len(photos), clock)
        except QuotaExceeded:
            db.rollback()
            raise

    stored: List[str] = []
    memories: List[Memory] = []
    try:
        for photo, slot in zip(photos, slots):
            url = storage.save(photo)
            stored.append(url)
            memory = Memory(
                trip_id=trip_id,
                author_id=subject_id,
                activity_id=activity_id,
                title=MEMORY_TITLES[capture_type],
                description="",
                image_url=url,
                taken_at=now.astimezone(timezone.utc),
                capture_type=capture_type,
                capture_day=today if scope else None,
                capture_scope=scope.key if scope else None,
                capture_slot=slot,
                tags=["capture"] if scope else [],
                is_favorite=False,
            )
            db.add(memory)
            memories.append(memory)
        db.commit()
    except IntegrityError:
        db.rollback()
        _discard(storage, stored)
        if scope is None:
            raise
        left = capture_quota.remaining(db, scope, clock)
        logger.info("Capture slot conflict for %s on trip %s (%s); %s left",
                    subject_id, trip_id, scope.key, left)
        raise QuotaExceeded(left)
    except Exception:
        db.rollback()
        _discard(storage, stored)
        logger.exception("Failed to store %d photo(s) for trip %s", len(photos), trip_id)
        raise

    for memory in memories:
        db.refresh(memory)
    logger.info("Registered %d memories for %s on trip %s (capture=%s)",
                len(memories), subject_id, trip_id, capture_type.value if capture_type else None)
    return memories
