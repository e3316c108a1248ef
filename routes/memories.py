"""
Memory endpoints: capture quotas, photo batches, the trip gallery and
per-photo actions.
"""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session

from models.Memory import Memory, CaptureType
from schemas import CaptureLimits, MemoryBatchRead, MemoryRead, FavoriteUpdate
from database import get_db
from dependencies import get_current_user_id, get_clock, get_storage
from exceptions import NotFound, ValidationError
from services import capture_quota
from services.access import require_trip_access
from services.clock import Clock
from services.memory_registration import register_batch
from services.storage import PhotoStorage, PhotoUpload, read_limited

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/trips/{trip_id}", tags=["Memories"])
router2 = APIRouter(prefix="/memories", tags=["Memories"])

GALLERY_VIEWS = ("all", "capture", "activities")


def _read_uploads(photos: List[UploadFile]) -> List[PhotoUpload]:
    return [
        PhotoUpload(filename=p.filename or "", content_type=p.content_type, content=read_limited(p.file))
        for p in photos
    ]


def _batch_response(memories: List[Memory]) -> MemoryBatchRead:
    return MemoryBatchRead(
        message=f"{len(memories)} photo(s) saved",
        memories=[MemoryRead.model_validate(m) for m in memories],
    )


def _own_memory(db: Session, user_id: str, memory_id: int) -> Memory:
    memory = db.query(Memory).filter(Memory.id == memory_id).first()
    # Other people's photos look the same as missing ones
    if not memory or memory.author_id != user_id:
        raise NotFound("Memory not found")
    return memory


def _group_memories(view: str, memories: List[Memory], clock: Clock) -> dict:
    if view == "all":
        by_day = {}
        for memory in memories:
            key = clock.local_date(memory.taken_at).isoformat()
            by_day.setdefault(key, []).append(MemoryRead.model_validate(memory).model_dump(mode="json"))
        return {"byDay": by_day}

    if view == "activities":
        by_activity = {}
        for memory in memories:
            key = str(memory.activity_id)
            if key not in by_activity:
                by_activity[key] = {"title": memory.activity.title, "memories": []}
            by_activity[key]["memories"].append(MemoryRead.model_validate(memory).model_dump(mode="json"))
        return {"byActivity": by_activity}

    return {"memories": [MemoryRead.model_validate(m).model_dump(mode="json") for m in memories]}


@router.get("/memories/capture-limits", response_model=CaptureLimits)
def get_capture_limits(
    trip_id: int,
    user_id: str = Depends(get_current_user_id),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    """Today's remaining captures for the current user"""
    require_trip_access(db, user_id, trip_id)
    return capture_quota.limits(db, user_id, trip_id, clock)


@router.post("/memories/capture", response_model=MemoryBatchRead, status_code=status.HTTP_201_CREATED)
def capture_moments(
    trip_id: int,
    photos: List[UploadFile] = File(...),
    capture_type: str = Form(CaptureType.DAILY_MOMENT.value),
    activity_id: Optional[int] = Form(None),
    user_id: str = Depends(get_current_user_id),
    clock: Clock = Depends(get_clock),
    storage: PhotoStorage = Depends(get_storage),
    db: Session = Depends(get_db),
):
    """Quota-limited moment photos (3 per day, 3 per activity on its day)"""
    memories = register_batch(
        db, user_id, trip_id, _read_uploads(photos),
        clock=clock, storage=storage,
        capture_type=capture_type or CaptureType.DAILY_MOMENT.value,
        activity_id=activity_id,
    )
    return _batch_response(memories)


@router.post("/memories/upload", response_model=MemoryBatchRead, status_code=status.HTTP_201_CREATED)
def upload_memories(
    trip_id: int,
    photos: List[UploadFile] = File(...),
    capture_type: Optional[str] = Form(None),
    activity_id: Optional[int] = Form(None),
    user_id: str = Depends(get_current_user_id),
    clock: Clock = Depends(get_clock),
    storage: PhotoStorage = Depends(get_storage),
    db: Session = Depends(get_db),
):
    """Gallery upload; a capture_type makes the batch count against the quota"""
    memories = register_batch(
        db, user_id, trip_id, _read_uploads(photos),
        clock=clock, storage=storage,
        capture_type=capture_type,
        activity_id=activity_id,
    )
    return _batch_response(memories)


@router.get("/gallery")
def get_gallery(
    trip_id: int,
    view: str = "all",
    user_id: str = Depends(get_current_user_id),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    """Trip photos grouped by day, by activity, or only captures.

    Grouping problems return an empty gallery with an ``error`` field
    instead of a 500.
    """
    if view not in GALLERY_VIEWS:
        raise ValidationError(f"Unknown gallery view: {view}")
    require_trip_access(db, user_id, trip_id)

    try:
        query = db.query(Memory).filter(Memory.trip_id == trip_id)
        if view == "capture":
            query = query.filter(Memory.capture_type.isnot(None))
        elif view == "activities":
            query = query.filter(Memory.activity_id.isnot(None), Memory.capture_type.is_(None))
        memories = query.order_by(Memory.taken_at.desc(), Memory.id.desc()).all()
        grouped = _group_memories(view, memories, clock)
    except Exception:
        logger.exception("Gallery grouping failed for trip %s (view=%s)", trip_id, view)
        return {
            "view": view,
            "memories": {"byDay": {}, "byActivity": {}, "memories": []},
            "total": 0,
            "error": "Temporary error loading the gallery",
        }

    return {"view": view, "memories": grouped, "total": len(memories)}


@router2.put("/{memory_id}/favorite", response_model=MemoryRead)
def set_favorite(
    memory_id: int,
    payload: FavoriteUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    memory = _own_memory(db, user_id, memory_id)
    memory.is_favorite = payload.is_favorite
    db.commit()
    db.refresh(memory)
    return memory


@router2.delete("/{memory_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_memory(
    memory_id: int,
    user_id: str = Depends(get_current_user_id),
    storage: PhotoStorage = Depends(get_storage),
    db: Session = Depends(get_db),
):
    memory = _own_memory(db, user_id, memory_id)
    image_url = memory.image_url
    db.delete(memory)
    db.commit()
    storage.delete(image_url)
