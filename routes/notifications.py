from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from models.Notification import Notification
from schemas import NotificationRead, NotificationsMarkRead
from database import get_db
from dependencies import get_current_user_id

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/", response_model=List[NotificationRead])
def list_notifications(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """Latest 50 notifications, newest first"""
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(50)
        .all()
    )


@router.put("/read")
def mark_read(
    payload: NotificationsMarkRead,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Mark the given notifications (or all of them) as read"""
    query = db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.is_read.is_(False),
    )
    if payload.notification_ids:
        query = query.filter(Notification.id.in_(payload.notification_ids))
    updated = query.update({Notification.is_read: True}, synchronize_session=False)
    db.commit()
    return {"message": "Notifications marked as read", "updated": updated}
