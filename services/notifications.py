"""In-app notifications, mirrored to push when the user has a device token.

Rows are added to the caller's session; pushes wait on ``session.info``
until the caller has committed and calls :func:`send_pending`.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from models.Notification import Notification
from models.User import User
from services.fcm_service import send_notification

logger = logging.getLogger(__name__)

INVITATION = "invitation"
INFO = "info"
FRIEND_REQUEST = "friend_request"
FRIEND_REQUEST_ACCEPTED = "friend_request_accepted"

PENDING_PUSHES = "pending_pushes"


def notify(
    db: Session,
    user: User,
    type: str,
    title: str,
    message: str,
    data: Optional[dict] = None,
    push: bool = True,
) -> Notification:
    """Add a notification row to the session; the caller commits."""
    notification = Notification(
        user_id=user.firebase_uid,
        type=type,
        title=title,
        message=message,
        data=data or {},
        is_read=False,
    )
    db.add(notification)
    if push and user.fcm_token:
        db.info.setdefault(PENDING_PUSHES, []).append({
            "user_id": user.firebase_uid,
            "fcm_token": user.fcm_token,
            "title": title,
            "body": message,
            "data": {"type": type, **(data or {})},
        })
    return notification


def send_pending(db: Session) -> int:
    """Deliver pushes queued by :func:`notify`. Call only after a successful commit."""
    pending = db.info.pop(PENDING_PUSHES, [])
    sent = 0
    for push in pending:
        if send_notification(
            fcm_token=push["fcm_token"],
            title=push["title"],
            body=push["body"],
            data=push["data"],
        ):
            sent += 1
        else:
            logger.info("Push for notification to %s was not delivered", push["user_id"])
    return sent
