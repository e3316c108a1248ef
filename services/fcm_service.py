import logging
import os
from typing import Optional

import firebase_admin
from firebase_admin import credentials, messaging
from firebase_admin import exceptions as firebase_exceptions

from config import FIREBASE_CREDENTIALS_PATH

logger = logging.getLogger(__name__)

_initialized = False


def initialize_firebase_admin() -> bool:
    """Initialize the Firebase Admin SDK once; returns whether it is usable."""
    global _initialized
    if _initialized:
        return True
    try:
        if firebase_admin._apps:
            _initialized = True
        elif os.path.exists(FIREBASE_CREDENTIALS_PATH):
            firebase_admin.initialize_app(credentials.Certificate(FIREBASE_CREDENTIALS_PATH))
            _initialized = True
            logger.info("Firebase Admin initialized with %s", FIREBASE_CREDENTIALS_PATH)
        elif os.getenv("GOOGLE_APPLICATION_CREDENTIALS"):
            firebase_admin.initialize_app()
            _initialized = True
            logger.info("Firebase Admin initialized from environment")
        else:
            logger.warning("Firebase credentials not found at %s; push and token checks are disabled",
                           FIREBASE_CREDENTIALS_PATH)
    except (ValueError, OSError) as e:
        logger.error("Error initializing Firebase Admin: %s", e)
        _initialized = False
    return _initialized


def send_notification(
    fcm_token: str,
    title: str,
    body: str,
    data: Optional[dict] = None
) -> bool:
    """Send a push notification to one device. Never raises."""
    if not fcm_token or not initialize_firebase_admin():
        return False

    try:
        message = messaging.Message(
            notification=messaging.Notification(
                title=title,
                body=body,
            ),
            data={k: str(v) for k, v in (data or {}).items()},
            token=fcm_token,
            apns=messaging.APNSConfig(
                payload=messaging.APNSPayload(
                    aps=messaging.Aps(
                        badge=1,
                        sound="default",
                    ),
                ),
            ),
            android=messaging.AndroidConfig(
                priority="high",
                notification=messaging.AndroidNotification(
                    sound="default",
                    channel_id="high_importance_channel",
                ),
            ),
        )
        response = messaging.send(message)
        logger.info("Push sent: %s", response)
        return True
    except (firebase_exceptions.FirebaseError, ValueError) as e:
        logger.warning("Error sending push notification: %s", e)
        return False
