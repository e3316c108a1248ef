"""
Access token verification.

Tokens are Firebase ID tokens; the verified ``uid`` is the user's primary
key (``users.firebase_uid``).
"""
import logging
from typing import Optional

from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions

from services.fcm_service import initialize_firebase_admin

logger = logging.getLogger(__name__)


def verify_access_token(token: str) -> Optional[str]:
    """Return the user id carried by `token`, or None if it is not valid."""
    if not token or not initialize_firebase_admin():
        return None
    try:
        decoded = firebase_auth.verify_id_token(token)
    except (ValueError, firebase_exceptions.FirebaseError) as e:
        logger.info("Rejected access token: %s", e)
        return None
    return decoded.get("uid")
