"""
Shared FastAPI dependencies: the authenticated user and the swappable
collaborators (token verifier, clock, photo storage).

Every protected route depends on ``get_current_user_id`` so a missing or
invalid session is always a 401, before any resource lookup happens.
"""
from typing import Callable, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from config import ACCESS_TOKEN_COOKIE
from database import get_db
from exceptions import Unauthorized
from models.User import User
from services.auth import verify_access_token
from services.clock import get_clock  # noqa: F401  re-exported for routes
from services.storage import get_storage  # noqa: F401

TokenVerifier = Callable[[str], Optional[str]]


def get_token_verifier() -> TokenVerifier:
    return verify_access_token


def _extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if token:
        return token
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return None


def get_token_subject(
    request: Request,
    authorization: Optional[str] = Header(None),
    verify: TokenVerifier = Depends(get_token_verifier),
) -> str:
    """Verified user id from the session cookie or bearer token."""
    token = _extract_token(request, authorization)
    if not token:
        raise Unauthorized("Not authenticated")
    user_id = verify(token)
    if not user_id:
        raise Unauthorized("Invalid token")
    return user_id


def get_current_user(
    user_id: str = Depends(get_token_subject),
    db: Session = Depends(get_db),
) -> User:
    user = db.query(User).filter(User.firebase_uid == user_id).first()
    if not user:
        raise Unauthorized("User profile not found")
    return user


def get_current_user_id(user: User = Depends(get_current_user)) -> str:
    return user.firebase_uid
