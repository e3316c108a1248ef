from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from sqlalchemy import or_

from models.User import User
from schemas import UserWrite, UserRead, UserUpdate, FCMTokenUpdate
from database import get_db
from dependencies import get_current_user, get_token_subject
from exceptions import Conflict, ValidationError

router = APIRouter(prefix="/users", tags=["Users"])


@router.post(
    "/",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
)
def create_user(
    payload: UserWrite,
    firebase_uid: str = Depends(get_token_subject),
    db: Session = Depends(get_db),
):
    """Register the profile for the verified account"""
    exists = db.query(User).filter(
        or_(User.firebase_uid == firebase_uid, User.username == payload.username, User.email == payload.email)
    ).first()
    if exists:
        raise Conflict("UID, username or email already exists")

    new_user = User(firebase_uid=firebase_uid, **payload.model_dump())
    db.add(new_user)
    db.commit()
    db.refresh(new_user)
    return new_user


@router.get("/me", response_model=UserRead)
def get_me(user: User = Depends(get_current_user)):
    return user


@router.patch("/me", response_model=UserRead)
def update_me(
    user_update: UserUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    update_data = user_update.model_dump(exclude_unset=True)
    if "username" in update_data:
        username = (update_data["username"] or "").strip()
        if not username:
            raise ValidationError("Username cannot be empty")
        taken = db.query(User).filter(
            User.username == username,
            User.firebase_uid != user.firebase_uid,
        ).first()
        if taken:
            raise Conflict("Username already exists")
        update_data["username"] = username

    for key, value in update_data.items():
        setattr(user, key, value)

    db.commit()
    db.refresh(user)
    return user


@router.put("/me/fcm-token", status_code=status.HTTP_200_OK)
def update_fcm_token(
    payload: FCMTokenUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Store (or clear) the device token used for push notifications"""
    user.fcm_token = payload.fcm_token
    db.commit()
    return {"message": "FCM token updated"}
