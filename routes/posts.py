from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from models.Comment import Comment
from models.Post import Post
from models.PostLike import PostLike
from models.User import User
from schemas import PostWrite, PostUpdate, PostRead, CommentWrite, CommentRead
from database import get_db
from dependencies import get_current_user_id
from exceptions import NotFound, ValidationError

router = APIRouter(prefix="/posts", tags=["Posts"])

MAX_POST_LENGTH = 500
MAX_COMMENT_LENGTH = 1000


def _clean_content(content: Optional[str], limit: int) -> str:
    content = (content or "").strip()
    if not content:
        raise ValidationError("Content is required")
    if len(content) > limit:
        raise ValidationError(f"Content too long (max {limit} characters)")
    return content


def _visible_post(db: Session, user_id: str, post_id: int) -> Post:
    post = db.query(Post).filter(Post.id == post_id).first()
    # Private posts are only visible to their author
    if not post or (not post.is_public and post.author_id != user_id):
        raise NotFound("Post not found")
    return post


def _own_post(db: Session, user_id: str, post_id: int) -> Post:
    post = db.query(Post).filter(Post.id == post_id, Post.author_id == user_id).first()
    if not post:
        raise NotFound("Post not found")
    return post


@router.post("/", response_model=PostRead, status_code=status.HTTP_201_CREATED)
def create_post(payload: PostWrite, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    post = Post(
        author_id=user_id,
        content=_clean_content(payload.content, MAX_POST_LENGTH),
        is_public=payload.is_public,
    )
    db.add(post)
    db.commit()
    db.refresh(post)
    return post


@router.get("/", response_model=List[PostRead])
def list_posts(
    author_id: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Posts of one user (the current user by default), newest first"""
    author_id = author_id or user_id
    if not db.query(User.firebase_uid).filter(User.firebase_uid == author_id).first():
        raise NotFound("User not found")

    query = db.query(Post).filter(Post.author_id == author_id)
    if author_id != user_id:
        query = query.filter(Post.is_public.is_(True))
    return query.order_by(Post.created_at.desc(), Post.id.desc()).all()


@router.get("/{post_id}", response_model=PostRead)
def get_post(post_id: int, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return _visible_post(db, user_id, post_id)


@router.put("/{post_id}", response_model=PostRead)
def update_post(
    post_id: int,
    payload: PostUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    post = _own_post(db, user_id, post_id)
    data = payload.model_dump(exclude_unset=True)
    if "content" in data:
        post.content = _clean_content(data["content"], MAX_POST_LENGTH)
    if data.get("is_public") is not None:
        post.is_public = data["is_public"]
    db.commit()
    db.refresh(post)
    return post


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_post(post_id: int, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    post = _own_post(db, user_id, post_id)
    db.delete(post)
    db.commit()


@router.post("/{post_id}/like")
def toggle_like(post_id: int, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """Like the post, or remove the like if it is already there"""
    post = _visible_post(db, user_id, post_id)
    like = db.query(PostLike).filter(
        PostLike.post_id == post_id,
        PostLike.user_id == user_id,
    ).first()

    if like:
        db.delete(like)
        post.likes_count = max(0, post.likes_count - 1)
    else:
        db.add(PostLike(post_id=post_id, user_id=user_id))
        post.likes_count += 1
    db.commit()
    return {"liked": like is None, "likesCount": post.likes_count}


@router.get("/{post_id}/comments", response_model=List[CommentRead])
def list_comments(post_id: int, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    _visible_post(db, user_id, post_id)
    return (
        db.query(Comment)
        .filter(Comment.post_id == post_id)
        .order_by(Comment.created_at, Comment.id)
        .all()
    )


@router.post("/{post_id}/comments", response_model=CommentRead, status_code=status.HTTP_201_CREATED)
def add_comment(
    post_id: int,
    payload: CommentWrite,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    post = _visible_post(db, user_id, post_id)
    comment = Comment(
        post_id=post_id,
        author_id=user_id,
        content=_clean_content(payload.content, MAX_COMMENT_LENGTH),
    )
    db.add(comment)
    post.comments_count += 1
    db.commit()
    db.refresh(comment)
    return comment
