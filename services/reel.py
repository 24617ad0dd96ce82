import uuid
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from models import Reel, ReelComment, User
from schemas.reel import ReelCreate, ReelUpdate, ReelCommentCreate, ReelCommentUpdate, ReelResponse, ReelCommentResponse
from storage.base import BaseStorage
from utill.engagement import ReelTarget, ReelCommentTarget, delete_files, is_liked, toggle_like
from utils.exceptions import AuthorizationError, NotFoundError


def _get_reel_or_404(db: Session, reel_id: uuid.UUID) -> Reel:
    reel = db.query(Reel).options(selectinload(Reel.author)).filter(Reel.id == reel_id).first()
    if not reel:
        raise NotFoundError("Reel not found")
    return reel


def _get_own_reel(db: Session, reel_id: uuid.UUID, current_user: User) -> Reel:
    reel = _get_reel_or_404(db, reel_id)
    if reel.user_id != current_user.id:
        raise AuthorizationError("You can only modify your own reels")
    return reel


def _get_comment_or_404(db: Session, comment_id: uuid.UUID) -> ReelComment:
    comment = db.query(ReelComment).options(selectinload(ReelComment.author)).filter(ReelComment.id == comment_id).first()
    if not comment:
        raise NotFoundError("Comment not found")
    return comment


def _get_own_comment(db: Session, comment_id: uuid.UUID, current_user: User) -> ReelComment:
    comment = _get_comment_or_404(db, comment_id)
    if comment.user_id != current_user.id:
        raise AuthorizationError("You can only modify your own comments")
    return comment


def reel_view(db: Session, reel: Reel, viewer_id: Optional[uuid.UUID]) -> ReelResponse:
    model = ReelResponse.model_validate(reel)
    model.comments_count = db.query(func.count(ReelComment.id)).filter(ReelComment.reel_id == reel.id).scalar()
    model.is_liked = is_liked(db, viewer_id, ReelTarget(reel.id))
    return model


def reel_comment_view(db: Session, comment: ReelComment, viewer_id: Optional[uuid.UUID]) -> ReelCommentResponse:
    model = ReelCommentResponse.model_validate(comment)
    model.images = comment.images or []
    model.is_liked = is_liked(db, viewer_id, ReelCommentTarget(comment.id))
    return model


# ---------------------- 릴스 ----------------------
def get_reels(db: Session, page: int, limit: int, viewer: Optional[User] = None) -> Tuple[List[ReelResponse], int]:
    reels = (
        db.query(Reel)
        .options(selectinload(Reel.author))
        .order_by(Reel.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    total = db.query(func.count(Reel.id)).scalar()
    viewer_id = viewer.id if viewer else None
    return [reel_view(db, reel, viewer_id) for reel in reels], total


def get_reel_by_id(db: Session, reel_id: uuid.UUID, viewer: Optional[User] = None) -> ReelResponse:
    reel = _get_reel_or_404(db, reel_id)
    return reel_view(db, reel, viewer.id if viewer else None)


def create_reel(db: Session, current_user: User, data: ReelCreate) -> ReelResponse:
    reel = Reel(
        user_id=current_user.id,
        video_url=data.video_url,
        content=data.content,
        duration=data.duration,
    )
    db.add(reel)
    db.commit()
    db.refresh(reel)
    return reel_view(db, reel, current_user.id)


def update_reel(db: Session, reel_id: uuid.UUID, current_user: User, data: ReelUpdate) -> ReelResponse:
    reel = _get_own_reel(db, reel_id, current_user)
    reel.content = data.content
    db.commit()
    db.refresh(reel)
    return reel_view(db, reel, current_user.id)


def delete_reel(db: Session, reel_id: uuid.UUID, current_user: User, storage: BaseStorage) -> None:
    reel = _get_own_reel(db, reel_id, current_user)
    delete_files(storage, [reel.video_url])
    for comment in reel.comments:
        delete_files(storage, comment.images)
    db.delete(reel)
    db.commit()


def toggle_reel_like(db: Session, reel_id: uuid.UUID, current_user: User) -> dict:
    _get_reel_or_404(db, reel_id)
    liked, count = toggle_like(db, current_user.id, ReelTarget(reel_id))
    return {"liked": liked, "count": count}


# ---------------------- 릴스 댓글 ----------------------
def get_reel_comments(db: Session, reel_id: uuid.UUID, page: int, limit: int,
                      viewer: Optional[User] = None) -> Tuple[List[ReelCommentResponse], int]:
    _get_reel_or_404(db, reel_id)
    comments = (
        db.query(ReelComment)
        .options(selectinload(ReelComment.author))
        .filter(ReelComment.reel_id == reel_id)
        .order_by(ReelComment.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    total = db.query(func.count(ReelComment.id)).filter(ReelComment.reel_id == reel_id).scalar()
    viewer_id = viewer.id if viewer else None
    return [reel_comment_view(db, c, viewer_id) for c in comments], total


def create_reel_comment(db: Session, reel_id: uuid.UUID, current_user: User, data: ReelCommentCreate) -> ReelCommentResponse:
    _get_reel_or_404(db, reel_id)
    comment = ReelComment(
        reel_id=reel_id,
        user_id=current_user.id,
        content=data.content,
        images=data.images or [],
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return reel_comment_view(db, comment, current_user.id)


def update_reel_comment(db: Session, comment_id: uuid.UUID, current_user: User, data: ReelCommentUpdate) -> ReelCommentResponse:
    comment = _get_own_comment(db, comment_id, current_user)
    comment.content = data.content
    comment.images = data.images or []
    db.commit()
    db.refresh(comment)
    return reel_comment_view(db, comment, current_user.id)


def delete_reel_comment(db: Session, comment_id: uuid.UUID, current_user: User, storage: BaseStorage) -> None:
    comment = _get_own_comment(db, comment_id, current_user)
    delete_files(storage, comment.images)
    db.delete(comment)
    db.commit()


def toggle_reel_comment_like(db: Session, comment_id: uuid.UUID, current_user: User) -> dict:
    _get_comment_or_404(db, comment_id)
    liked, count = toggle_like(db, current_user.id, ReelCommentTarget(comment_id))
    return {"liked": liked, "count": count}
