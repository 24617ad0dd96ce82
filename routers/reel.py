import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from starlette import status

from models import User
from schemas.reel import ReelCreate, ReelUpdate, ReelCommentCreate, ReelCommentUpdate
from database import get_db
from utils.auth import require_user
from utils.response import success, paginated
from storage.base import BaseStorage
from dependencies import get_storage_manager
from services import reel as reel_service

router = APIRouter(prefix="/api/reels", tags=["reels"])


# ---------------------- 릴스 ----------------------
@router.post("", status_code=status.HTTP_201_CREATED)
def create_reel(data: ReelCreate, db: Session = Depends(get_db), current_user: User = Depends(require_user)):
    reel = reel_service.create_reel(db, current_user, data)
    return success({"reel": reel}, "Reel created successfully", status.HTTP_201_CREATED)


@router.get("")
def get_reels(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100)
):
    reels, total = reel_service.get_reels(db, page, limit, current_user)
    return paginated(reels, page, limit, total, "Reels retrieved successfully")


# ---------------------- 릴스 댓글 ----------------------
@router.put("/comments/{comment_id}")
def update_reel_comment(comment_id: uuid.UUID, data: ReelCommentUpdate, db: Session = Depends(get_db), current_user: User = Depends(require_user)):
    comment = reel_service.update_reel_comment(db, comment_id, current_user, data)
    return success({"comment": comment}, "Comment updated successfully")


@router.delete("/comments/{comment_id}")
def delete_reel_comment(
    comment_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user),
    storage: BaseStorage = Depends(get_storage_manager)
):
    reel_service.delete_reel_comment(db, comment_id, current_user, storage)
    return success(None, "Comment deleted successfully")


@router.post("/comments/{comment_id}/like")
def toggle_reel_comment_like(comment_id: uuid.UUID, db: Session = Depends(get_db), current_user: User = Depends(require_user)):
    result = reel_service.toggle_reel_comment_like(db, comment_id, current_user)
    return success(result, "Comment liked" if result["liked"] else "Comment unliked")


# ---------------------- 릴스 상세 ----------------------
@router.get("/{reel_id}")
def get_reel(reel_id: uuid.UUID, db: Session = Depends(get_db), current_user: User = Depends(require_user)):
    reel = reel_service.get_reel_by_id(db, reel_id, current_user)
    return success({"reel": reel}, "Reel retrieved successfully")


@router.put("/{reel_id}")
def update_reel(reel_id: uuid.UUID, data: ReelUpdate, db: Session = Depends(get_db), current_user: User = Depends(require_user)):
    reel = reel_service.update_reel(db, reel_id, current_user, data)
    return success({"reel": reel}, "Reel updated successfully")


@router.delete("/{reel_id}")
def delete_reel(
    reel_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user),
    storage: BaseStorage = Depends(get_storage_manager)
):
    reel_service.delete_reel(db, reel_id, current_user, storage)
    return success(None, "Reel deleted successfully")


@router.post("/{reel_id}/like")
def toggle_reel_like(reel_id: uuid.UUID, db: Session = Depends(get_db), current_user: User = Depends(require_user)):
    result = reel_service.toggle_reel_like(db, reel_id, current_user)
    return success(result, "Reel liked" if result["liked"] else "Reel unliked")


@router.get("/{reel_id}/comments")
def get_reel_comments(
    reel_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100)
):
    comments, total = reel_service.get_reel_comments(db, reel_id, page, limit, current_user)
    return paginated(comments, page, limit, total, "Comments retrieved successfully")


@router.post("/{reel_id}/comments", status_code=status.HTTP_201_CREATED)
def create_reel_comment(reel_id: uuid.UUID, data: ReelCommentCreate, db: Session = Depends(get_db), current_user: User = Depends(require_user)):
    comment = reel_service.create_reel_comment(db, reel_id, current_user, data)
    return success({"comment": comment}, "Comment created successfully", status.HTTP_201_CREATED)
