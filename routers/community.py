import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from starlette import status

from models import User
from schemas.community import PostCreate, PostUpdate, RetweetCreate, CommentCreate, CommentUpdate
from database import get_db
from utils.auth import require_user
from utils.response import success, paginated
from storage.base import BaseStorage
from dependencies import get_storage_manager
from services import community as community_service

router = APIRouter(prefix="/api/posts", tags=["posts"])


# ---------------------- 게시글 ----------------------
@router.post("", status_code=status.HTTP_201_CREATED)
def create_post(data: PostCreate, db: Session = Depends(get_db), current_user: User = Depends(require_user)):
    post = community_service.create_post(db, current_user, data)
    return success({"post": post}, "Post created successfully", status.HTTP_201_CREATED)


@router.post("/retweet", status_code=status.HTTP_201_CREATED)
def create_retweet(data: RetweetCreate, db: Session = Depends(get_db), current_user: User = Depends(require_user)):
    post = community_service.create_retweet(db, current_user, data)
    return success({"post": post}, "Retweet created successfully", status.HTTP_201_CREATED)


@router.get("")
def get_posts(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100)
):
    posts, total = community_service.get_posts(db, page, limit, current_user)
    return paginated(posts, page, limit, total, "Posts retrieved successfully")


# ---------------------- 댓글 ----------------------
@router.get("/comments/{comment_id}")
def get_comment(comment_id: uuid.UUID, db: Session = Depends(get_db), current_user: User = Depends(require_user)):
    comment = community_service.get_comment_by_id(db, comment_id, current_user)
    return success({"comment": comment}, "Comment retrieved successfully")


@router.put("/comments/{comment_id}")
def update_comment(comment_id: uuid.UUID, data: CommentUpdate, db: Session = Depends(get_db), current_user: User = Depends(require_user)):
    comment = community_service.update_comment(db, comment_id, current_user, data)
    return success({"comment": comment}, "Comment updated successfully")


@router.delete("/comments/{comment_id}")
def delete_comment(
    comment_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user),
    storage: BaseStorage = Depends(get_storage_manager)
):
    community_service.delete_comment(db, comment_id, current_user, storage)
    return success(None, "Comment deleted successfully")


@router.post("/comments/{comment_id}/like")
def toggle_comment_like(comment_id: uuid.UUID, db: Session = Depends(get_db), current_user: User = Depends(require_user)):
    result = community_service.toggle_comment_like(db, comment_id, current_user)
    return success(result, "Comment liked" if result["liked"] else "Comment unliked")


# ---------------------- 게시글 상세 ----------------------
@router.get("/{post_id}")
def get_post(post_id: uuid.UUID, db: Session = Depends(get_db), current_user: User = Depends(require_user)):
    post = community_service.get_post_by_id(db, post_id)
    return success({"post": post}, "Post retrieved successfully")


@router.put("/{post_id}")
def update_post(post_id: uuid.UUID, data: PostUpdate, db: Session = Depends(get_db), current_user: User = Depends(require_user)):
    post = community_service.update_post(db, post_id, current_user, data)
    return success({"post": post}, "Post updated successfully")


@router.delete("/{post_id}")
def delete_post(
    post_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user),
    storage: BaseStorage = Depends(get_storage_manager)
):
    community_service.delete_post(db, post_id, current_user, storage)
    return success(None, "Post deleted successfully")


@router.post("/{post_id}/like")
def toggle_post_like(post_id: uuid.UUID, db: Session = Depends(get_db), current_user: User = Depends(require_user)):
    result = community_service.toggle_post_like(db, post_id, current_user)
    return success(result, "Post liked" if result["liked"] else "Post unliked")


@router.post("/{post_id}/bookmark")
def toggle_bookmark(post_id: uuid.UUID, db: Session = Depends(get_db), current_user: User = Depends(require_user)):
    result = community_service.toggle_bookmark(db, post_id, current_user)
    return success(result, "Post bookmarked" if result["bookmarked"] else "Bookmark removed")


@router.get("/{post_id}/comments")
def get_post_comments(
    post_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100)
):
    comments, total = community_service.get_post_comments(db, post_id, page, limit, current_user)
    return paginated(comments, page, limit, total, "Comments retrieved successfully")


@router.post("/{post_id}/comments", status_code=status.HTTP_201_CREATED)
def create_comment(post_id: uuid.UUID, data: CommentCreate, db: Session = Depends(get_db), current_user: User = Depends(require_user)):
    comment = community_service.create_comment(db, post_id, current_user, data)
    return success({"comment": comment}, "Comment created successfully", status.HTTP_201_CREATED)
