import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from models import Post, Comment, User, Like, Bookmark
from schemas.community import (
    PostCreate, PostUpdate, RetweetCreate, CommentCreate, CommentUpdate,
    CommentResponse, BarePostResponse, PostResponse
)
from storage.base import BaseStorage
from utill.engagement import (
    PostTarget, CommentTarget, bump_counter, delete_files, has_relation, is_liked,
    toggle_like, toggle_relation
)
from utils.exceptions import AuthorizationError, ConflictError, InvalidOperationError, NotFoundError

logger = logging.getLogger(__name__)

LIST_COMMENT_LIMIT = 5
DETAIL_COMMENT_LIMIT = 10


def _viewer_id(viewer: Optional[User]) -> Optional[uuid.UUID]:
    return viewer.id if viewer else None


def _get_post_or_404(db: Session, post_id: uuid.UUID) -> Post:
    post = db.query(Post).filter(Post.id == post_id).first()
    if not post:
        raise NotFoundError("Post not found")
    return post


def _get_own_post(db: Session, post_id: uuid.UUID, current_user: User) -> Post:
    post = _get_post_or_404(db, post_id)
    if post.user_id != current_user.id:
        raise AuthorizationError("You can only modify your own posts")
    return post


def _get_comment_or_404(db: Session, comment_id: uuid.UUID) -> Comment:
    comment = (
        db.query(Comment)
        .options(selectinload(Comment.author))
        .filter(Comment.id == comment_id)
        .first()
    )
    if not comment:
        raise NotFoundError("Comment not found")
    return comment


def _get_own_comment(db: Session, comment_id: uuid.UUID, current_user: User) -> Comment:
    comment = _get_comment_or_404(db, comment_id)
    if comment.user_id != current_user.id:
        raise AuthorizationError("You can only modify your own comments")
    return comment


# ---------------------- 조립 ----------------------
def comment_view(db: Session, comment: Comment, viewer_id: Optional[uuid.UUID]) -> CommentResponse:
    model = CommentResponse.model_validate(comment)
    model.images = comment.images or []
    model.is_liked = is_liked(db, viewer_id, CommentTarget(comment.id))
    return model


def _recent_comments(db: Session, post_id: uuid.UUID, limit: int, viewer_id: Optional[uuid.UUID]) -> List[CommentResponse]:
    comments = (
        db.query(Comment)
        .options(selectinload(Comment.author))
        .filter(Comment.post_id == post_id)
        .order_by(Comment.created_at.desc())
        .limit(limit)
        .all()
    )
    return [comment_view(db, c, viewer_id) for c in comments]


def _post_fields(db: Session, post: Post, viewer_id: Optional[uuid.UUID], comment_limit: int) -> dict:
    fields = {
        "id": post.id,
        "user_id": post.user_id,
        "content": post.content,
        "images": post.images or [],
        "likes": post.likes,
        "shares": post.shares,
        "bookmarks": post.bookmarks,
        "is_retweet": post.is_retweet,
        "original_post_id": post.original_post_id,
        "created_at": post.created_at,
        "updated_at": post.updated_at,
        "author": post.author,
        "comments": _recent_comments(db, post.id, comment_limit, viewer_id),
        "comments_count": db.query(func.count(Comment.id)).filter(Comment.post_id == post.id).scalar(),
    }
    if viewer_id is not None:
        fields["is_liked"] = has_relation(db, Like, user_id=viewer_id, post_id=post.id)
        fields["is_bookmarked"] = has_relation(db, Bookmark, user_id=viewer_id, post_id=post.id)
        fields["is_retweeted"] = has_relation(db, Post, user_id=viewer_id, original_post_id=post.id)
    return fields


def assemble_bare_post(db: Session, post: Post, viewer_id: Optional[uuid.UUID] = None,
                       comment_limit: int = LIST_COMMENT_LIMIT) -> BarePostResponse:
    """Post view without its retweeted original."""
    return BarePostResponse.model_validate(_post_fields(db, post, viewer_id, comment_limit))


def assemble_post(db: Session, post: Post, viewer_id: Optional[uuid.UUID] = None,
                  comment_limit: int = LIST_COMMENT_LIMIT) -> PostResponse:
    """Post view; a retweet carries its original as a bare post, so nesting stops at one level."""
    fields = _post_fields(db, post, viewer_id, comment_limit)
    if post.is_retweet and post.original_post is not None:
        fields["original_post"] = assemble_bare_post(db, post.original_post, viewer_id, comment_limit)
    return PostResponse.model_validate(fields)


# ---------------------- 게시글 ----------------------
def get_posts(db: Session, page: int, limit: int, viewer: Optional[User] = None) -> Tuple[List[PostResponse], int]:
    skip = (page - 1) * limit
    posts = (
        db.query(Post)
        .options(selectinload(Post.author), selectinload(Post.original_post).selectinload(Post.author))
        .order_by(Post.created_at.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    total = db.query(func.count(Post.id)).scalar()
    viewer_id = _viewer_id(viewer)
    return [assemble_post(db, post, viewer_id) for post in posts], total


def get_post_by_id(db: Session, post_id: uuid.UUID) -> PostResponse:
    post = _get_post_or_404(db, post_id)
    return assemble_post(db, post, None, DETAIL_COMMENT_LIMIT)


def create_post(db: Session, current_user: User, data: PostCreate) -> PostResponse:
    new_post = Post(
        user_id=current_user.id,
        content=data.content,
        images=data.images or [],
        is_retweet=False,
    )
    db.add(new_post)
    db.commit()
    db.refresh(new_post)
    logger.info("Post %s created by %s", new_post.id, current_user.id)
    return assemble_post(db, new_post, current_user.id)


def create_retweet(db: Session, current_user: User, data: RetweetCreate) -> PostResponse:
    original = db.query(Post).filter(Post.id == data.original_post_id).first()
    if not original:
        raise NotFoundError("Original post not found")
    if original.is_retweet:
        raise InvalidOperationError("Cannot retweet a retweet")
    if has_relation(db, Post, user_id=current_user.id, original_post_id=original.id):
        raise ConflictError("You have already retweeted this post")

    retweet = Post(
        user_id=current_user.id,
        content=data.content,
        images=data.images or [],
        is_retweet=True,
        original_post_id=original.id,
    )
    db.add(retweet)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("You have already retweeted this post")

    # separate commit from the insert; a failure here leaves shares undercounted
    bump_counter(db, Post, original.id, "shares", 1)
    db.commit()
    db.refresh(retweet)
    return assemble_post(db, retweet, current_user.id)


def update_post(db: Session, post_id: uuid.UUID, current_user: User, data: PostUpdate) -> PostResponse:
    post = _get_own_post(db, post_id, current_user)
    post.content = data.content
    post.images = data.images or []
    db.commit()
    db.refresh(post)
    return assemble_post(db, post, current_user.id)


def delete_post(db: Session, post_id: uuid.UUID, current_user: User, storage: BaseStorage) -> None:
    post = _get_own_post(db, post_id, current_user)

    # retweets go with the original through the cascade, so their media goes too
    for doomed in [post, *post.retweets]:
        delete_files(storage, doomed.images)
        for comment in doomed.comments:
            delete_files(storage, comment.images)

    if post.is_retweet and post.original_post_id:
        bump_counter(db, Post, post.original_post_id, "shares", -1)
    db.delete(post)
    db.commit()
    logger.info("Post %s deleted by %s", post_id, current_user.id)


def toggle_post_like(db: Session, post_id: uuid.UUID, current_user: User) -> dict:
    _get_post_or_404(db, post_id)
    liked, count = toggle_like(db, current_user.id, PostTarget(post_id))
    return {"liked": liked, "count": count}


def toggle_bookmark(db: Session, post_id: uuid.UUID, current_user: User) -> dict:
    _get_post_or_404(db, post_id)
    bookmarked, count = toggle_relation(
        db, Bookmark, {"user_id": current_user.id, "post_id": post_id}, Post, post_id, "bookmarks"
    )
    return {"bookmarked": bookmarked, "count": count}


# ---------------------- 댓글 ----------------------
def get_post_comments(db: Session, post_id: uuid.UUID, page: int, limit: int,
                      viewer: Optional[User] = None) -> Tuple[List[CommentResponse], int]:
    _get_post_or_404(db, post_id)
    comments = (
        db.query(Comment)
        .options(selectinload(Comment.author))
        .filter(Comment.post_id == post_id)
        .order_by(Comment.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    total = db.query(func.count(Comment.id)).filter(Comment.post_id == post_id).scalar()
    viewer_id = _viewer_id(viewer)
    return [comment_view(db, c, viewer_id) for c in comments], total


def create_comment(db: Session, post_id: uuid.UUID, current_user: User, data: CommentCreate) -> CommentResponse:
    _get_post_or_404(db, post_id)
    new_comment = Comment(
        post_id=post_id,
        user_id=current_user.id,
        content=data.content,
        images=data.images or [],
    )
    db.add(new_comment)
    db.commit()
    db.refresh(new_comment)
    return comment_view(db, new_comment, current_user.id)


def get_comment_by_id(db: Session, comment_id: uuid.UUID, viewer: Optional[User] = None) -> CommentResponse:
    comment = _get_comment_or_404(db, comment_id)
    return comment_view(db, comment, _viewer_id(viewer))


def update_comment(db: Session, comment_id: uuid.UUID, current_user: User, data: CommentUpdate) -> CommentResponse:
    comment = _get_own_comment(db, comment_id, current_user)
    comment.content = data.content
    comment.images = data.images or []
    db.commit()
    db.refresh(comment)
    return comment_view(db, comment, current_user.id)


def delete_comment(db: Session, comment_id: uuid.UUID, current_user: User, storage: BaseStorage) -> None:
    comment = _get_own_comment(db, comment_id, current_user)
    delete_files(storage, comment.images)
    db.delete(comment)
    db.commit()


def toggle_comment_like(db: Session, comment_id: uuid.UUID, current_user: User) -> dict:
    _get_comment_or_404(db, comment_id)
    liked, count = toggle_like(db, current_user.id, CommentTarget(comment_id))
    return {"liked": liked, "count": count}
