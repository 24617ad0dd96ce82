import logging
import uuid
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple, Union

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import Post, Comment, Like, Reel, ReelComment, ReelLike
from storage.base import BaseStorage
from utils.exceptions import ConflictError

logger = logging.getLogger(__name__)


# Like targets. Exactly one foreign key of a like row is set, chosen by the target type.
@dataclass(frozen=True)
class PostTarget:
    id: uuid.UUID


@dataclass(frozen=True)
class CommentTarget:
    id: uuid.UUID


@dataclass(frozen=True)
class ReelTarget:
    id: uuid.UUID


@dataclass(frozen=True)
class ReelCommentTarget:
    id: uuid.UUID


LikeTarget = Union[PostTarget, CommentTarget, ReelTarget, ReelCommentTarget]

# target type -> (like model, like foreign key, liked model)
_LIKE_TABLES = {
    PostTarget: (Like, "post_id", Post),
    CommentTarget: (Like, "comment_id", Comment),
    ReelTarget: (ReelLike, "reel_id", Reel),
    ReelCommentTarget: (ReelLike, "reel_comment_id", ReelComment),
}


def bump_counter(db: Session, model, row_id: uuid.UUID, column: str, delta: int) -> None:
    """Single-statement counter update: col = col + delta."""
    col = getattr(model, column)
    db.execute(
        update(model)
        .where(model.id == row_id)
        .values({column: col + delta})
        .execution_options(synchronize_session=False)
    )


def read_counter(db: Session, model, row_id: uuid.UUID, column: str) -> int:
    return db.query(getattr(model, column)).filter(model.id == row_id).scalar() or 0


def has_relation(db: Session, model, **filters) -> bool:
    return db.query(model.id).filter_by(**filters).first() is not None


def toggle_relation(
    db: Session,
    relation_model,
    filters: dict,
    counter_model,
    counter_id: uuid.UUID,
    counter_column: str,
) -> Tuple[bool, int]:
    """Deletes the relation row if present, inserts it otherwise, and moves the counter with it.

    Returns (active, count) where active tells whether the relation now exists.
    """
    existing = db.query(relation_model).filter_by(**filters).first()
    try:
        if existing:
            db.delete(existing)
            bump_counter(db, counter_model, counter_id, counter_column, -1)
            active = False
        else:
            db.add(relation_model(**filters))
            db.flush()
            bump_counter(db, counter_model, counter_id, counter_column, 1)
            active = True
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Request conflicted with a concurrent update, please retry")
    return active, read_counter(db, counter_model, counter_id, counter_column)


def toggle_like(db: Session, user_id: uuid.UUID, target: LikeTarget) -> Tuple[bool, int]:
    like_model, fk, liked_model = _LIKE_TABLES[type(target)]
    return toggle_relation(db, like_model, {"user_id": user_id, fk: target.id}, liked_model, target.id, "likes")


def is_liked(db: Session, user_id: Optional[uuid.UUID], target: LikeTarget) -> Optional[bool]:
    if user_id is None:
        return None
    like_model, fk, _ = _LIKE_TABLES[type(target)]
    return has_relation(db, like_model, **{"user_id": user_id, fk: target.id})


def delete_files(storage: BaseStorage, urls: Iterable[str]) -> None:
    """Best-effort removal of stored media; failures are logged and never abort the caller."""
    for url in urls or []:
        try:
            storage.delete(url)
        except Exception as e:
            logger.warning("Failed to delete stored file %s: %s", url, e)
