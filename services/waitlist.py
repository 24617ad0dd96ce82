import logging
import os
import re
import secrets
import time
import uuid
from typing import Optional

from sqlalchemy import func, or_, update
from sqlalchemy.orm import Session

from models.user import User
from schemas.waitlist import (
    WaitlistJoinRequest, WaitlistUserUpdate, WaitlistJoinResponse, WaitlistUserResponse,
    WaitlistUserList, WaitlistSortBy, SortOrder
)
from utils.exceptions import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

# count shown before anyone has joined
WAITLIST_BASE_COUNT = int(os.getenv("WAITLIST_BASE_COUNT", "562"))

_SORT_COLUMNS = {
    WaitlistSortBy.CREATED_AT: User.created_at,
    WaitlistSortBy.NAME: User.name,
    WaitlistSortBy.EMAIL: User.email,
    WaitlistSortBy.WAITLIST_COUNT: User.waitlist_count,
}


def _make_username(name: str) -> str:
    cleaned = re.sub(r"[^a-z0-9_]", "", name.strip().lower().replace(" ", "_"))
    # millisecond timestamp plus a short random tail keeps same-name joins apart
    return f"{cleaned[:30]}_{int(time.time() * 1000)}{secrets.token_hex(2)}"


def get_waitlist_count(db: Session) -> int:
    current = db.query(func.max(User.waitlist_count)).filter(User.is_waitlisted == True).scalar()
    return current if current else WAITLIST_BASE_COUNT


def join_waitlist(db: Session, data: WaitlistJoinRequest) -> Optional[WaitlistJoinResponse]:
    """Adds a waitlisted user and bumps everyone's count. Returns None when already on the list."""
    existing = db.query(User.id).filter(
        or_(User.email == data.email, User.mobile_number == data.phone)
    ).first()
    if existing:
        return None

    user = User(
        name=data.name,
        username=_make_username(data.name),
        email=data.email,
        mobile_number=data.phone,
        role="user",
        verified=False,
        is_waitlisted=True,
        waitlist_count=get_waitlist_count(db),
    )
    db.add(user)
    db.flush()
    db.execute(
        update(User)
        .where(User.is_waitlisted == True)
        .values(waitlist_count=User.waitlist_count + 1)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    db.refresh(user)
    logger.info("Waitlist join: %s", user.id)
    return WaitlistJoinResponse.model_validate(user)


# ---------------------- 관리자 ----------------------
def list_waitlist_users(
    db: Session,
    search: Optional[str] = None,
    verified: Optional[bool] = None,
    sort_by: WaitlistSortBy = WaitlistSortBy.CREATED_AT,
    sort_order: SortOrder = SortOrder.DESC,
    limit: int = 50,
    offset: int = 0,
) -> WaitlistUserList:
    query = db.query(User).filter(User.role == "user")
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            User.name.ilike(pattern),
            User.email.ilike(pattern),
            User.username.ilike(pattern),
            User.mobile_number.ilike(pattern),
        ))
    if verified is not None:
        query = query.filter(User.verified == verified)

    total = query.count()
    column = _SORT_COLUMNS[sort_by]
    order = column.asc() if sort_order == SortOrder.ASC else column.desc()
    users = query.order_by(order).offset(offset).limit(limit).all()
    return WaitlistUserList(users=[WaitlistUserResponse.model_validate(u) for u in users], total=total)


def _get_waitlist_user_or_404(db: Session, user_id: uuid.UUID) -> User:
    user = db.query(User).filter(User.id == user_id, User.role == "user").first()
    if not user:
        raise NotFoundError("User not found")
    return user


def get_waitlist_user(db: Session, user_id: uuid.UUID) -> WaitlistUserResponse:
    return WaitlistUserResponse.model_validate(_get_waitlist_user_or_404(db, user_id))


def update_waitlist_user(db: Session, user_id: uuid.UUID, data: WaitlistUserUpdate) -> WaitlistUserResponse:
    user = _get_waitlist_user_or_404(db, user_id)
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}

    if "email" in changes and changes["email"] != user.email:
        if db.query(User.id).filter(User.email == changes["email"], User.id != user.id).first():
            raise ConflictError("Email is already taken")
    if "phone" in changes and changes["phone"] != user.mobile_number:
        if db.query(User.id).filter(User.mobile_number == changes["phone"], User.id != user.id).first():
            raise ConflictError("Phone number is already taken")

    if "phone" in changes:
        changes["mobile_number"] = changes.pop("phone")
    for field, value in changes.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return WaitlistUserResponse.model_validate(user)


def delete_waitlist_user(db: Session, user_id: uuid.UUID) -> None:
    user = _get_waitlist_user_or_404(db, user_id)
    db.delete(user)
    db.commit()
    logger.info("Waitlist user %s deleted", user_id)
