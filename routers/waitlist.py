import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from starlette import status

from models import User
from schemas.waitlist import WaitlistJoinRequest, WaitlistUserUpdate, WaitlistSortBy, SortOrder
from database import get_db
from utils.auth import require_admin
from utils.response import success, failure
from services import waitlist as waitlist_service

router = APIRouter(prefix="/api/waitlist", tags=["waitlist"])


@router.post("/join", status_code=status.HTTP_201_CREATED)
def join_waitlist(data: WaitlistJoinRequest, db: Session = Depends(get_db)):
    user = waitlist_service.join_waitlist(db, data)
    if user is None:
        # already registered is not an error for the landing page
        return failure("You are already on the waitlist.", status.HTTP_200_OK)
    return success({"user": user}, "Successfully joined the waitlist", status.HTTP_201_CREATED)


@router.get("/count")
def get_waitlist_count(db: Session = Depends(get_db)):
    return success({"count": waitlist_service.get_waitlist_count(db)}, "Waitlist count retrieved successfully")


# ---------------------- 관리자 ----------------------
@router.get("/admin/users")
def list_waitlist_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
    search: Optional[str] = Query(None),
    verified: Optional[bool] = Query(None),
    sort_by: WaitlistSortBy = Query(WaitlistSortBy.CREATED_AT, alias="sortBy"),
    sort_order: SortOrder = Query(SortOrder.DESC, alias="sortOrder"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0)
):
    result = waitlist_service.list_waitlist_users(db, search, verified, sort_by, sort_order, limit, offset)
    return success(result, "Users retrieved successfully")


@router.get("/admin/users/{user_id}")
def get_waitlist_user(user_id: uuid.UUID, db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    return success({"user": waitlist_service.get_waitlist_user(db, user_id)}, "User retrieved successfully")


@router.put("/admin/users/{user_id}")
def update_waitlist_user(user_id: uuid.UUID, data: WaitlistUserUpdate, db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    user = waitlist_service.update_waitlist_user(db, user_id, data)
    return success({"user": user}, "User updated successfully")


@router.delete("/admin/users/{user_id}")
def delete_waitlist_user(user_id: uuid.UUID, db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    waitlist_service.delete_waitlist_user(db, user_id)
    return success(None, "User deleted successfully")
