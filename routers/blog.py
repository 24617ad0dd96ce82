import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from models import User
from database import get_db
from dependencies import get_blog_scheduler
from utils.auth import require_admin
from utils.response import success
from services import blog as blog_service

router = APIRouter(prefix="/api/blogs", tags=["blogs"])


@router.get("")
def get_blogs(
    db: Session = Depends(get_db),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0)
):
    blogs, total = blog_service.get_all_blogs(db, limit, offset)
    data = {"blogs": blogs, "total": total, "limit": limit, "offset": offset, "hasMore": offset + len(blogs) < total}
    return success(data, "Blogs retrieved successfully")


@router.post("/generate")
def generate_blogs(current_user: User = Depends(require_admin), scheduler=Depends(get_blog_scheduler)):
    result = scheduler.run_now()
    return success(result, "Blog generation completed")


@router.get("/{blog_id}")
def get_blog(blog_id: uuid.UUID, db: Session = Depends(get_db)):
    blog = blog_service.get_blog_by_id(db, blog_id)
    return success({"blog": blog}, "Blog retrieved successfully")
