import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from starlette import status

from models import User
from schemas.course import (
    CourseCreate, CourseUpdate, CourseVideoCreate, CourseVideoUpdate, SeedCoursesRequest, SeedVideosRequest
)
from database import get_db
from utils.auth import require_user, require_admin
from utils.response import success
from services import course as course_service

router = APIRouter(prefix="/api/courses", tags=["courses"])


def _gate_viewer(current_user: User):
    # admins read videos without a purchase
    return None if current_user.is_admin else current_user.id


# ---------------------- 강의 ----------------------
@router.get("")
def get_courses(db: Session = Depends(get_db), current_user: User = Depends(require_user)):
    courses = course_service.get_courses(db, current_user.id)
    return success({"courses": courses}, "Courses retrieved successfully")


@router.post("", status_code=status.HTTP_201_CREATED)
def create_course(data: CourseCreate, db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    result = course_service.create_course(db, data)
    return success(result, "Course created successfully", status.HTTP_201_CREATED)


@router.get("/user/purchased")
def get_purchased_courses(db: Session = Depends(get_db), current_user: User = Depends(require_user)):
    courses = course_service.get_user_purchased_courses(db, current_user.id)
    return success({"courses": courses}, "Purchased courses retrieved successfully")


@router.get("/admin/stats")
def get_course_stats(db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    stats = course_service.get_course_stats(db)
    return success({"stats": stats}, "Course statistics retrieved successfully")


@router.post("/admin/seed", status_code=status.HTTP_201_CREATED)
def seed_courses(data: SeedCoursesRequest, db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    courses = course_service.seed_courses(db, data.courses)
    return success({"courses": courses, "count": len(courses)}, "Courses seeded successfully", status.HTTP_201_CREATED)


# ---------------------- 강의 영상 ----------------------
@router.get("/videos/{video_id}")
def get_video(video_id: uuid.UUID, db: Session = Depends(get_db), current_user: User = Depends(require_user)):
    result = course_service.get_video_by_id(db, video_id, _gate_viewer(current_user))
    return success(result, "Video retrieved successfully")


@router.put("/videos/{video_id}")
def update_video(video_id: uuid.UUID, data: CourseVideoUpdate, db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    video = course_service.update_video(db, video_id, data)
    return success({"video": video}, "Video updated successfully")


@router.delete("/videos/{video_id}")
def delete_video(video_id: uuid.UUID, db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    course_service.delete_video(db, video_id)
    return success(None, "Video deleted successfully")


@router.get("/{course_id}/videos")
def get_course_videos(course_id: uuid.UUID, db: Session = Depends(get_db), current_user: User = Depends(require_user)):
    result = course_service.get_course_videos(db, course_id, _gate_viewer(current_user))
    return success(result, "Course videos retrieved successfully")


@router.post("/{course_id}/videos", status_code=status.HTTP_201_CREATED)
def create_video(course_id: uuid.UUID, data: CourseVideoCreate, db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    video = course_service.create_video(db, course_id, data)
    return success({"video": video}, "Video created successfully", status.HTTP_201_CREATED)


@router.post("/{course_id}/videos/seed", status_code=status.HTTP_201_CREATED)
def seed_videos(course_id: uuid.UUID, data: SeedVideosRequest, db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    videos = course_service.seed_videos(db, course_id, data.videos)
    return success({"videos": videos, "count": len(videos)}, "Videos seeded successfully", status.HTTP_201_CREATED)


@router.post("/{course_id}/purchase", status_code=status.HTTP_201_CREATED)
def purchase_course(course_id: uuid.UUID, db: Session = Depends(get_db), current_user: User = Depends(require_user)):
    result = course_service.purchase_course(db, current_user.id, course_id)
    return success(result, "Course purchased successfully", status.HTTP_201_CREATED)


# ---------------------- 강의 상세 ----------------------
@router.get("/{course_id}")
def get_course(course_id: uuid.UUID, db: Session = Depends(get_db), current_user: User = Depends(require_user)):
    course = course_service.get_course_by_id(db, course_id, current_user.id)
    return success({"course": course}, "Course retrieved successfully")


@router.put("/{course_id}")
def update_course(course_id: uuid.UUID, data: CourseUpdate, db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    course = course_service.update_course(db, course_id, data)
    return success({"course": course}, "Course updated successfully")


@router.delete("/{course_id}")
def delete_course(course_id: uuid.UUID, db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    course_service.delete_course(db, course_id)
    return success(None, "Course deleted successfully")
