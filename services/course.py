import logging
import uuid
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import Course, CourseVideo, CoursePurchase
from schemas.course import (
    CourseCreate, CourseUpdate, CourseVideoCreate, CourseVideoUpdate, SeedCourse,
    CourseResponse, CourseVideoResponse, CoursePurchaseResponse, PurchasedCourseResponse, CourseStat
)
from utils.exceptions import AuthorizationError, ConflictError, NotFoundError

logger = logging.getLogger(__name__)


def _get_course_or_404(db: Session, course_id: uuid.UUID) -> Course:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise NotFoundError("Course not found")
    return course


def _has_purchased(db: Session, user_id: Optional[uuid.UUID], course_id: uuid.UUID) -> bool:
    if user_id is None:
        return False
    return db.query(CoursePurchase.id).filter(
        CoursePurchase.user_id == user_id,
        CoursePurchase.course_id == course_id
    ).first() is not None


def _course_view(db: Session, course: Course, viewer_id: Optional[uuid.UUID]) -> CourseResponse:
    model = CourseResponse.model_validate(course)
    if viewer_id is not None:
        model.is_purchased = _has_purchased(db, viewer_id, course.id)
    return model


def _ensure_access(db: Session, course_id: uuid.UUID, viewer_id: Optional[uuid.UUID]) -> None:
    """Purchase gate for video reads. No viewer means a trusted caller and skips the check."""
    if viewer_id is not None and not _has_purchased(db, viewer_id, course_id):
        raise AuthorizationError("You must purchase this course to access videos")


def _build_videos(course_id: uuid.UUID, videos: List[CourseVideoCreate]) -> List[CourseVideo]:
    return [
        CourseVideo(
            course_id=course_id,
            title=video.title,
            description=video.description,
            video_url=video.video_url,
            duration=video.duration,
            order=video.order if video.order is not None else index,
        )
        for index, video in enumerate(videos)
    ]


# ---------------------- 강의 ----------------------
def create_course(db: Session, data: CourseCreate) -> dict:
    """Course row and its initial videos are committed together or not at all."""
    try:
        course = Course(
            title=data.title,
            description=data.description,
            price=data.price,
            original_price=data.original_price,
            level=data.level.value,
            category=data.category,
            thumbnail=data.thumbnail,
        )
        db.add(course)
        db.flush()
        videos = _build_videos(course.id, data.videos)
        db.add_all(videos)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(course)
    logger.info("Course %s created with %d videos", course.id, len(videos))
    return {
        "course": CourseResponse.model_validate(course),
        "videos": [CourseVideoResponse.model_validate(v) for v in videos],
    }


def get_courses(db: Session, viewer_id: Optional[uuid.UUID] = None) -> List[CourseResponse]:
    courses = (
        db.query(Course)
        .filter(Course.is_active == True)
        .order_by(Course.created_at.desc())
        .all()
    )
    return [_course_view(db, course, viewer_id) for course in courses]


def get_course_by_id(db: Session, course_id: uuid.UUID, viewer_id: Optional[uuid.UUID] = None) -> CourseResponse:
    return _course_view(db, _get_course_or_404(db, course_id), viewer_id)


def update_course(db: Session, course_id: uuid.UUID, data: CourseUpdate) -> CourseResponse:
    course = _get_course_or_404(db, course_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None and field != "original_price":
            continue
        setattr(course, field, value.value if field == "level" else value)
    db.commit()
    db.refresh(course)
    return CourseResponse.model_validate(course)


def delete_course(db: Session, course_id: uuid.UUID) -> None:
    course = _get_course_or_404(db, course_id)
    course.is_active = False
    db.commit()
    logger.info("Course %s deactivated", course_id)


def purchase_course(db: Session, user_id: uuid.UUID, course_id: uuid.UUID) -> dict:
    course = db.query(Course).filter(Course.id == course_id, Course.is_active == True).first()
    if not course:
        raise NotFoundError("Course not found or is no longer available")
    if _has_purchased(db, user_id, course_id):
        raise ConflictError("You have already purchased this course")

    # price frozen at purchase time
    purchase = CoursePurchase(user_id=user_id, course_id=course_id, purchase_price=course.price)
    db.add(purchase)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("You have already purchased this course")
    db.refresh(purchase)

    course_view = CourseResponse.model_validate(course)
    course_view.is_purchased = True
    return {"purchase": CoursePurchaseResponse.model_validate(purchase), "course": course_view}


def get_user_purchased_courses(db: Session, user_id: uuid.UUID) -> List[PurchasedCourseResponse]:
    rows = (
        db.query(Course, CoursePurchase)
        .join(CoursePurchase, CoursePurchase.course_id == Course.id)
        .filter(CoursePurchase.user_id == user_id)
        .order_by(CoursePurchase.created_at.desc())
        .all()
    )
    return [
        PurchasedCourseResponse(
            **CourseResponse.model_validate(course).model_dump(exclude={"is_purchased"}),
            is_purchased=True,
            purchase_date=purchase.created_at,
            purchase_price=purchase.purchase_price,
        )
        for course, purchase in rows
    ]


def get_course_stats(db: Session) -> List[CourseStat]:
    purchase_count_subquery = db.query(
        CoursePurchase.course_id,
        func.count(CoursePurchase.id).label("purchase_count")
    ).group_by(CoursePurchase.course_id).subquery()

    rows = (
        db.query(Course, func.coalesce(purchase_count_subquery.c.purchase_count, 0))
        .outerjoin(purchase_count_subquery, Course.id == purchase_count_subquery.c.course_id)
        .filter(Course.is_active == True)
        .order_by(Course.created_at.desc())
        .all()
    )
    return [
        CourseStat(course_id=course.id, title=course.title, price=course.price, purchase_count=count)
        for course, count in rows
    ]


def seed_courses(db: Session, courses: List[SeedCourse]) -> List[CourseResponse]:
    created = [
        Course(
            title=item.title,
            description=item.description,
            price=round(item.price * 100),
            original_price=round(item.original_price * 100) if item.original_price is not None else None,
            level=item.level.value,
            category=item.category,
            thumbnail=item.thumbnail,
        )
        for item in courses
    ]
    db.add_all(created)
    db.commit()
    logger.info("Seeded %d courses", len(created))
    return [CourseResponse.model_validate(course) for course in created]


# ---------------------- 강의 영상 ----------------------
def get_course_videos(db: Session, course_id: uuid.UUID, viewer_id: Optional[uuid.UUID] = None) -> dict:
    course = _get_course_or_404(db, course_id)
    _ensure_access(db, course_id, viewer_id)

    videos = (
        db.query(CourseVideo)
        .filter(CourseVideo.course_id == course_id, CourseVideo.is_active == True)
        .order_by(CourseVideo.order.asc(), CourseVideo.created_at.asc())
        .all()
    )
    return {
        "course": CourseResponse.model_validate(course),
        "videos": [CourseVideoResponse.model_validate(v) for v in videos],
    }


def get_video_by_id(db: Session, video_id: uuid.UUID, viewer_id: Optional[uuid.UUID] = None) -> dict:
    video = db.query(CourseVideo).filter(CourseVideo.id == video_id).first()
    if not video:
        raise NotFoundError("Video not found")
    _ensure_access(db, video.course_id, viewer_id)
    return {
        "video": CourseVideoResponse.model_validate(video),
        "course": CourseResponse.model_validate(video.course),
    }


def create_video(db: Session, course_id: uuid.UUID, data: CourseVideoCreate) -> CourseVideoResponse:
    _get_course_or_404(db, course_id)
    if data.order is None:
        order = db.query(func.count(CourseVideo.id)).filter(CourseVideo.course_id == course_id).scalar()
    else:
        order = data.order
    video = CourseVideo(
        course_id=course_id,
        title=data.title,
        description=data.description,
        video_url=data.video_url,
        duration=data.duration,
        order=order,
    )
    db.add(video)
    db.commit()
    db.refresh(video)
    return CourseVideoResponse.model_validate(video)


def update_video(db: Session, video_id: uuid.UUID, data: CourseVideoUpdate) -> CourseVideoResponse:
    video = db.query(CourseVideo).filter(CourseVideo.id == video_id).first()
    if not video:
        raise NotFoundError("Video not found")
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None and field not in ("description", "duration"):
            continue
        setattr(video, field, value)
    db.commit()
    db.refresh(video)
    return CourseVideoResponse.model_validate(video)


def delete_video(db: Session, video_id: uuid.UUID) -> None:
    video = db.query(CourseVideo).filter(CourseVideo.id == video_id).first()
    if not video:
        raise NotFoundError("Video not found")
    video.is_active = False
    db.commit()


def seed_videos(db: Session, course_id: uuid.UUID, videos: List[CourseVideoCreate]) -> List[CourseVideoResponse]:
    _get_course_or_404(db, course_id)
    created = _build_videos(course_id, videos)
    db.add_all(created)
    db.commit()
    return [CourseVideoResponse.model_validate(v) for v in created]
