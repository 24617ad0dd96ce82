import uuid
from enum import Enum
from pydantic import Field, field_validator
from typing import Optional, List
from datetime import datetime

from schemas.base import CamelModel, check_url


class CourseLevel(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


# ---------- Video ----------
class CourseVideoCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    video_url: str
    duration: Optional[int] = Field(None, ge=0)
    order: Optional[int] = Field(None, ge=0)

    @field_validator("video_url")
    @classmethod
    def video_url_format(cls, v: str) -> str:
        return check_url(v)


class CourseVideoUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    video_url: Optional[str] = None
    duration: Optional[int] = Field(None, ge=0)
    order: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None

    @field_validator("video_url")
    @classmethod
    def video_url_format(cls, v: Optional[str]) -> Optional[str]:
        return check_url(v)


class CourseVideoResponse(CamelModel):
    id: uuid.UUID
    course_id: uuid.UUID
    title: str
    description: Optional[str] = None
    video_url: str
    duration: Optional[int] = None
    order: int
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


# ---------- Course ----------
class CourseCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    price: int = Field(ge=0)
    original_price: Optional[int] = Field(None, ge=0)
    level: CourseLevel
    category: str = Field(min_length=1, max_length=100)
    thumbnail: str
    videos: List[CourseVideoCreate] = []

    @field_validator("thumbnail")
    @classmethod
    def thumbnail_format(cls, v: str) -> str:
        return check_url(v)


class CourseUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    price: Optional[int] = Field(None, ge=0)
    original_price: Optional[int] = Field(None, ge=0)
    level: Optional[CourseLevel] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    thumbnail: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("thumbnail")
    @classmethod
    def thumbnail_format(cls, v: Optional[str]) -> Optional[str]:
        return check_url(v)


class CourseResponse(CamelModel):
    id: uuid.UUID
    title: str
    description: str
    price: int
    original_price: Optional[int] = None
    level: str
    category: str
    thumbnail: str
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
    is_purchased: Optional[bool] = None


class PurchasedCourseResponse(CourseResponse):
    purchase_date: datetime
    purchase_price: int


class CoursePurchaseResponse(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    course_id: uuid.UUID
    purchase_price: int
    created_at: datetime


class CourseStat(CamelModel):
    course_id: uuid.UUID
    title: str
    price: int
    purchase_count: int


# ---------- Seeding ----------
class SeedCourse(CamelModel):
    """Catalog entry with a decimal price in major units (rupees)."""
    title: str = Field(min_length=1, max_length=255)
    description: str
    price: float = Field(ge=0)
    original_price: Optional[float] = Field(None, ge=0)
    level: CourseLevel
    category: str = Field(min_length=1, max_length=100)
    thumbnail: str


class SeedCoursesRequest(CamelModel):
    courses: List[SeedCourse] = Field(min_length=1)


class SeedVideosRequest(CamelModel):
    videos: List[CourseVideoCreate] = Field(min_length=1)
