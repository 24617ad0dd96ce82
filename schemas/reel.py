import uuid
from pydantic import Field, field_validator
from typing import Optional, List
from datetime import datetime

from schemas.base import CamelModel, UserSummary, check_url
from schemas.community import CommentCreate


class ReelCreate(CamelModel):
    video_url: str
    content: Optional[str] = Field(None, max_length=2000)
    duration: int = Field(ge=1, le=300)

    @field_validator("video_url")
    @classmethod
    def video_url_format(cls, v: str) -> str:
        return check_url(v)


class ReelUpdate(CamelModel):
    content: Optional[str] = Field(None, max_length=2000)


class ReelResponse(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    video_url: str
    content: Optional[str] = None
    likes: int = 0
    shares: int = 0
    duration: int
    created_at: datetime
    updated_at: Optional[datetime] = None
    author: Optional[UserSummary] = None
    comments_count: int = 0
    is_liked: Optional[bool] = None


# Reel comments share the post comment rules: content up to 1000 chars, at most 2 images.
class ReelCommentCreate(CommentCreate):
    pass


class ReelCommentUpdate(CommentCreate):
    pass


class ReelCommentResponse(CamelModel):
    id: uuid.UUID
    reel_id: uuid.UUID
    user_id: uuid.UUID
    content: Optional[str] = None
    images: List[str] = []
    likes: int = 0
    created_at: datetime
    updated_at: Optional[datetime] = None
    author: Optional[UserSummary] = None
    is_liked: Optional[bool] = None
