import uuid
from pydantic import Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime

from schemas.base import CamelModel, UserSummary, check_url

MAX_POST_IMAGES = 4
MAX_COMMENT_IMAGES = 2


def _check_urls(urls: Optional[List[str]]) -> Optional[List[str]]:
    for url in urls or []:
        check_url(url)
    return urls


# ---------- Post ----------
class PostCreate(CamelModel):
    content: Optional[str] = Field(None, max_length=2000)
    images: Optional[List[str]] = Field(None, max_length=MAX_POST_IMAGES)

    @field_validator("images")
    @classmethod
    def image_urls(cls, v):
        return _check_urls(v)

    @model_validator(mode="after")
    def content_or_images(self):
        if not (self.content and self.content.strip()) and not self.images:
            raise ValueError("Post must have either content or images")
        return self


class PostUpdate(PostCreate):
    pass


class RetweetCreate(CamelModel):
    original_post_id: uuid.UUID
    content: Optional[str] = Field(None, max_length=2000)
    images: Optional[List[str]] = Field(None, max_length=MAX_POST_IMAGES)

    @field_validator("images")
    @classmethod
    def image_urls(cls, v):
        return _check_urls(v)


# ---------- Comment ----------
class CommentCreate(CamelModel):
    content: Optional[str] = Field(None, max_length=1000)
    images: Optional[List[str]] = Field(None, max_length=MAX_COMMENT_IMAGES)

    @field_validator("images")
    @classmethod
    def image_urls(cls, v):
        return _check_urls(v)

    @model_validator(mode="after")
    def content_or_images(self):
        if not (self.content and self.content.strip()) and not self.images:
            raise ValueError("Comment must have either content or images")
        return self


class CommentUpdate(CommentCreate):
    pass


class CommentResponse(CamelModel):
    id: uuid.UUID
    post_id: uuid.UUID
    user_id: uuid.UUID
    content: Optional[str] = None
    images: List[str] = []
    likes: int = 0
    created_at: datetime
    updated_at: Optional[datetime] = None
    author: Optional[UserSummary] = None
    is_liked: Optional[bool] = None


# ---------- Post responses ----------
class BarePostResponse(CamelModel):
    """A post without its retweeted original. Used as the nested original of a retweet."""
    id: uuid.UUID
    user_id: uuid.UUID
    content: Optional[str] = None
    images: List[str] = []
    likes: int = 0
    shares: int = 0
    bookmarks: int = 0
    is_retweet: bool = False
    original_post_id: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    author: Optional[UserSummary] = None
    comments: List[CommentResponse] = []
    comments_count: int = 0
    is_liked: Optional[bool] = None
    is_bookmarked: Optional[bool] = None
    is_retweeted: Optional[bool] = None


class PostResponse(BarePostResponse):
    original_post: Optional[BarePostResponse] = None

