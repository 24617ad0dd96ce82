import uuid
from enum import Enum
from pydantic import EmailStr, Field
from typing import Optional, List
from datetime import datetime

from schemas.base import CamelModel

PHONE_PATTERN = r"^\d{10}$"


class WaitlistSortBy(str, Enum):
    CREATED_AT = "createdAt"
    NAME = "name"
    EMAIL = "email"
    WAITLIST_COUNT = "waitlistCount"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class WaitlistJoinRequest(CamelModel):
    name: str = Field(min_length=2, max_length=255)
    phone: str = Field(pattern=PHONE_PATTERN)
    email: EmailStr


class WaitlistUserUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    email: Optional[EmailStr] = None
    is_waitlisted: Optional[bool] = None
    verified: Optional[bool] = None
    waitlist_count: Optional[int] = Field(None, ge=0)


class WaitlistJoinResponse(CamelModel):
    id: uuid.UUID
    name: str
    email: str
    phone: str = Field(validation_alias="mobile_number")
    is_waitlisted: bool
    created_at: datetime


class WaitlistUserResponse(WaitlistJoinResponse):
    username: str
    verified: bool
    waitlist_count: int
    updated_at: Optional[datetime] = None


class WaitlistUserList(CamelModel):
    users: List[WaitlistUserResponse]
    total: int
