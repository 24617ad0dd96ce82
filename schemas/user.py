import re
import uuid
from datetime import datetime
from pydantic import EmailStr, Field, field_validator
from typing import Optional

from schemas.base import CamelModel, check_url

USERNAME_PATTERN = r"^[a-zA-Z0-9_]+$"
MOBILE_PATTERN = r"^\d{10}$"
OTP_PATTERN = r"^\d{6}$"


class SignUpRequest(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    username: str = Field(min_length=2, max_length=50, pattern=USERNAME_PATTERN)
    email: EmailStr
    mobile_number: str = Field(pattern=MOBILE_PATTERN)
    is_influencer: bool = False
    influencer_url: Optional[str] = None

    @field_validator("influencer_url")
    @classmethod
    def influencer_url_format(cls, v: Optional[str]) -> Optional[str]:
        return check_url(v)


class SendOtpRequest(CamelModel):
    mobile_number: str = Field(pattern=MOBILE_PATTERN)


class VerifyOtpRequest(CamelModel):
    mobile_number: str = Field(pattern=MOBILE_PATTERN)
    otp: str = Field(pattern=OTP_PATTERN)


class AdminSignInRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class CreateAdminRequest(CamelModel):
    name: str = Field(min_length=2, max_length=255)
    username: str = Field(min_length=2, max_length=50, pattern=USERNAME_PATTERN)
    email: EmailStr
    mobile_number: str = Field(pattern=MOBILE_PATTERN)
    password: str = Field(min_length=8)

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        if not (re.search(r"[a-z]", v) and re.search(r"[A-Z]", v) and re.search(r"\d", v)):
            raise ValueError("Password must contain at least one uppercase letter, one lowercase letter, and one number")
        return v


class UpdateProfileRequest(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    username: Optional[str] = Field(None, min_length=2, max_length=50, pattern=USERNAME_PATTERN)
    mobile_number: Optional[str] = Field(None, pattern=MOBILE_PATTERN)
    is_influencer: Optional[bool] = None
    influencer_url: Optional[str] = None
    avatar: Optional[str] = None

    @field_validator("influencer_url")
    @classmethod
    def influencer_url_format(cls, v: Optional[str]) -> Optional[str]:
        return check_url(v)


class UserResponse(CamelModel):
    id: uuid.UUID
    name: str
    username: str
    email: str
    mobile_number: str
    role: str
    is_influencer: bool
    influencer_url: Optional[str] = None
    avatar: Optional[str] = None
    verified: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
