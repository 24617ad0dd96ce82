import logging
import os
from datetime import datetime, timedelta, timezone

import redis
from dotenv import load_dotenv
from jose import jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from models.user import User
from schemas.user import (
    SignUpRequest, CreateAdminRequest, UpdateProfileRequest, UserResponse
)
from services import otp as otp_service
from utils.exceptions import (
    AuthenticationError, AuthorizationError, ConflictError, InvalidOperationError, NotFoundError
)

load_dotenv()

logger = logging.getLogger(__name__)

SECRET_KEY = os.getenv("SECRET_KEY", "super-secret-key")
ALGORITHM = "HS256"
# 0 issues tokens without an exp claim
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "10080"))

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=12)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: timedelta | None = None):
    to_encode = data.copy()
    if expires_delta is None and ACCESS_TOKEN_EXPIRE_MINUTES > 0:
        expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    if expires_delta:
        to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def issue_token(user: User) -> str:
    return create_access_token({"userId": str(user.id), "email": user.email, "role": user.role})


def _ensure_unique(db: Session, email: str, username: str, mobile_number: str) -> None:
    if db.query(User.id).filter(User.email == email).first():
        raise ConflictError("User with this email already exists")
    if db.query(User.id).filter(User.username == username).first():
        raise ConflictError("Username is already taken")
    if db.query(User.id).filter(User.mobile_number == mobile_number).first():
        raise ConflictError("User with this mobile number already exists")


# ---------------------- 회원가입 / OTP ----------------------
def sign_up(db: Session, cache: redis.Redis, data: SignUpRequest) -> dict:
    _ensure_unique(db, data.email, data.username, data.mobile_number)

    user = User(
        name=data.name,
        username=data.username,
        email=data.email,
        mobile_number=data.mobile_number,
        password=None,
        role="user",
        is_influencer=data.is_influencer,
        influencer_url=data.influencer_url,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User registered: %s", user.id)

    otp_result = otp_service.send_otp(cache, user.mobile_number)
    return {"user": UserResponse.model_validate(user), "token": issue_token(user), "otp": otp_result}


def send_otp(db: Session, cache: redis.Redis, mobile_number: str) -> dict:
    user = db.query(User).filter(User.mobile_number == mobile_number).first()
    if not user:
        raise NotFoundError("User not found with this mobile number")
    if user.is_admin:
        raise InvalidOperationError("Admin users must use password-based login")
    return otp_service.send_otp(cache, mobile_number)


def verify_otp_and_login(db: Session, cache: redis.Redis, mobile_number: str, otp: str) -> dict:
    otp_service.verify_otp(cache, mobile_number, otp)

    user = db.query(User).filter(User.mobile_number == mobile_number).first()
    if not user:
        raise NotFoundError("User not found")
    return {"user": UserResponse.model_validate(user), "token": issue_token(user)}


# ---------------------- 관리자 ----------------------
def admin_sign_in(db: Session, email: str, password: str) -> dict:
    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise AuthenticationError("Invalid credentials")
    if not user.is_admin:
        raise AuthorizationError("Access denied. Admin privileges required.")
    if not user.password or not verify_password(password, user.password):
        raise AuthenticationError("Invalid credentials")
    return {"user": UserResponse.model_validate(user), "token": issue_token(user)}


def create_admin(db: Session, data: CreateAdminRequest) -> dict:
    _ensure_unique(db, data.email, data.username, data.mobile_number)

    admin = User(
        name=data.name,
        username=data.username,
        email=data.email,
        mobile_number=data.mobile_number,
        password=hash_password(data.password),
        role="admin",
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info("Admin created: %s", admin.id)
    return {"user": UserResponse.model_validate(admin)}


# ---------------------- 프로필 ----------------------
def get_profile(current_user: User) -> dict:
    return {"user": UserResponse.model_validate(current_user)}


def update_profile(db: Session, current_user: User, data: UpdateProfileRequest) -> dict:
    # influencer_url and avatar can be cleared with null, the rest are required columns
    changes = {
        field: value for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None or field in ("influencer_url", "avatar")
    }

    if changes.get("username") and changes["username"] != current_user.username:
        if db.query(User.id).filter(User.username == changes["username"]).first():
            raise ConflictError("Username is already taken")
    if changes.get("mobile_number") and changes["mobile_number"] != current_user.mobile_number:
        if db.query(User.id).filter(User.mobile_number == changes["mobile_number"]).first():
            raise ConflictError("User with this mobile number already exists")

    for field, value in changes.items():
        setattr(current_user, field, value)

    db.add(current_user)
    db.commit()
    db.refresh(current_user)
    return {"user": UserResponse.model_validate(current_user)}
