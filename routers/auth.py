from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from starlette import status
import redis

from models import User
from schemas.user import (
    SignUpRequest, SendOtpRequest, VerifyOtpRequest, AdminSignInRequest, CreateAdminRequest, UpdateProfileRequest
)
from database import get_db
from dependencies import get_cache
from utils.auth import get_current_user, require_admin
from utils.response import success
from services import auth as auth_service

router = APIRouter(prefix="/api/auth", tags=["auth"])


# ---------------------- 회원가입 / 로그인 ----------------------
@router.post("/signup", status_code=status.HTTP_201_CREATED)
def sign_up(data: SignUpRequest, db: Session = Depends(get_db), cache: redis.Redis = Depends(get_cache)):
    result = auth_service.sign_up(db, cache, data)
    return success(result, "User registered successfully", status.HTTP_201_CREATED)


@router.post("/send-otp")
def send_otp(data: SendOtpRequest, db: Session = Depends(get_db), cache: redis.Redis = Depends(get_cache)):
    result = auth_service.send_otp(db, cache, data.mobile_number)
    return success(result, result["message"])


@router.post("/verify-otp")
def verify_otp(data: VerifyOtpRequest, db: Session = Depends(get_db), cache: redis.Redis = Depends(get_cache)):
    result = auth_service.verify_otp_and_login(db, cache, data.mobile_number, data.otp)
    return success(result, "OTP verified and user logged in successfully")


# ---------------------- 관리자 ----------------------
@router.post("/admin/signin")
def admin_sign_in(data: AdminSignInRequest, db: Session = Depends(get_db)):
    result = auth_service.admin_sign_in(db, data.email, data.password)
    return success(result, "Admin signed in successfully")


@router.post("/admin/create", status_code=status.HTTP_201_CREATED)
def create_admin(data: CreateAdminRequest, db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    result = auth_service.create_admin(db, data)
    return success(result, "Admin created successfully", status.HTTP_201_CREATED)


# ---------------------- 프로필 ----------------------
@router.get("/profile")
def get_profile(current_user: User = Depends(get_current_user)):
    return success(auth_service.get_profile(current_user), "Profile retrieved successfully")


@router.put("/profile")
def update_profile(data: UpdateProfileRequest, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return success(auth_service.update_profile(db, current_user, data), "Profile updated successfully")
