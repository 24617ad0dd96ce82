import logging
import os
import time
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.staticfiles import StaticFiles

load_dotenv()

from database import init_db
from dependencies import get_blog_scheduler
from routers import auth, community, reel, course, blog, waitlist, upload
from storage.local import UPLOAD_DIR
from utils.exceptions import AppError
from utils.response import success, failure

# =========================
# 로깅 설정
# =========================
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("finlook")

BLOG_SCHEDULER_ENABLED = os.getenv("BLOG_SCHEDULER_ENABLED", "false").lower() in ("1", "true", "yes")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # DB 초기화 (모델 기반 테이블 생성)
    init_db()
    if BLOG_SCHEDULER_ENABLED:
        get_blog_scheduler().start()
    yield
    if BLOG_SCHEDULER_ENABLED:
        get_blog_scheduler().stop()


# =========================
# FastAPI 앱 생성
# =========================
app = FastAPI(
    title="FinLook API",
    description="Social feed, reels, courses and finance news for FinLook",
    version="0.1.0",
    lifespan=lifespan,
)

# =========================
# CORS 설정
# =========================
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info("%s %s -> %d (%.1f ms)", request.method, request.url.path, response.status_code, duration_ms)
    return response


# =========================
# 에러 핸들러
# =========================
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc, AppError):
        message, details = exc.message, exc.details
    else:
        message, details = str(exc.detail), None
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, message)
    else:
        logger.warning("%s %s -> %d: %s", request.method, request.url.path, exc.status_code, message)
    return failure(message, exc.status_code, details)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in err["loc"] if part not in ("body", "query", "path")) or "body",
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    logger.warning("%s %s validation failed: %s", request.method, request.url.path, details)
    return failure("Validation failed", status.HTTP_400_BAD_REQUEST, details)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return failure("Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR)


# =========================
# Static Files Serving
# =========================
os.makedirs(UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR), name="uploads")

# =========================
# 라우터 등록
# =========================
app.include_router(auth.router)
app.include_router(community.router)
app.include_router(reel.router)
app.include_router(course.router)
app.include_router(blog.router)
app.include_router(waitlist.router)
app.include_router(upload.router)


# =========================
# 헬스체크 / 루트
# =========================
@app.get("/health")
@app.get("/api/health")
def health():
    return success({"status": "ok"}, "FinLook API is healthy")


@app.get("/api")
def api_info():
    return success({
        "name": app.title,
        "version": app.version,
        "endpoints": ["/api/auth", "/api/posts", "/api/reels", "/api/courses", "/api/blogs", "/api/waitlist", "/api/uploads"],
    }, "Welcome to FinLook API")
