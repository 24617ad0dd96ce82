from pydantic import Field, field_validator

from schemas.base import CamelModel

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "video/mp4": ".mp4",
    "video/webm": ".webm",
    "video/quicktime": ".mov",
}


class PresignedUrlRequest(CamelModel):
    content_type: str
    key_prefix: str = Field("uploads/", pattern=r"^[a-zA-Z0-9\-_/]+/$")

    @field_validator("content_type")
    @classmethod
    def supported_type(cls, v: str) -> str:
        if v not in ALLOWED_CONTENT_TYPES:
            raise ValueError(f"Unsupported content type. Allowed: {', '.join(ALLOWED_CONTENT_TYPES)}")
        return v

    @field_validator("key_prefix")
    @classmethod
    def no_traversal(cls, v: str) -> str:
        if v.startswith("/") or "//" in v:
            raise ValueError("Invalid key prefix")
        return v


class PresignedUrlResponse(CamelModel):
    upload_url: str
    key: str
    public_url: str
    expires_in: int
