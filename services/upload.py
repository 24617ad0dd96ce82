import secrets
import time

from fastapi import Request

from schemas.upload import ALLOWED_CONTENT_TYPES, PresignedUrlRequest, PresignedUrlResponse
from storage.base import BaseStorage, PRESIGNED_URL_EXPIRES_IN
from storage.local import LocalStorage
from utils.exceptions import AuthenticationError, NotFoundError, PayloadTooLargeError, ValidationError

# largest body accepted on the local upload endpoint
MAX_UPLOAD_BYTES = 50 * 1024 * 1024


def build_object_key(key_prefix: str, content_type: str) -> str:
    """<prefix><epoch ms>-<random><ext>"""
    return f"{key_prefix}{int(time.time() * 1000)}-{secrets.token_hex(6)}{ALLOWED_CONTENT_TYPES[content_type]}"


def create_presigned_upload(storage: BaseStorage, data: PresignedUrlRequest) -> PresignedUrlResponse:
    key = build_object_key(data.key_prefix, data.content_type)
    return PresignedUrlResponse(
        upload_url=storage.generate_presigned_url(key, data.content_type, PRESIGNED_URL_EXPIRES_IN),
        key=key,
        public_url=storage.public_url(key),
        expires_in=PRESIGNED_URL_EXPIRES_IN,
    )


def store_local_upload(storage: BaseStorage, key: str, token: str, body: bytes, content_type: str) -> str:
    """Receives the PUT issued against a local presigned URL."""
    if not isinstance(storage, LocalStorage):
        raise NotFoundError("Direct uploads are only served by local storage")
    signed_type = storage.verify_upload_token(key, token)
    if signed_type is None:
        raise AuthenticationError("Invalid or expired upload token")
    if content_type != signed_type:
        raise ValidationError("Content-Type does not match the presigned request")
    return storage.upload_bytes(body, key, content_type)


async def read_upload_body(request: Request) -> bytes:
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > MAX_UPLOAD_BYTES:
        raise PayloadTooLargeError()

    # content-length can be absent or wrong, so the stream is capped as well
    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > MAX_UPLOAD_BYTES:
            raise PayloadTooLargeError()
    return bytes(body)
