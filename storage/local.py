import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError
from .base import BaseStorage, PRESIGNED_URL_EXPIRES_IN

logger = logging.getLogger(__name__)

# Assume a directory for uploads
UPLOAD_DIR = "uploads"
UPLOAD_URL_PREFIX = "/uploads"
LOCAL_PUT_ENDPOINT = "/api/uploads/local"
SIGNING_KEY = os.getenv("SECRET_KEY", "super-secret-key")


class LocalStorage(BaseStorage):
    """Filesystem storage served by the /uploads static mount.

    Presigned URLs point at the local PUT endpoint and carry a short-lived
    signed token bound to the object key and content type.
    """

    def __init__(self, base_dir: str = UPLOAD_DIR):
        self.base_dir = base_dir
        os.makedirs(self.base_dir, exist_ok=True)

    def _path_for(self, key: str) -> str:
        path = os.path.normpath(os.path.join(self.base_dir, key))
        if not path.startswith(os.path.normpath(self.base_dir) + os.sep):
            raise ValueError(f"Key escapes upload directory: {key}")
        return path

    def generate_presigned_url(self, key: str, content_type: str, expires_in: int = PRESIGNED_URL_EXPIRES_IN) -> str:
        expire = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
        token = jwt.encode({"key": key, "contentType": content_type, "exp": expire}, SIGNING_KEY, algorithm="HS256")
        return f"{LOCAL_PUT_ENDPOINT}/{key}?token={token}"

    def verify_upload_token(self, key: str, token: str) -> Optional[str]:
        """Returns the signed content type when the token matches key, else None."""
        try:
            claims = jwt.decode(token, SIGNING_KEY, algorithms=["HS256"])
        except JWTError:
            return None
        if claims.get("key") != key:
            return None
        return claims.get("contentType")

    def public_url(self, key: str) -> str:
        return f"{UPLOAD_URL_PREFIX}/{key}"

    def upload_bytes(self, data: bytes, key: str, content_type: str) -> str:
        file_path = self._path_for(key)
        os.makedirs(os.path.dirname(file_path), exist_ok=True)
        with open(file_path, "wb") as buffer:
            buffer.write(data)
        return self.public_url(key)

    def extract_key(self, file_url: str) -> Optional[str]:
        # file_url will be like /uploads/blogs/image.png
        prefix = UPLOAD_URL_PREFIX + "/"
        if not file_url or not file_url.startswith(prefix):
            return None
        return file_url[len(prefix):]

    def delete(self, file_url: str) -> None:
        key = self.extract_key(file_url)
        if not key:
            logger.warning("Not a local upload URL, skipping delete: %s", file_url)
            return
        try:
            file_path = self._path_for(key)
            if os.path.exists(file_path):
                os.remove(file_path)
            else:
                logger.warning("File not found for deletion: %s", file_path)
        except (OSError, ValueError) as e:
            logger.warning("Error deleting local file %s: %s", file_url, e)
