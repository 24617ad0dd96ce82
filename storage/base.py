from abc import ABC, abstractmethod
from typing import Optional

PRESIGNED_URL_EXPIRES_IN = 300  # seconds


class BaseStorage(ABC):
    @abstractmethod
    def generate_presigned_url(self, key: str, content_type: str, expires_in: int = PRESIGNED_URL_EXPIRES_IN) -> str:
        """Returns a URL the client can PUT the object to."""
        pass

    @abstractmethod
    def public_url(self, key: str) -> str:
        """Returns the URL the stored object is served from."""
        pass

    @abstractmethod
    def upload_bytes(self, data: bytes, key: str, content_type: str) -> str:
        """Stores raw bytes under key and returns the public URL."""
        pass

    @abstractmethod
    def delete(self, file_url: str) -> None:
        """Deletes the file from the storage. Never raises."""
        pass

    @abstractmethod
    def extract_key(self, file_url: str) -> Optional[str]:
        """Maps a public URL back to its object key, or None if it is not ours."""
        pass
