import logging
import os
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError
from .base import BaseStorage, PRESIGNED_URL_EXPIRES_IN

logger = logging.getLogger(__name__)

# Get S3 config from environment variables (works for R2 and other S3-compatible stores)
S3_BUCKET_NAME = os.getenv("S3_BUCKET_NAME")
S3_ENDPOINT_URL = os.getenv("S3_ENDPOINT_URL")
S3_PUBLIC_BASE_URL = os.getenv("S3_PUBLIC_BASE_URL")
AWS_ACCESS_KEY_ID = os.getenv("AWS_ACCESS_KEY_ID")
AWS_SECRET_ACCESS_KEY = os.getenv("AWS_SECRET_ACCESS_KEY")
AWS_REGION = os.getenv("AWS_REGION", "auto")


class S3Storage(BaseStorage):
    def __init__(self):
        if not all([S3_BUCKET_NAME, AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY]):
            raise ValueError("S3 environment variables are not fully set.")
        self.s3_client = boto3.client(
            "s3",
            endpoint_url=S3_ENDPOINT_URL,
            aws_access_key_id=AWS_ACCESS_KEY_ID,
            aws_secret_access_key=AWS_SECRET_ACCESS_KEY,
            region_name=AWS_REGION,
            config=Config(signature_version="s3v4", s3={"addressing_style": "path"} if S3_ENDPOINT_URL else None)
        )
        self.bucket_name = S3_BUCKET_NAME

    def _base_url(self) -> str:
        if S3_PUBLIC_BASE_URL:
            return S3_PUBLIC_BASE_URL.rstrip("/")
        if S3_ENDPOINT_URL:
            return f"{S3_ENDPOINT_URL.rstrip('/')}/{self.bucket_name}"
        return f"https://{self.bucket_name}.s3.{AWS_REGION}.amazonaws.com"

    def generate_presigned_url(self, key: str, content_type: str, expires_in: int = PRESIGNED_URL_EXPIRES_IN) -> str:
        try:
            return self.s3_client.generate_presigned_url(
                "put_object",
                Params={"Bucket": self.bucket_name, "Key": key, "ContentType": content_type},
                ExpiresIn=expires_in
            )
        except NoCredentialsError:
            raise Exception("AWS credentials not available.")

    def public_url(self, key: str) -> str:
        return f"{self._base_url()}/{key}"

    def upload_bytes(self, data: bytes, key: str, content_type: str) -> str:
        try:
            self.s3_client.put_object(Bucket=self.bucket_name, Key=key, Body=data, ContentType=content_type)
        except NoCredentialsError:
            raise Exception("AWS credentials not available.")
        return self.public_url(key)

    def extract_key(self, file_url: str) -> Optional[str]:
        if not file_url:
            return None
        prefix = self._base_url() + "/"
        if file_url.startswith(prefix):
            return file_url[len(prefix):]
        # Assuming file_url is in the format: https://<host>/<s3_key>
        parts = file_url.split("/")
        if len(parts) < 4:
            return None
        return "/".join(parts[3:])

    def delete(self, file_url: str) -> None:
        key = self.extract_key(file_url)
        if not key:
            logger.warning("Could not extract object key from %s", file_url)
            return
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.warning("Error deleting S3 object %s: %s", file_url, e)
