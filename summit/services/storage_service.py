"""
services/storage_service.py
---------------------------
S3 / MinIO object storage access through boto3.

Only presigned GET URLs are issued; objects never pass through this API.
"""

from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from summit.core.config import settings
from summit.core.errors import UpstreamFailure
from summit.core.logging import get_logger

logger = get_logger(__name__)


class ObjectStorage:

    def __init__(self, client=None, bucket: Optional[str] = None) -> None:
        self.bucket = bucket or settings.S3_BUCKET
        self.client = client or boto3.client(
            "s3",
            endpoint_url=settings.S3_ENDPOINT_URL,
            aws_access_key_id=settings.S3_ACCESS_KEY,
            aws_secret_access_key=settings.S3_SECRET_KEY,
            region_name=settings.S3_REGION,
            config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
        )

    def presigned_get_url(self, key: str, expires: Optional[int] = None) -> str:
        expires = expires or settings.PRESIGNED_URL_EXPIRE_SECONDS
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("Presigned URL generation failed", key=key, error=str(exc))
            raise UpstreamFailure("Failed to generate download URL") from exc


def company_logo_prefix(company_id: str) -> str:
    return f"{company_id}/logos/"
