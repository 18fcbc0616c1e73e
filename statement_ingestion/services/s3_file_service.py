"""S3-compatible object store holding the uploaded documents of each batch."""

import boto3
from botocore.exceptions import ClientError

from statement_ingestion.core.errors import DocumentStorageError
from statement_ingestion.core.models import MediaType
from statement_ingestion.core.settings import Settings, get_settings
from statement_ingestion.core.utils import get_logger

logger = get_logger("statement-ingestion.storage")

MISSING_KEY_CODES = ("NoSuchKey", "404")


class S3FileService:
    """Stores document bytes in one bucket, keyed by batch and document name."""

    def __init__(self, settings: Settings | None = None) -> None:
        """Create the S3 client from settings and make sure the bucket exists."""
        settings = settings or get_settings()
        self.s3 = boto3.client(
            "s3",
            endpoint_url=settings.s3_endpoint_url,
            aws_access_key_id=settings.s3_access_key,
            aws_secret_access_key=settings.s3_secret_key,
        )
        self.bucket = settings.s3_bucket
        self.ensure_bucket()

    def ensure_bucket(self) -> None:
        """Create the document bucket on first use."""
        try:
            self.s3.head_bucket(Bucket=self.bucket)
        except ClientError:
            logger.info(f"Creating document bucket {self.bucket}")
            self.s3.create_bucket(Bucket=self.bucket)

    def upload_fileobj(self, key: str, data: bytes) -> None:
        """Store a document, tagging it with the media type guessed from its name."""
        media_type = MediaType.from_filename(key)
        extra = {"ContentType": media_type.value} if media_type else {}
        try:
            self.s3.put_object(Bucket=self.bucket, Key=key, Body=data, **extra)
        except ClientError as exc:
            msg = f"Could not store {key}: {exc}"
            raise DocumentStorageError(msg) from exc
        logger.debug(f"Stored {key} ({len(data)} bytes)")

    def download_fileobj(self, key: str) -> bytes:
        """Read a stored document back."""
        try:
            obj = self.s3.get_object(Bucket=self.bucket, Key=key)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            reason = "not found" if code in MISSING_KEY_CODES else str(exc)
            msg = f"Could not read {key}: {reason}"
            raise DocumentStorageError(msg) from exc
        return obj["Body"].read()

    def list_files(self, prefix: str = "") -> list[str]:
        """List every stored key under a prefix, following pagination."""
        paginator = self.s3.get_paginator("list_objects_v2")
        return [
            item["Key"]
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix)
            for item in page.get("Contents", [])
        ]
