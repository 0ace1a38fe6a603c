"""S3-compatible FileStoragePort (AWS S3, MinIO).

Keys are used verbatim as object keys, so the ``tenants/{company}/...``
namespace built by TenantFileStore is the bucket layout. Presigned URLs are
real SigV4 ``get_object`` URLs limited to ``expires_in_seconds``.
"""

import logging
from typing import List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .ports import FileStoragePort, StorageError, StoredObject

logger = logging.getLogger(__name__)

MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "Unknown")


class S3FileStorageAdapter(FileStoragePort):
    """boto3-backed object storage for tenant files.

    Args:
        endpoint_url: None for AWS, the MinIO URL otherwise
        access_key: Access key ID
        secret_key: Secret access key
        bucket_name: Bucket holding every tenant's files
        region: Region used for signing
    """

    def __init__(
        self,
        endpoint_url: Optional[str],
        access_key: str,
        secret_key: str,
        bucket_name: str,
        region: str = "us-east-1",
    ):
        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
        except BotoCoreError as e:
            raise StorageError(f"Failed to initialize S3 client: {e}")

        self.bucket_name = bucket_name
        self.region = region
        logger.info(f"S3 storage ready: bucket={bucket_name} endpoint={endpoint_url or 'aws'} region={region}")

    def _fail(self, operation: str, key: str, error: ClientError) -> StorageError:
        code = _error_code(error)
        logger.error(f"S3 {operation} failed for {key}: {code}")
        return StorageError(f"S3 {operation} failed: {code}")

    async def put(self, key: str, content: bytes, mime_type: str) -> StoredObject:
        try:
            self.s3_client.put_object(Bucket=self.bucket_name, Key=key, Body=content, ContentType=mime_type)
        except ClientError as e:
            raise self._fail("put", key, e)
        return StoredObject(key=key, size_bytes=len(content), mime_type=mime_type)

    async def get(self, key: str) -> bytes:
        try:
            response = self.s3_client.get_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            if _error_code(e) in MISSING_CODES:
                raise FileNotFoundError(key)
            raise self._fail("get", key, e)
        return response["Body"].read()

    async def delete(self, key: str) -> bool:
        # delete_object succeeds for missing keys, so check first
        if await self.stat(key) is None:
            return False
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            raise self._fail("delete", key, e)
        return True

    async def exists(self, key: str) -> bool:
        return await self.stat(key) is not None

    async def stat(self, key: str) -> Optional[StoredObject]:
        try:
            head = self.s3_client.head_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            if _error_code(e) in MISSING_CODES:
                return None
            raise self._fail("head", key, e)

        return StoredObject(
            key=key,
            size_bytes=head.get("ContentLength", 0),
            mime_type=head.get("ContentType"),
            modified_at=head.get("LastModified"),
        )

    async def list(self, prefix: str) -> List[str]:
        """Object names directly under ``prefix`` (one level, like a directory)."""
        directory = prefix.rstrip("/") + "/"
        names = []
        try:
            pages = self.s3_client.get_paginator("list_objects_v2").paginate(
                Bucket=self.bucket_name, Prefix=directory, Delimiter="/"
            )
            for page in pages:
                names.extend(item["Key"][len(directory):] for item in page.get("Contents", []))
        except ClientError as e:
            raise self._fail("list", directory, e)
        return sorted(name for name in names if name)

    async def generate_presigned_url(self, key: str, expires_in_seconds: int = 3600) -> str:
        try:
            return self.s3_client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket_name, "Key": key},
                ExpiresIn=expires_in_seconds,
            )
        except ClientError as e:
            raise self._fail("presign", key, e)

    async def verify_bucket_exists(self) -> bool:
        """Fail fast at start-up when the bucket is missing or unreachable.

        Raises:
            StorageError: Bucket missing or HEAD failed
        """
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
        except ClientError as e:
            if _error_code(e) in MISSING_CODES:
                raise StorageError(f"Bucket '{self.bucket_name}' does not exist; create it or set S3_BUCKET_NAME")
            raise self._fail("head_bucket", self.bucket_name, e)
        return True
