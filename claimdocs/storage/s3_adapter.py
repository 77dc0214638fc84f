from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from claimdocs.documents.exceptions import StorageError
from claimdocs.storage.base import BaseObjectStorage, storage_key


class S3Storage(BaseObjectStorage):
    """Stores objects in an S3 bucket. Handles look like s3://bucket/documents/..."""

    scheme = "s3"

    def __init__(
        self,
        *,
        bucket: str,
        region: str,
        access_key_id: str = "",
        secret_access_key: str = "",
        client: Any = None,
    ) -> None:
        self._bucket = bucket
        if client is None:
            client = boto3.client(
                "s3",
                region_name=region,
                aws_access_key_id=access_key_id or None,
                aws_secret_access_key=secret_access_key or None,
            )
        self._client = client

    def store(
        self,
        data: bytes,
        document_id: str,
        version: int,
        filename: str,
        mime_type: str,
    ) -> str:
        key = storage_key(document_id, version, filename)
        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=data,
                ContentType=mime_type,
                Metadata={"document-id": document_id, "version": str(version)},
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"Failed to upload {key} to S3: {exc}") from exc
        return f"{self.scheme}://{self._bucket}/{key}"

    def read(self, location: str) -> bytes:
        bucket, key = self._split(location)
        try:
            response = self._client.get_object(Bucket=bucket, Key=key)
            return response["Body"].read()
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"Failed to read {location} from S3: {exc}") from exc

    def delete(self, location: str) -> None:
        bucket, key = self._split(location)
        try:
            self._client.delete_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"Failed to delete {location} from S3: {exc}") from exc

    def signed_url(self, location: str, ttl_seconds: int) -> str:
        bucket, key = self._split(location)
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=ttl_seconds,
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"Failed to sign URL for {location}: {exc}") from exc

    def _split(self, location: str) -> tuple[str, str]:
        bucket, _, key = self._key(location).partition("/")
        if not bucket or not key:
            raise StorageError(f"Malformed S3 location: {location}")
        return bucket, key
