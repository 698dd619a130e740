"""
Object storage abstraction for S3-compatible buckets and in-memory testing.
"""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from typing import Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from portfolio.errors import TransportFailure


class StorageClient(Protocol):
    """Defines the operations the contracts need from object storage."""

    def upload(
        self,
        key: str,
        data: bytes,
        *,
        content_type: Optional[str] = None,
        overwrite: bool = False,
    ) -> None:
        ...

    def get_public_url(self, key: str) -> str:
        ...

    def get_bytes(self, key: str) -> bytes:
        ...


def guess_content_type(key: str) -> str:
    return mimetypes.guess_type(key)[0] or "application/octet-stream"


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    base_url: str = "https://example.test/storage/v1/object/public/portfolio-files"
    stored_objects: dict = field(default_factory=dict)
    content_types: dict = field(default_factory=dict)
    # Set to make the next uploads fail, mimicking an unreachable bucket.
    fail_uploads: Optional[str] = None

    def upload(
        self,
        key: str,
        data: bytes,
        *,
        content_type: Optional[str] = None,
        overwrite: bool = False,
    ) -> None:
        if self.fail_uploads:
            raise TransportFailure(self.fail_uploads)
        if key in self.stored_objects and not overwrite:
            raise TransportFailure(f"The resource already exists: {key}")
        self.stored_objects[key] = bytes(data)
        self.content_types[key] = content_type or guess_content_type(key)

    def get_public_url(self, key: str) -> str:
        return f"{self.base_url}/{key}"

    def get_bytes(self, key: str) -> bytes:
        stored = self.stored_objects.get(key)
        if stored is None:
            raise FileNotFoundError(key)
        return stored

    def get_bytes_by_url(self, url: str) -> bytes:
        """Resolve a public URL issued by this client back to its bytes."""
        prefix = f"{self.base_url}/"
        if not url.startswith(prefix):
            raise FileNotFoundError(url)
        return self.get_bytes(url[len(prefix):])


@dataclass
class S3StorageClient:
    """
    S3-compatible storage client. Objects are expected to be publicly readable
    through `public_base_url` (a CDN or the bucket's public endpoint).
    """

    bucket: str
    region: str
    endpoint: str
    access_key_id: str
    secret_access_key: str
    public_base_url: str = ""

    def __post_init__(self):
        config = Config(
            s3={"addressing_style": "virtual"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )
        if not self.public_base_url:
            self.public_base_url = f"{self.endpoint.rstrip('/')}/{self.bucket}"

    def upload(
        self,
        key: str,
        data: bytes,
        *,
        content_type: Optional[str] = None,
        overwrite: bool = False,
    ) -> None:
        # Conditional write: S3 rejects the PUT with 412 if the key exists.
        conditions = {} if overwrite else {"IfNoneMatch": "*"}
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type or guess_content_type(key),
                **conditions,
            )
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == "PreconditionFailed":
                raise TransportFailure(f"The resource already exists: {key}") from exc
            raise TransportFailure(str(exc)) from exc
        except BotoCoreError as exc:
            raise TransportFailure(str(exc)) from exc

    def get_public_url(self, key: str) -> str:
        return f"{self.public_base_url.rstrip('/')}/{key}"

    def get_bytes(self, key: str) -> bytes:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            raise TransportFailure(str(exc)) from exc
        return response["Body"].read()
