"""Object store access for the pipeline.

Objects are addressed by canonical paths of the form ``/objects/<key>``; the
gateway maps them to bucket keys.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError
from django.conf import settings

from .exceptions import ObjectNotFound

logger = logging.getLogger(__name__)

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


@dataclass(frozen=True)
class AclPolicy:
    owner: str
    visibility: str = "public"

    @property
    def is_public(self) -> bool:
        return self.visibility == "public"


def get_s3_client():
    """
    SDK client for server-side upload/download.
    """
    session = boto3.session.Session(
        aws_access_key_id=settings.S3_ACCESS_KEY,
        aws_secret_access_key=settings.S3_SECRET_KEY,
        region_name=settings.S3_REGION,
    )
    return session.client(
        "s3",
        endpoint_url=settings.S3_ENDPOINT_URL,  # e.g. http://127.0.0.1:9000
        config=BotoConfig(
            s3={"addressing_style": "path"},
            signature_version="s3v4",
        ),
    )


def object_path_for(key: str) -> str:
    """Canonical path other systems serve the object from."""
    return f"{settings.OBJECT_PATH_PREFIX.rstrip('/')}/{key.lstrip('/')}"


def key_for(object_path: str) -> str:
    """Inverse of object_path_for; raises ObjectNotFound for foreign paths."""
    prefix = settings.OBJECT_PATH_PREFIX.rstrip("/") + "/"
    if not object_path.startswith(prefix):
        raise ObjectNotFound(object_path)
    key = object_path[len(prefix):]
    if not key:
        raise ObjectNotFound(object_path)
    return key


class ObjectStore(ABC):
    """What the pipeline needs from the object store."""

    @abstractmethod
    def download_object(self, object_path: str, destination: Path) -> Path:
        """Fetch ``object_path`` to ``destination`` and return it."""

    @abstractmethod
    def upload_buffer(self, data: bytes, content_type: str, target_key: str) -> str:
        """Store ``data`` under ``target_key``; return the canonical object path."""

    @abstractmethod
    def set_acl_policy(self, object_path: str, policy: AclPolicy) -> None:
        """Make the access policy of an uploaded object explicit."""

    @abstractmethod
    def exists(self, object_path: str) -> bool:
        """Whether ``object_path`` names a stored object."""


class S3ObjectStore(ObjectStore):
    """ObjectStore on S3/MinIO.

    The ACL policy becomes a canned ACL plus ``owner``/``visibility`` tags, so
    the owner stays queryable after upload.
    """

    def __init__(self, client=None, bucket: str | None = None) -> None:
        self._client = client
        self.bucket = bucket or settings.S3_BUCKET

    @property
    def client(self):
        if self._client is None:
            self._client = get_s3_client()
        return self._client

    def download_object(self, object_path: str, destination: Path) -> Path:
        key = key_for(object_path)
        try:
            self.client.download_file(self.bucket, key, str(destination))
        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                raise ObjectNotFound(object_path) from e
            raise
        return Path(destination)

    def upload_buffer(self, data: bytes, content_type: str, target_key: str) -> str:
        key = target_key.lstrip("/")
        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
        )
        return object_path_for(key)

    def set_acl_policy(self, object_path: str, policy: AclPolicy) -> None:
        key = key_for(object_path)
        self.client.put_object_acl(
            Bucket=self.bucket,
            Key=key,
            ACL="public-read" if policy.is_public else "private",
        )
        self.client.put_object_tagging(
            Bucket=self.bucket,
            Key=key,
            Tagging={
                "TagSet": [
                    {"Key": "owner", "Value": str(policy.owner)},
                    {"Key": "visibility", "Value": policy.visibility},
                ]
            },
        )

    def exists(self, object_path: str) -> bool:
        key = key_for(object_path)
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                return False
            raise
        return True


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))
