"""
Temporary AWS credentials handed out by the platform.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .types import (
    AccessKey,
    S3Bucket,
    S3EncryptionKeyId,
    S3Key,
    SecretKey,
    SessionToken,
    parse_datetime,
    require,
    require_object,
)


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


@dataclass
class TemporaryCredential:
    """
    Temporary credentials to perform an action, like uploading a file or
    streaming data.
    """
    access_key: AccessKey
    secret_key: SecretKey = field(repr=False)
    region: str
    session_token: SessionToken = field(repr=False)
    expiration: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Whether the credentials have expired. Naive timestamps are taken as UTC."""
        now = _as_utc(now or datetime.now(timezone.utc))
        return now >= _as_utc(self.expiration)

    @classmethod
    def from_dict(cls, data: dict) -> "TemporaryCredential":
        data = require_object(data, "TemporaryCredential")
        return cls(
            access_key=AccessKey(require(data, "accessKey")),
            secret_key=SecretKey(require(data, "secretKey")),
            region=require(data, "region"),
            session_token=SessionToken(require(data, "sessionToken")),
            expiration=parse_datetime(require(data, "expiration")),
        )


@dataclass
class UploadCredential:
    """Credentials, bucket and key prefix to upload files into a dataset."""
    temp_credentials: TemporaryCredential
    encryption_key_id: S3EncryptionKeyId
    s3_bucket: S3Bucket
    s3_key: S3Key

    @classmethod
    def from_dict(cls, data: dict) -> "UploadCredential":
        data = require_object(data, "UploadCredential")
        return cls(
            temp_credentials=TemporaryCredential.from_dict(require(data, "tempCredentials")),
            encryption_key_id=S3EncryptionKeyId(require(data, "encryptionKeyId")),
            s3_bucket=S3Bucket(require(data, "s3Bucket")),
            s3_key=S3Key(require(data, "s3Key")),
        )
