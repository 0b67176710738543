"""
AWS S3 related types.
"""

from dataclasses import dataclass
from enum import Enum

from .types import ImportId, S3Key


class S3ServerSideEncryption(Enum):
    """Server side encryption scheme requested from S3."""
    KMS = "aws:kms"
    AES256 = "AES256"

    @classmethod
    def default(cls) -> "S3ServerSideEncryption":
        return cls.KMS


@dataclass(frozen=True)
class S3UploadKey:
    """
    The S3 key a file is uploaded under.

    Upload credentials hand out a static key prefix; it becomes the
    ``email`` component and the import ID and file name are appended.
    """
    email: str
    import_id: ImportId
    file_name: str

    @property
    def key(self) -> S3Key:
        return S3Key(f"{self.email}/data/{self.import_id}/{self.file_name}")

    def __str__(self) -> str:
        return self.key


def upload_key(s3_key: S3Key, import_id: ImportId, file_name: str) -> S3Key:
    """Turn the credential's static S3 key into the key for one uploaded file."""
    return S3UploadKey(s3_key, import_id, file_name).key
