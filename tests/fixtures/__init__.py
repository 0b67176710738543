# Test fixtures
from .sample_responses import (
    DATASET,
    MODEL,
    ORGANIZATION,
    ORGANIZATIONS,
    PACKAGE,
    PACKAGE_CONTENT,
    RECORD,
    SESSION,
    TEAM,
    TEMP_CREDENTIALS,
    TIMESTAMP,
    UPLOAD_CREDENTIAL,
    USER,
    FakeResponse,
    FakeS3Client,
    FakeSession,
    SlowS3Client,
    manifest,
    upload_preview,
)

__all__ = [
    "DATASET",
    "MODEL",
    "ORGANIZATION",
    "ORGANIZATIONS",
    "PACKAGE",
    "PACKAGE_CONTENT",
    "RECORD",
    "SESSION",
    "TEAM",
    "TEMP_CREDENTIALS",
    "TIMESTAMP",
    "UPLOAD_CREDENTIAL",
    "USER",
    "FakeResponse",
    "FakeS3Client",
    "FakeSession",
    "SlowS3Client",
    "manifest",
    "upload_preview",
]
