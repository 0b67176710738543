# Blackfynn API client and upload pipeline
from . import request, response
from .client import Blackfynn
from .progress import NoProgress, ProgressCallback, ProgressUpdate, UploadProgress
from .s3 import (
    DEFAULT_CONCURRENCY_LIMIT,
    S3_MIN_PART_SIZE,
    MultipartUploadResult,
    S3Uploader,
)

__all__ = [
    "request",
    "response",
    "Blackfynn",
    "NoProgress",
    "ProgressCallback",
    "ProgressUpdate",
    "UploadProgress",
    "DEFAULT_CONCURRENCY_LIMIT",
    "S3_MIN_PART_SIZE",
    "MultipartUploadResult",
    "S3Uploader",
]
