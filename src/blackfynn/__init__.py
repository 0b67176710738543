# Blackfynn platform client
from .api import Blackfynn
from .config import Config, Environment
from .errors import (
    ApiError,
    BlackfynnError,
    ConfigError,
    HttpError,
    InvalidUnicodePathError,
    JsonError,
    MultipartUploadAborted,
    S3Error,
    S3MissingUploadIdError,
    UploadFileError,
)

__version__ = "0.1.0"

__all__ = [
    "Blackfynn",
    "Config",
    "Environment",
    "ApiError",
    "BlackfynnError",
    "ConfigError",
    "HttpError",
    "InvalidUnicodePathError",
    "JsonError",
    "MultipartUploadAborted",
    "S3Error",
    "S3MissingUploadIdError",
    "UploadFileError",
]
