"""
Exceptions raised by the Blackfynn client.
"""

from typing import Any, Optional


class BlackfynnError(Exception):
    """Base class for every error raised by this library."""

    kind = "Blackfynn"

    def __init__(self, detail: str = ""):
        super().__init__(detail)
        self.detail = detail

    def __str__(self) -> str:
        return f"{self.kind} error :: {self.detail}"


class ConfigError(BlackfynnError):
    """Raised when the client configuration or environment is invalid."""

    kind = "Config"


class ApiError(BlackfynnError):
    """Raised when the platform answers with a 4xx or 5xx status."""

    kind = "API"

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code} :: {message}")
        self.status_code = status_code
        self.message = message

    @property
    def is_transient(self) -> bool:
        """Rate limiting and server side failures may succeed on retry."""
        return self.status_code == 429 or self.status_code >= 500


class HttpError(BlackfynnError):
    """Raised when a request could not be delivered (connection, timeout)."""

    kind = "HTTP"


class JsonError(BlackfynnError):
    """Raised when a response body is not the JSON that was expected."""

    kind = "JSON"


class InvalidUnicodePathError(BlackfynnError):
    """Raised when a file name cannot be represented as UTF-8."""

    kind = "Invalid unicode path"

    def __init__(self, path):
        super().__init__(f"Invalid unicode characters in path :: {path!r}")
        self.path = path


class UploadFileError(BlackfynnError):
    """Raised when a path selected for upload is missing or not a file."""

    kind = "IO"


class S3Error(BlackfynnError):
    """Raised when a call to AWS S3 fails."""

    kind = "S3"


class S3MissingUploadIdError(S3Error):
    """Raised when a multipart operation has no S3 upload ID to act on."""

    def __init__(self, detail: str = "missing multipart upload id"):
        super().__init__(detail)


class MultipartUploadAborted(S3Error):
    """
    Raised when a multipart upload had to be aborted.

    Carries the error that caused the abort and the S3 response to the
    abort request.
    """

    def __init__(self, cause: BlackfynnError, abort_output: Optional[Any] = None):
        super().__init__(f"multipart upload aborted :: {cause}")
        self.cause = cause
        self.abort_output = abort_output
