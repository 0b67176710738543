"""
Identifier types and wire-format helpers shared by the models.
"""

from datetime import datetime
from typing import Any, NewType, Optional

from ..errors import JsonError


DatasetId = NewType("DatasetId", str)
PackageId = NewType("PackageId", str)
OrganizationId = NewType("OrganizationId", str)
TeamId = NewType("TeamId", str)
ImportId = NewType("ImportId", str)
ModelId = NewType("ModelId", str)
RecordId = NewType("RecordId", str)
SessionToken = NewType("SessionToken", str)
AccessKey = NewType("AccessKey", str)
SecretKey = NewType("SecretKey", str)
S3Bucket = NewType("S3Bucket", str)
S3Key = NewType("S3Key", str)
S3EncryptionKeyId = NewType("S3EncryptionKeyId", str)
MultipartUploadId = NewType("MultipartUploadId", str)
UploadId = NewType("UploadId", int)


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp as sent by the API (``Z`` suffix allowed)."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise JsonError(f"Expected a timestamp string, got {value!r}")
    try:
        return datetime.fromisoformat(_normalize_timestamp(value))
    except ValueError as e:
        raise JsonError(f"Invalid timestamp {value!r}: {e}") from e


def _normalize_timestamp(value: str) -> str:
    value = value.strip().replace("Z", "+00:00")
    # fromisoformat before 3.11 only takes 3 or 6 fractional digits
    if "." in value:
        head, _, tail = value.partition(".")
        digits = ""
        while tail and tail[0].isdigit():
            digits, tail = digits + tail[0], tail[1:]
        value = f"{head}.{digits[:6].ljust(6, '0')}{tail}"
    return value


def require(data: dict, key: str) -> Any:
    """Return ``data[key]``, raising ``JsonError`` when it is missing."""
    try:
        return data[key]
    except (KeyError, TypeError):
        raise JsonError(f"Missing field {key!r} in {type(data).__name__} payload")


def require_object(data: Any, name: str) -> dict:
    """Return ``data`` if it is a JSON object, raising ``JsonError`` otherwise."""
    if not isinstance(data, dict):
        raise JsonError(f"Expected a JSON object for {name}, got {type(data).__name__}")
    return data


def require_list(data: Any, name: str) -> list:
    """Return ``data`` if it is a JSON array, raising ``JsonError`` otherwise."""
    if not isinstance(data, list):
        raise JsonError(f"Expected a JSON array for {name}, got {type(data).__name__}")
    return data
