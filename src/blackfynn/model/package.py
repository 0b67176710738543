"""
Datasets, packages and the files and channels that belong to them.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from ..errors import JsonError
from .types import DatasetId, PackageId, parse_datetime, require, require_object


class PackageState(Enum):
    """A package's processing state."""
    DELETING = "DELETING"
    ERROR = "ERROR"
    FAILED = "FAILED"
    PENDING = "PENDING"
    READY = "READY"
    RUNNABLE = "RUNNABLE"
    RUNNING = "RUNNING"
    STARTING = "STARTING"
    SUBMITTED = "SUBMITTED"
    SUCCEEDED = "SUCCEEDED"
    UNAVAILABLE = "UNAVAILABLE"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["PackageState"]:
        if value is None:
            return None
        try:
            return cls(value.upper())
        except (ValueError, AttributeError):
            raise JsonError(f"Invalid package state: {value}")


class PackageType(Enum):
    """A package's type. The API is inconsistent about case, see ``parse``."""
    COLLECTION = "Collection"
    DATA_SET = "DataSet"
    CSV = "CSV"
    IMAGE = "Image"
    MRI = "MRI"
    MS_WORD = "MSWord"
    PDF = "PDF"
    SLIDE = "Slide"
    TABULAR = "Tabular"
    TEXT = "Text"
    TIME_SERIES = "TimeSeries"
    UNKNOWN = "Unknown"
    UNSUPPORTED = "Unsupported"
    VIDEO = "Video"

    @classmethod
    def default(cls) -> "PackageType":
        return cls.UNKNOWN

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["PackageType"]:
        """
        Parse a package type regardless of case.

        Raises:
            JsonError: If the value names no known package type.
        """
        if value is None:
            return None
        if isinstance(value, str):
            lowered = value.lower()
            for member in cls:
                if member.value.lower() == lowered:
                    return member
        raise JsonError(f"Invalid package type: {value}")


@dataclass
class Package:
    """A "package" representation on the Blackfynn platform."""
    id: PackageId
    name: str
    dataset_id: DatasetId
    created_at: datetime
    updated_at: datetime
    state: Optional[PackageState] = None
    package_type: Optional[PackageType] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Package":
        data = require_object(data, "Package")
        return cls(
            id=PackageId(require(data, "id")),
            name=require(data, "name"),
            dataset_id=DatasetId(require(data, "datasetId")),
            created_at=parse_datetime(require(data, "createdAt")),
            updated_at=parse_datetime(require(data, "updatedAt")),
            state=PackageState.parse(data.get("state", data.get("packageState"))),
            package_type=PackageType.parse(data.get("packageType")),
        )


@dataclass
class Dataset:
    id: DatasetId
    name: str
    created_at: datetime
    updated_at: datetime
    state: Optional[PackageState] = None
    description: Optional[str] = None
    package_type: Optional[PackageType] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Dataset":
        data = require_object(data, "Dataset")
        return cls(
            id=DatasetId(require(data, "id")),
            name=require(data, "name"),
            created_at=parse_datetime(require(data, "createdAt")),
            updated_at=parse_datetime(require(data, "updatedAt")),
            state=PackageState.parse(data.get("state")),
            description=data.get("description"),
            package_type=PackageType.parse(data.get("packageType")),
        )


class FileObjectType(Enum):
    FILE = "file"
    VIEW = "view"
    SOURCE = "source"


@dataclass
class File:
    """A file stored on the platform as part of a package."""
    name: str
    file_type: str
    s3_bucket: str
    s3_key: str
    object_type: FileObjectType
    size: int

    @classmethod
    def from_dict(cls, data: dict) -> "File":
        data = require_object(data, "File")
        object_type = require(data, "objectType")
        try:
            object_type = FileObjectType(object_type.lower())
        except (ValueError, AttributeError):
            raise JsonError(f"Invalid file object type: {object_type}")
        return cls(
            name=require(data, "name"),
            file_type=require(data, "fileType"),
            s3_bucket=require(data, "s3bucket"),
            s3_key=require(data, "s3key"),
            object_type=object_type,
            size=int(require(data, "size")),
        )


@dataclass
class Channel:
    """A timeseries channel."""
    name: str
    rate: float
    start: int
    end: int
    unit: str
    channel_type: str
    spike_duration: Optional[int] = None
    group: Optional[str] = None

    @property
    def duration(self) -> int:
        return self.end - self.start

    @classmethod
    def from_dict(cls, data: dict) -> "Channel":
        data = require_object(data, "Channel")
        return cls(
            name=require(data, "name"),
            rate=float(require(data, "rate")),
            start=int(require(data, "start")),
            end=int(require(data, "end")),
            unit=require(data, "unit"),
            channel_type=require(data, "channelType"),
            spike_duration=data.get("spikeDuration"),
            group=data.get("group"),
        )
