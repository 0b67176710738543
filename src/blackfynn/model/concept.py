"""
Models (formerly "concepts") and their records (formerly "concept instances").
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, Optional

from .types import ModelId, RecordId, parse_datetime, require, require_object


@dataclass
class Model:
    """A user defined model in a dataset's knowledge graph."""
    id: ModelId
    name: str
    display_name: str
    created_at: datetime
    updated_at: datetime
    description: str = ""
    locked: bool = False
    count: int = 0
    property_count: int = 0
    template_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Model":
        data = require_object(data, "Model")
        return cls(
            id=ModelId(require(data, "id")),
            name=require(data, "name"),
            display_name=data.get("displayName", data["name"]),
            created_at=parse_datetime(require(data, "createdAt")),
            updated_at=parse_datetime(require(data, "updatedAt")),
            description=data.get("description") or "",
            locked=bool(data.get("locked", False)),
            count=int(data.get("count", 0)),
            property_count=int(data.get("propertyCount", 0)),
            template_id=data.get("templateId"),
        )


@dataclass
class RecordDatum:
    """A single property value attached to a record."""
    name: str
    display_name: str
    value: Optional[str] = None
    required: bool = False
    locked: bool = False
    default: bool = False
    is_title: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "RecordDatum":
        data = require_object(data, "RecordDatum")
        return cls(
            name=require(data, "name"),
            display_name=data.get("displayName", data["name"]),
            value=data.get("value"),
            required=bool(data.get("required", False)),
            locked=bool(data.get("locked", False)),
            default=bool(data.get("default", False)),
            is_title=bool(data.get("conceptTitle", data.get("isTitle", False))),
        )


@dataclass
class Record:
    """A data instance of a model."""
    id: RecordId
    type: str
    created_at: datetime
    updated_at: datetime
    values: list[RecordDatum] = field(default_factory=list)

    def __iter__(self) -> Iterator[RecordDatum]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def is_empty(self) -> bool:
        return len(self) == 0

    def get(self, name: str) -> Optional[RecordDatum]:
        """Return the datum with the given property name, if present."""
        for datum in self.values:
            if datum.name == name:
                return datum
        return None

    @property
    def title(self) -> Optional[str]:
        for datum in self.values:
            if datum.is_title:
                return datum.value
        return None

    @classmethod
    def from_dict(cls, data: dict) -> "Record":
        data = require_object(data, "Record")
        return cls(
            id=RecordId(require(data, "id")),
            type=require(data, "type"),
            created_at=parse_datetime(require(data, "createdAt")),
            updated_at=parse_datetime(require(data, "updatedAt")),
            values=[RecordDatum.from_dict(v) for v in data.get("values", [])],
        )
