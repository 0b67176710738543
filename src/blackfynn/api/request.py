"""
Request payloads sent to the Blackfynn API.

Every payload renders its camelCase wire form with ``to_dict``.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from ..model import DatasetId, PackageType, S3File


@dataclass
class ApiLogin:
    """Log in with an API token and its secret."""
    token_id: str
    secret: str = field(repr=False)

    def to_dict(self) -> dict:
        return {"tokenId": self.token_id, "secret": self.secret}


@dataclass
class UserUpdate:
    """A user ``PUT`` request. Fields left as ``None`` are not sent."""
    organization: Optional[str] = None
    email: Optional[str] = None
    url: Optional[str] = None
    color: Optional[str] = None
    last_name: Optional[str] = None
    first_name: Optional[str] = None
    credential: Optional[str] = None

    def to_dict(self) -> dict:
        payload = {
            "organization": self.organization,
            "email": self.email,
            "url": self.url,
            "color": self.color,
            "lastName": self.last_name,
            "firstName": self.first_name,
            "credential": self.credential,
        }
        return {k: v for k, v in payload.items() if v is not None}


@dataclass
class PreviewPackage:
    """A preview request for a set of files about to be uploaded."""
    files: list[S3File]

    def to_dict(self) -> dict:
        return {"files": [f.to_dict() for f in self.files]}


@dataclass
class CreateDataset:
    name: str
    description: Optional[str] = None
    automatically_process_packages: bool = False

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "automaticallyProcessPackages": self.automatically_process_packages,
        }


@dataclass
class UpdateDataset:
    name: str
    description: Optional[str] = None

    def to_dict(self) -> dict:
        return {"name": self.name, "description": self.description}


@dataclass
class CreatePackage:
    name: str
    package_type: PackageType
    dataset: DatasetId
    properties: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "packageType": self.package_type.value,
            "properties": list(self.properties),
            "dataset": self.dataset,
        }


@dataclass
class UpdatePackage:
    name: str

    def to_dict(self) -> dict:
        return {"name": self.name}


@dataclass
class CreateModel:
    """
    Create (or update) a model.

    Setters return the payload so calls can be chained::

        CreateModel("patient", "Patient").set_description("Study subjects").set_locked(True)
    """
    name: str
    display_name: str
    description: str = ""
    locked: bool = False
    template_id: Optional[str] = None

    def set_description(self, description: str) -> "CreateModel":
        self.description = description
        return self

    def set_locked(self, locked: bool) -> "CreateModel":
        self.locked = locked
        return self

    def set_template_id(self, template_id: str) -> "CreateModel":
        self.template_id = template_id
        return self

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "displayName": self.display_name,
            "description": self.description,
            "locked": self.locked,
            "templateId": self.template_id,
        }


UpdateModel = CreateModel


@dataclass
class CreateRecordDatum:
    name: str
    value: Optional[str] = None

    def to_dict(self) -> dict:
        return {"name": self.name, "value": self.value}


@dataclass
class CreateRecord:
    values: list[CreateRecordDatum] = field(default_factory=list)

    def append(self, datum: CreateRecordDatum) -> "CreateRecord":
        self.values.append(datum)
        return self

    def to_dict(self) -> dict:
        return {"values": [v.to_dict() for v in self.values]}
