"""
Response envelopes returned by the Blackfynn API.

Most endpoints wrap the resource in a ``content`` object next to related
metadata; ``into_inner`` unwraps it.
"""

from dataclasses import dataclass, field
from typing import Optional

from .. import model
from ..errors import JsonError
from ..model.types import require, require_list, require_object


@dataclass
class ApiSession:
    """The result of a successful API token login."""
    session_token: model.SessionToken = field(repr=False)
    organization: Optional[model.OrganizationId] = None
    expires_in: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict) -> "ApiSession":
        data = require_object(data, "ApiSession")
        # the session endpoint answers in snake_case, unlike the rest of the API
        token = data.get("session_token", data.get("sessionToken"))
        if not token:
            raise JsonError("Missing session token in login response")
        organization = data.get("organization")
        expires_in = data.get("expires_in", data.get("expiresIn"))
        return cls(
            session_token=model.SessionToken(token),
            organization=model.OrganizationId(organization) if organization else None,
            expires_in=int(expires_in) if expires_in is not None else None,
        )


@dataclass
class Organization:
    organization: model.Organization
    is_admin: bool = False
    is_owner: bool = False
    owners: list[model.User] = field(default_factory=list)
    administrators: list[model.User] = field(default_factory=list)

    def into_inner(self) -> model.Organization:
        return self.organization

    @classmethod
    def from_dict(cls, data: dict) -> "Organization":
        data = require_object(data, "Organization")
        return cls(
            organization=model.Organization.from_dict(require(data, "organization")),
            is_admin=bool(data.get("isAdmin", False)),
            is_owner=bool(data.get("isOwner", False)),
            owners=[model.User.from_dict(u) for u in data.get("owners", [])],
            administrators=[model.User.from_dict(u) for u in data.get("administrators", [])],
        )


@dataclass
class Organizations:
    """A listing of the organizations a user is a member of."""
    organizations: list[Organization] = field(default_factory=list)

    def __iter__(self):
        return iter(self.organizations)

    def __len__(self) -> int:
        return len(self.organizations)

    @classmethod
    def from_dict(cls, data: dict) -> "Organizations":
        data = require_object(data, "Organizations")
        return cls(
            organizations=[Organization.from_dict(o) for o in data.get("organizations", [])]
        )


@dataclass
class Team:
    team: model.Team
    administrators: list[model.User] = field(default_factory=list)
    is_admin: bool = False
    member_count: int = 0

    def into_inner(self) -> model.Team:
        return self.team

    @classmethod
    def from_dict(cls, data: dict) -> "Team":
        data = require_object(data, "Team")
        return cls(
            team=model.Team.from_dict(require(data, "team")),
            administrators=[model.User.from_dict(u) for u in data.get("administrators", [])],
            is_admin=bool(data.get("isAdmin", False)),
            member_count=int(data.get("memberCount", 0)),
        )


@dataclass
class File:
    content: model.File

    def into_inner(self) -> model.File:
        return self.content

    @classmethod
    def from_dict(cls, data: dict) -> "File":
        data = require_object(data, "File")
        return cls(content=model.File.from_dict(require(data, "content")))


@dataclass
class Channel:
    content: model.Channel

    def into_inner(self) -> model.Channel:
        return self.content

    @classmethod
    def from_dict(cls, data: dict) -> "Channel":
        data = require_object(data, "Channel")
        return cls(content=model.Channel.from_dict(require(data, "content")))


@dataclass
class ObjectMap:
    """The ``objects`` map of a package fetched with ``include=``."""
    source: Optional[list[File]] = None
    file: Optional[list[File]] = None
    view: Optional[list[File]] = None

    @classmethod
    def from_dict(cls, data: dict) -> "ObjectMap":
        data = require_object(data, "ObjectMap")

        def files(key):
            items = data.get(key)
            return None if items is None else [File.from_dict(f) for f in items]

        return cls(source=files("source"), file=files("file"), view=files("view"))


@dataclass
class Package:
    """A package along with its channels, children and stored objects."""
    content: model.Package
    channels: Optional[list[Channel]] = None
    children: Optional[list["Package"]] = None
    objects: Optional[ObjectMap] = None

    def into_inner(self) -> model.Package:
        return self.content

    @classmethod
    def from_dict(cls, data: dict) -> "Package":
        data = require_object(data, "Package")
        channels = data.get("channels")
        children = data.get("children")
        objects = data.get("objects")
        return cls(
            content=model.Package.from_dict(require(data, "content")),
            channels=None if channels is None else [Channel.from_dict(c) for c in channels],
            children=None if children is None else [Package.from_dict(c) for c in children],
            objects=None if objects is None else ObjectMap.from_dict(objects),
        )


@dataclass
class Dataset:
    """A dataset along with its owner, organization and top-level packages."""
    content: model.Dataset
    organization: str
    owner: str
    children: Optional[list[Package]] = None

    def into_inner(self) -> model.Dataset:
        return self.content

    @classmethod
    def from_dict(cls, data: dict) -> "Dataset":
        data = require_object(data, "Dataset")
        children = data.get("children")
        return cls(
            content=model.Dataset.from_dict(require(data, "content")),
            organization=require(data, "organization"),
            owner=require(data, "owner"),
            children=None if children is None else [Package.from_dict(c) for c in children],
        )


@dataclass
class UploadPreview:
    """How the platform intends to package a set of files."""
    packages: list[model.PackagePreview] = field(default_factory=list)

    def __iter__(self):
        return iter(self.packages)

    @classmethod
    def from_dict(cls, data: dict) -> "UploadPreview":
        data = require_object(data, "UploadPreview")
        return cls(
            packages=[model.PackagePreview.from_dict(p) for p in data.get("packages", [])]
        )


@dataclass
class Manifest:
    """The processing jobs created for a completed upload."""
    entries: list[model.ManifestEntry] = field(default_factory=list)

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    @classmethod
    def from_list(cls, data: Optional[list]) -> "Manifest":
        if data is None:
            return cls()
        return cls(entries=[model.ManifestEntry.from_dict(e) for e in require_list(data, "Manifest")])
