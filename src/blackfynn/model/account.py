"""
Users, organizations and teams.
"""

from dataclasses import dataclass
from typing import Optional

from .types import OrganizationId, TeamId, require, require_object


@dataclass
class User:
    """A user, as defined by the Blackfynn API."""
    id: str
    email: str
    first_name: str
    last_name: str
    preferred_organization: Optional[OrganizationId] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        data = require_object(data, "User")
        preferred = data.get("preferredOrganization")
        return cls(
            id=require(data, "id"),
            email=data.get("email", ""),
            first_name=data.get("firstName", ""),
            last_name=data.get("lastName", ""),
            preferred_organization=OrganizationId(preferred) if preferred else None,
        )


@dataclass
class Organization:
    """An organization, as defined by the Blackfynn API."""
    id: OrganizationId
    name: str

    @classmethod
    def from_dict(cls, data: dict) -> "Organization":
        data = require_object(data, "Organization")
        return cls(
            id=OrganizationId(require(data, "id")),
            name=require(data, "name"),
        )


@dataclass
class Team:
    id: TeamId
    name: str

    @classmethod
    def from_dict(cls, data: dict) -> "Team":
        data = require_object(data, "Team")
        return cls(id=TeamId(require(data, "id")), name=require(data, "name"))
