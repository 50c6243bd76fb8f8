"""Pydantic models for tag desired state and the remote view of a tag.

Desired state is validated once at the boundary (fail fast, fail loudly);
everything past the boundary works on typed fields only.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Annotated

from pydantic import BaseModel, Field, field_validator

from .resource_id import TagId

# Naming rules enforced by the API Management resource provider
MAX_CHILD_NAME_LENGTH = 80
MAX_SERVICE_NAME_LENGTH = 50
MAX_RESOURCE_GROUP_NAME_LENGTH = 90

VALID_CHILD_NAME_PATTERN = r"^[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,78}[a-zA-Z0-9])?$"
VALID_SERVICE_NAME_PATTERN = r"^[a-zA-Z](?:[a-zA-Z0-9-]{0,48}[a-zA-Z0-9])?$"
VALID_RESOURCE_GROUP_PATTERN = r"^[-\w\._\(\)]+$"


class TagSpec(BaseModel):
    """Desired state of an API Management tag.

    Example YAML:
        tagId: release-notes
        resourceGroupName: rg-apim
        apiManagementName: apim-prod
        displayName: Release Notes
    """

    model_config = {"extra": "ignore", "frozen": True, "populate_by_name": True}

    name: str = Field(alias="tagId")
    resource_group_name: str = Field(alias="resourceGroupName")
    service_name: str = Field(alias="apiManagementName")
    display_name: Annotated[str, Field(min_length=1, alias="displayName")]

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not re.match(VALID_CHILD_NAME_PATTERN, v):
            raise ValueError(
                "tagId may only contain alphanumeric characters and dashes "
                f"up to {MAX_CHILD_NAME_LENGTH} characters in length"
            )
        return v

    @field_validator("service_name")
    @classmethod
    def validate_service_name(cls, v: str) -> str:
        if not re.match(VALID_SERVICE_NAME_PATTERN, v):
            raise ValueError(
                "apiManagementName must start with a letter, may only contain "
                "alphanumeric characters and dashes, and must not end with a dash "
                f"(max {MAX_SERVICE_NAME_LENGTH} characters)"
            )
        return v

    @field_validator("resource_group_name")
    @classmethod
    def validate_resource_group_name(cls, v: str) -> str:
        if len(v) > MAX_RESOURCE_GROUP_NAME_LENGTH:
            raise ValueError(
                f"resourceGroupName cannot be longer than {MAX_RESOURCE_GROUP_NAME_LENGTH} characters"
            )
        if not re.match(VALID_RESOURCE_GROUP_PATTERN, v):
            raise ValueError(
                "resourceGroupName may only contain alphanumeric characters, "
                "dash, underscores, parentheses and periods"
            )
        if v.endswith("."):
            raise ValueError("resourceGroupName cannot end with a period")
        return v

    @field_validator("display_name")
    @classmethod
    def validate_display_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("displayName must not be blank")
        return v

    def tag_id(self, subscription_id: str) -> TagId:
        """Build the identity this spec addresses within a subscription."""
        return TagId(
            subscription_id=subscription_id,
            resource_group=self.resource_group_name,
            service_name=self.service_name,
            name=self.name,
        )


@dataclass(frozen=True)
class RemoteTag:
    """A tag as observed in Azure.

    Attributes:
        identity: Parsed identity, or None when the tag does not exist remotely.
        display_name: Display name reported by the service, if any.
    """

    identity: TagId | None
    display_name: str | None = None

    @property
    def exists(self) -> bool:
        return self.identity is not None

    @classmethod
    def missing(cls) -> RemoteTag:
        """The view of a tag that is gone."""
        return cls(identity=None, display_name=None)
