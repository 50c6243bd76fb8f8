"""Remote tag client used by the reconciler.

The reconciler only depends on the narrow TagClient protocol. The production
implementation wraps the Azure SDK's ApiManagementClient; tests inject an
in-memory fake.

NOT-FOUND SIGNALLING:
Clients raise azure.core.exceptions.ResourceNotFoundError when the tag (or its
parent service) does not exist. Every other failure is raised as an AzureError
subclass. The reconciler interprets not-found per operation, so clients must
never collapse it into a generic error.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from azure.core.credentials import TokenCredential
from azure.core.exceptions import HttpResponseError, ResourceNotFoundError
from azure.mgmt.apimanagement import ApiManagementClient
from azure.mgmt.apimanagement.models import TagContract, TagCreateUpdateParameters

logger = logging.getLogger(__name__)

# Unconditional ETag match for updates and deletes
MATCH_ANY_ETAG = "*"


class TagResponse(Protocol):
    """Shape of a tag returned by the management API."""

    id: str | None
    display_name: str | None


class TagClient(Protocol):
    """Capability the reconciler needs from the remote API."""

    def get(self, resource_group: str, service_name: str, name: str) -> TagResponse: ...

    def create_or_update(
        self, resource_group: str, service_name: str, name: str, display_name: str
    ) -> TagResponse: ...

    def delete(self, resource_group: str, service_name: str, name: str) -> None: ...


def is_not_found(error: BaseException) -> bool:
    """Check whether an SDK error means the addressed resource does not exist."""
    if isinstance(error, ResourceNotFoundError):
        return True
    return isinstance(error, HttpResponseError) and error.status_code == 404


class ApiManagementTagClient:
    """TagClient backed by azure-mgmt-apimanagement.

    Args:
        credential: Azure credential (Managed Identity in production).
        subscription_id: Subscription containing the API Management services.
        client: Optional pre-built SDK client, mainly for tests.
    """

    def __init__(
        self,
        credential: TokenCredential,
        subscription_id: str,
        client: Any | None = None,
    ) -> None:
        self._subscription_id = subscription_id
        self._client = client or ApiManagementClient(
            credential=credential,
            subscription_id=subscription_id,
        )

    @property
    def subscription_id(self) -> str:
        return self._subscription_id

    def get(self, resource_group: str, service_name: str, name: str) -> TagContract:
        return self._client.tag.get(
            resource_group_name=resource_group,
            service_name=service_name,
            tag_id=name,
        )

    def create_or_update(
        self, resource_group: str, service_name: str, name: str, display_name: str
    ) -> TagContract:
        parameters = TagCreateUpdateParameters(display_name=display_name)
        logger.debug(
            "Sending tag create or update",
            extra={
                "resource_group": resource_group,
                "service_name": service_name,
                "tag": name,
            },
        )
        return self._client.tag.create_or_update(
            resource_group_name=resource_group,
            service_name=service_name,
            tag_id=name,
            parameters=parameters,
        )

    def delete(self, resource_group: str, service_name: str, name: str) -> None:
        self._client.tag.delete(
            resource_group_name=resource_group,
            service_name=service_name,
            tag_id=name,
            if_match=MATCH_ANY_ETAG,
        )
