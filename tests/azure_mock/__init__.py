"""Azure API Mock for Integration Testing.

In-memory stand-in for the API Management tag API so the controller can be
tested without Azure connectivity.

Key Features:
- In-memory services and tags
- SDK-shaped client (ApiManagementClient.tag.get/create_or_update/delete)
- Error injection per operation
- Call recording for asserting which remote calls were issued
- Managed Identity simulation

Usage:
    from azure_mock import MockAzureContext

    with MockAzureContext() as ctx:
        ctx.state.add_service("rg-apim", "apim-prod")
        ...
        assert ctx.state.tag_count == 1
"""

from .context import (
    DEFAULT_RESOURCE_GROUP,
    DEFAULT_SERVICE_NAME,
    DEFAULT_SUBSCRIPTION_ID,
    DEFAULT_TAG_NAME,
    MockAzureContext,
)
from .credential import MockManagedIdentityCredential, create_mock_credential
from .resources import MockApiManagementClient, MockTagContract, MockTagState

__all__ = [
    "DEFAULT_RESOURCE_GROUP",
    "DEFAULT_SERVICE_NAME",
    "DEFAULT_TAG_NAME",
    "DEFAULT_SUBSCRIPTION_ID",
    "MockApiManagementClient",
    "MockAzureContext",
    "MockManagedIdentityCredential",
    "MockTagContract",
    "MockTagState",
    "create_mock_credential",
]
