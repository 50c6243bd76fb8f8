"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Add tests to path for azure_mock imports
tests_path = Path(__file__).parent
sys.path.insert(0, str(tests_path))

from azure_mock import (  # noqa: E402
    DEFAULT_RESOURCE_GROUP,
    DEFAULT_SERVICE_NAME,
    DEFAULT_SUBSCRIPTION_ID,
    DEFAULT_TAG_NAME,
    MockApiManagementClient,
    MockTagState,
)

from apim_controller.client import ApiManagementTagClient  # noqa: E402
from apim_controller.models import TagSpec  # noqa: E402
from apim_controller.reconciler import TagReconciler  # noqa: E402


@pytest.fixture
def tag_state() -> MockTagState:
    """Mock state with one API Management service and no tags."""
    state = MockTagState(DEFAULT_SUBSCRIPTION_ID)
    state.add_service(DEFAULT_RESOURCE_GROUP, DEFAULT_SERVICE_NAME)
    return state


@pytest.fixture
def tag_client(tag_state: MockTagState) -> ApiManagementTagClient:
    """Production adapter wired to the mock SDK client."""
    return ApiManagementTagClient(
        credential=None,
        subscription_id=DEFAULT_SUBSCRIPTION_ID,
        client=MockApiManagementClient(tag_state),
    )


@pytest.fixture
def reconciler(tag_client: ApiManagementTagClient) -> TagReconciler:
    return TagReconciler(client=tag_client, subscription_id=DEFAULT_SUBSCRIPTION_ID)


@pytest.fixture
def tag_spec() -> TagSpec:
    return TagSpec.model_validate(
        {
            "tagId": DEFAULT_TAG_NAME,
            "resourceGroupName": DEFAULT_RESOURCE_GROUP,
            "apiManagementName": DEFAULT_SERVICE_NAME,
            "displayName": "Release Notes",
        }
    )
