"""Integration tests for the tag lifecycle.

These tests use MockAzureContext to exercise spec loading, credential
acquisition, the SDK adapter and the reconciler together without actual
Azure connectivity.
"""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest
import yaml
from azure_mock import (
    DEFAULT_RESOURCE_GROUP,
    DEFAULT_SERVICE_NAME,
    DEFAULT_SUBSCRIPTION_ID,
    DEFAULT_TAG_NAME,
    MockAzureContext,
)

from apim_controller.config import Config
from apim_controller.main import build_reconciler
from apim_controller.reconciler import AlreadyExistsError
from apim_controller.resource_id import TagId
from apim_controller.spec_loader import load_tag_spec


class TestTagLifecycle:
    """End-to-end create, read, update and delete against mocked Azure APIs."""

    @pytest.fixture
    def spec_file(self) -> Generator[Path, None, None]:
        with TemporaryDirectory() as tmpdir:
            spec = {
                "apiVersion": "apim-controller/v1",
                "kind": "ApiManagementTag",
                "metadata": {"name": DEFAULT_TAG_NAME},
                "spec": {
                    "tagId": DEFAULT_TAG_NAME,
                    "resourceGroupName": DEFAULT_RESOURCE_GROUP,
                    "apiManagementName": DEFAULT_SERVICE_NAME,
                    "displayName": "Release Notes",
                },
            }
            path = Path(tmpdir) / "tag.yaml"
            path.write_text(yaml.safe_dump(spec))
            yield path

    @pytest.fixture
    def config(self) -> Config:
        return Config(subscription_id=DEFAULT_SUBSCRIPTION_ID, json_logging=False)

    @pytest.mark.asyncio
    async def test_full_lifecycle(self, spec_file: Path, config: Config) -> None:
        with MockAzureContext() as ctx:
            ctx.state.add_service(DEFAULT_RESOURCE_GROUP, DEFAULT_SERVICE_NAME)
            reconciler = build_reconciler(config)
            spec = load_tag_spec(spec_file)

            tag_id = await reconciler.create_or_update(spec)
            assert tag_id == TagId(
                DEFAULT_SUBSCRIPTION_ID, DEFAULT_RESOURCE_GROUP, DEFAULT_SERVICE_NAME, DEFAULT_TAG_NAME
            )
            assert ctx.state.tag_count == 1

            remote = await reconciler.read(tag_id.id())
            assert remote.identity == tag_id
            assert remote.display_name == "Release Notes"

            updated = spec.model_copy(update={"display_name": "Release Notes v2"})
            await reconciler.create_or_update(updated, existing_id=tag_id.id())
            stored = ctx.state.get_tag(DEFAULT_RESOURCE_GROUP, DEFAULT_SERVICE_NAME, DEFAULT_TAG_NAME)
            assert stored is not None
            assert stored.display_name == "Release Notes v2"

            await reconciler.delete(tag_id.id())
            assert ctx.state.tag_count == 0

            remote = await reconciler.read(tag_id.id())
            assert remote.exists is False

            # Second delete is a no-op
            await reconciler.delete(tag_id.id())

    @pytest.mark.asyncio
    async def test_unmanaged_tag_must_be_imported(self, spec_file: Path, config: Config) -> None:
        with MockAzureContext() as ctx:
            ctx.state.put_tag(DEFAULT_RESOURCE_GROUP, DEFAULT_SERVICE_NAME, DEFAULT_TAG_NAME, "Manual")
            reconciler = build_reconciler(config)

            with pytest.raises(AlreadyExistsError):
                await reconciler.create_or_update(load_tag_spec(spec_file))

            stored = ctx.state.get_tag(DEFAULT_RESOURCE_GROUP, DEFAULT_SERVICE_NAME, DEFAULT_TAG_NAME)
            assert stored is not None
            assert stored.display_name == "Manual"
            assert ctx.state.calls_for("create_or_update") == []

    def test_user_assigned_identity(self) -> None:
        with MockAzureContext() as ctx:
            build_reconciler(
                Config(subscription_id=DEFAULT_SUBSCRIPTION_ID, client_id="11111111-2222")
            )

            assert ctx.credential.client_id == "11111111-2222"
