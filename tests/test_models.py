"""Tests for the Pydantic models."""

import pytest
from pydantic import ValidationError

from apim_controller.models import RemoteTag, TagSpec
from apim_controller.resource_id import TagId


def _spec_data(**overrides: str) -> dict[str, str]:
    data = {
        "tagId": "release-notes",
        "resourceGroupName": "rg-apim",
        "apiManagementName": "apim-prod",
        "displayName": "Release Notes",
    }
    data.update(overrides)
    return data


class TestTagSpec:
    """Tests for TagSpec model."""

    def test_valid_spec(self) -> None:
        spec = TagSpec.model_validate(_spec_data())

        assert spec.name == "release-notes"
        assert spec.resource_group_name == "rg-apim"
        assert spec.service_name == "apim-prod"
        assert spec.display_name == "Release Notes"

    def test_populate_by_field_name(self) -> None:
        spec = TagSpec(
            name="release-notes",
            resource_group_name="rg-apim",
            service_name="apim-prod",
            display_name="Release Notes",
        )

        assert spec.name == "release-notes"

    def test_missing_display_name(self) -> None:
        data = _spec_data()
        del data["displayName"]

        with pytest.raises(ValidationError) as exc_info:
            TagSpec.model_validate(data)

        assert "displayName" in str(exc_info.value)

    @pytest.mark.parametrize("display_name", ["", "   "])
    def test_blank_display_name(self, display_name: str) -> None:
        with pytest.raises(ValidationError):
            TagSpec.model_validate(_spec_data(displayName=display_name))

    @pytest.mark.parametrize("name", ["a", "tag1", "Release-Notes-2024", "x" * 80])
    def test_valid_tag_names(self, name: str) -> None:
        assert TagSpec.model_validate(_spec_data(tagId=name)).name == name

    @pytest.mark.parametrize("name", ["", "-leading", "trailing-", "has space", "a/b", "x" * 81])
    def test_invalid_tag_names(self, name: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            TagSpec.model_validate(_spec_data(tagId=name))

        assert "tagId" in str(exc_info.value)

    @pytest.mark.parametrize("service_name", ["1apim", "apim-", "apim_prod", "a" * 51])
    def test_invalid_service_names(self, service_name: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            TagSpec.model_validate(_spec_data(apiManagementName=service_name))

        assert "apiManagementName" in str(exc_info.value)

    @pytest.mark.parametrize("resource_group", ["rg.", "rg/apim", "r" * 91, ""])
    def test_invalid_resource_group_names(self, resource_group: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            TagSpec.model_validate(_spec_data(resourceGroupName=resource_group))

        assert "resourceGroupName" in str(exc_info.value)

    def test_resource_group_allowed_characters(self) -> None:
        spec = TagSpec.model_validate(_spec_data(resourceGroupName="rg_apim-(prod).eu"))

        assert spec.resource_group_name == "rg_apim-(prod).eu"

    def test_unknown_fields_ignored(self) -> None:
        spec = TagSpec.model_validate({**_spec_data(), "description": "unused"})

        assert not hasattr(spec, "description")

    def test_spec_is_frozen(self) -> None:
        spec = TagSpec.model_validate(_spec_data())

        with pytest.raises(ValidationError):
            spec.display_name = "Changed"

    def test_tag_id(self) -> None:
        spec = TagSpec.model_validate(_spec_data())

        assert spec.tag_id("sub1") == TagId("sub1", "rg-apim", "apim-prod", "release-notes")


class TestRemoteTag:
    """Tests for RemoteTag."""

    def test_missing(self) -> None:
        remote = RemoteTag.missing()

        assert remote.identity is None
        assert remote.display_name is None
        assert remote.exists is False

    def test_exists(self) -> None:
        remote = RemoteTag(identity=TagId("sub1", "rg1", "svc1", "tag1"), display_name="Tag 1")

        assert remote.exists is True
