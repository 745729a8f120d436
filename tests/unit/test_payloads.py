"""Tests for request payload schemas and ``validate_payload``."""

from __future__ import annotations

import pytest

from markermap.core.exceptions import ContractError
from markermap.models.payloads import (
    DeleteImagesBody,
    FriendActionBody,
    FriendStatusBody,
    PreferencesBody,
    SyncFoldersBody,
    UserProfileBody,
    validate_payload,
)


class TestRequiredKeys:
    def test_complete_payload_passes(self) -> None:
        validate_payload({"folders": [], "userId": "u1"}, SyncFoldersBody, route="sync/folders")

    def test_missing_keys_listed(self) -> None:
        with pytest.raises(ContractError, match="sync/folders missing required key") as exc_info:
            validate_payload({"userId": "u1"}, SyncFoldersBody, route="sync/folders")
        assert "folders" in exc_info.value.message
        assert exc_info.value.code == "MISSING_PAYLOAD_KEYS"

    def test_schema_name_used_without_route(self) -> None:
        with pytest.raises(ContractError, match="DeleteImagesBody"):
            validate_payload({}, DeleteImagesBody)

    def test_not_required_keys_are_optional(self) -> None:
        validate_payload({"userId": "u1", "friendId": "u2"}, FriendActionBody)
        validate_payload({"friendshipId": "f1", "status": "accepted"}, FriendStatusBody)
        validate_payload({"userId": "u1", "email": "a@b.com"}, UserProfileBody)

    def test_extra_keys_ignored(self) -> None:
        validate_payload({"userId": "u1", "favoriteColors": [], "theme": "dark"}, PreferencesBody)


class TestContainerTypes:
    def test_list_key_must_be_list(self) -> None:
        with pytest.raises(ContractError, match="'folders'.*must be a list, got dict") as exc_info:
            validate_payload({"folders": {}, "userId": "u1"}, SyncFoldersBody)
        assert exc_info.value.code == "INVALID_PAYLOAD_TYPE"

    def test_string_is_not_a_list(self) -> None:
        with pytest.raises(ContractError, match="favoriteColors"):
            validate_payload({"userId": "u1", "favoriteColors": "#fff"}, PreferencesBody)

    def test_scalar_keys_only_checked_for_presence(self) -> None:
        validate_payload({"folders": [], "userId": 42}, SyncFoldersBody)
