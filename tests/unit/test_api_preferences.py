"""Tests for the preferences handlers."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from markermap.api import preferences
from markermap.core.exceptions import ContractError, ServiceNotConfiguredError, ValidationError


class TestGetPreferences:
    def test_returns_colors(self, store: MagicMock) -> None:
        """Test that saved favorite colors are returned."""
        store.get_favorite_colors.return_value = ["#ff0000", "#00ff00"]
        response = preferences.get_preferences("u1", store)
        assert response.body == {"favoriteColors": ["#ff0000", "#00ff00"]}

    def test_unconfigured_store_returns_empty(self) -> None:
        """Test empty colors when persistence is not configured."""
        assert preferences.get_preferences("u1", None).body == {"favoriteColors": []}

    def test_requires_user(self, store: MagicMock) -> None:
        """Test rejection without a user id."""
        with pytest.raises(ValidationError, match="User ID is required"):
            preferences.get_preferences(None, store)


class TestSavePreferences:
    def test_saves_colors(self, store: MagicMock) -> None:
        """Test that favorite colors are saved."""
        body = {"userId": "u1", "favoriteColors": ["#ff0000"]}
        assert preferences.save_preferences(body, store).body == {"success": True}
        store.save_favorite_colors.assert_called_once_with("u1", ["#ff0000"])

    def test_missing_colors_saved_as_empty(self, store: MagicMock) -> None:
        """Test that missing colors are saved as an empty list."""
        body = {"userId": "u1"}
        preferences.save_preferences(body, store)
        store.save_favorite_colors.assert_called_once_with("u1", [])
        assert body == {"userId": "u1"}

    def test_colors_must_be_list(self, store: MagicMock) -> None:
        """Test rejection of non-list colors."""
        with pytest.raises(ContractError):
            preferences.save_preferences({"userId": "u1", "favoriteColors": "#fff"}, store)

    def test_requires_user(self, store: MagicMock) -> None:
        """Test rejection without a user id."""
        with pytest.raises(ValidationError, match="User ID is required"):
            preferences.save_preferences({"favoriteColors": []}, store)

    def test_unconfigured_store(self) -> None:
        """Test that saving needs persistence."""
        with pytest.raises(ServiceNotConfiguredError):
            preferences.save_preferences({"userId": "u1"}, None)
