"""Tests for client settings."""

import pytest

from iostack.config import DEFAULT_PLATFORM_ROOT, ClientSettings


class TestClientSettings:
    """Test ClientSettings defaults and environment loading."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test defaults when nothing is configured."""
        monkeypatch.delenv("IOSTACK_ACCESS_KEY", raising=False)
        monkeypatch.delenv("IOSTACK_PLATFORM_ROOT", raising=False)

        settings = ClientSettings(_env_file=None)

        assert settings.get_access_key() is None
        assert settings.platform_root == DEFAULT_PLATFORM_ROOT
        assert settings.request_timeout == 30.0
        assert settings.stream_timeout == 60.0
        assert settings.metadata_details == ["trigger_phrase"]

    def test_loads_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test IOSTACK_* variables, including JSON-encoded complex fields."""
        monkeypatch.setenv("IOSTACK_ACCESS_KEY", "key-123")
        monkeypatch.setenv("IOSTACK_PLATFORM_ROOT", "https://staging.iostack.ai")
        monkeypatch.setenv("IOSTACK_USE_CASE_DATA", '{"customer": "acme"}')
        monkeypatch.setenv("IOSTACK_STREAM_TIMEOUT", "90")

        settings = ClientSettings(_env_file=None)

        assert settings.get_access_key() == "key-123"
        assert settings.platform_root == "https://staging.iostack.ai"
        assert settings.use_case_data == {"customer": "acme"}
        assert settings.stream_timeout == 90.0

    def test_access_key_hidden_in_repr(self) -> None:
        settings = ClientSettings(_env_file=None, access_key="super-secret")

        assert "super-secret" not in repr(settings)
        assert settings.get_access_key() == "super-secret"
