#!/usr/bin/env python
"""Tests for configuration."""

from pathlib import Path
from unittest.mock import patch

import pytest

from iniadmoocs.config import Credentials, Settings, default_auth_state_path
from iniadmoocs.errors import ConfigurationError


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("MOOCS_BASE_URL", "MOOCS_BROWSER", "MOOCS_HEADLESS", "MOOCS_AUTH_STATE", "INIAD_USERNAME", "INIAD_PASSWORD"):
        monkeypatch.delenv(name, raising=False)
    with patch("iniadmoocs.config.load_dotenv"):
        yield monkeypatch


class TestSettings:
    """Test the Settings class."""

    def test_defaults(self, clean_env):
        """Test the default settings."""
        settings = Settings.from_env()
        assert settings.base_url == "https://moocs.iniad.org"
        assert settings.browser_name == "chromium"
        assert settings.headless is False
        assert settings.file_chooser_timeout == 5000
        assert settings.dialog_grace_period == 1000
        assert "All your answers have been saved." in settings.accepted_confirmations

    def test_default_auth_state_path(self):
        """Test the default auth state path generation."""
        path = default_auth_state_path()
        assert path.name == "moocs_auth.json"
        assert "iniadmoocs" in str(path)

    def test_from_env(self, clean_env, tmp_path):
        """Test reading settings from environment variables."""
        clean_env.setenv("MOOCS_BASE_URL", "http://localhost:8080/")
        clean_env.setenv("MOOCS_BROWSER", "firefox")
        clean_env.setenv("MOOCS_HEADLESS", "True")
        clean_env.setenv("MOOCS_AUTH_STATE", str(tmp_path / "auth.json"))

        settings = Settings.from_env()

        assert settings.browser_name == "firefox"
        assert settings.headless is True
        assert settings.auth_state_path == tmp_path / "auth.json"
        assert settings.courses_url == "http://localhost:8080/courses"
        assert settings.root_url == "http://localhost:8080/"
        assert settings.host == "localhost:8080"

    def test_invalid_browser(self, clean_env):
        """Test that an unknown browser is rejected."""
        clean_env.setenv("MOOCS_BROWSER", "netscape")
        with pytest.raises(ConfigurationError, match="Unsupported browser"):
            Settings.from_env()

    def test_override(self, settings):
        """Test applying command-line overrides."""
        changed = settings.override(base_url="https://example.org", headless=True, auth_state_path=Path("/tmp/x.json"))
        assert changed.base_url == "https://example.org"
        assert changed.headless is True
        assert changed.auth_state_path == Path("/tmp/x.json")
        assert settings.headless is False

    def test_override_rejects_bad_url(self, settings):
        """Test that an override is validated."""
        with pytest.raises(ConfigurationError):
            settings.override(base_url="moocs.iniad.org")


class TestCredentials:
    """Test the Credentials class."""

    def test_from_env(self, clean_env):
        """Test reading credentials from the environment."""
        clean_env.setenv("INIAD_USERNAME", "s1f1")
        clean_env.setenv("INIAD_PASSWORD", "secret")
        credentials = Credentials.from_env()
        assert credentials.username == "s1f1"
        assert "secret" not in repr(credentials)

    @pytest.mark.parametrize("username,password", [(None, "x"), ("x", None), ("", "x")])
    def test_missing(self, clean_env, username, password):
        """Test that missing or empty credentials raise a ConfigurationError."""
        if username is not None:
            clean_env.setenv("INIAD_USERNAME", username)
        if password is not None:
            clean_env.setenv("INIAD_PASSWORD", password)
        with pytest.raises(ConfigurationError):
            Credentials.from_env()
