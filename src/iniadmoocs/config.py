"""Runtime configuration read from the environment (and an optional .env file)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path

import platformdirs
from dotenv import load_dotenv

from iniadmoocs.errors import ConfigurationError

DEFAULT_BASE_URL = "https://moocs.iniad.org"

# One accepted phrase per supported UI locale; matched as case-sensitive substrings.
DEFAULT_ACCEPTED_CONFIRMATIONS = (
    "All your answers have been saved.",
    "解答を保存しました",
)

_TRUTHY = {"1", "true", "yes", "on"}
_BROWSERS = {"chromium", "firefox", "webkit"}


def default_cache_dir() -> Path:
    """Get the platform-appropriate cache directory for this package."""
    cache_dir = Path(platformdirs.user_cache_dir("iniadmoocs", "INIAD"))
    cache_dir.mkdir(parents=True, exist_ok=True)
    return cache_dir


def default_auth_state_path() -> Path:
    """Get the platform-appropriate default path for the auth state file."""
    return default_cache_dir() / "moocs_auth.json"


@dataclass(frozen=True)
class Credentials:
    """INIAD account used to sign in through the identity provider."""

    username: str
    password: str

    @classmethod
    def from_env(cls) -> Credentials:
        """Read INIAD_USERNAME and INIAD_PASSWORD.

        Raises:
            ConfigurationError: If either variable is unset or empty.
        """
        load_dotenv()
        username = os.getenv("INIAD_USERNAME")
        password = os.getenv("INIAD_PASSWORD")
        if not username or not password:
            raise ConfigurationError("INIAD_USERNAME and INIAD_PASSWORD environment variables must be set.")
        return cls(username=username, password=password)

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password='***')"


@dataclass
class Settings:
    """Browser, platform and timeout settings.

    All timeouts are in milliseconds. `probe_timeout` bounds a single
    "is this affordance visible?" check; `login_timeout` bounds the whole
    identity-provider round trip, redirects included.
    """

    base_url: str = DEFAULT_BASE_URL
    browser_name: str = "chromium"
    headless: bool = False
    auth_state_path: Path = field(default_factory=default_auth_state_path)
    accepted_confirmations: tuple[str, ...] = DEFAULT_ACCEPTED_CONFIRMATIONS

    probe_timeout: int = 1000
    navigation_timeout: int = 10000
    login_timeout: int = 30000
    action_timeout: int = 10000
    file_chooser_timeout: int = 5000
    dialog_grace_period: int = 1000

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from MOOCS_* environment variables, falling back to defaults."""
        load_dotenv()
        settings = cls()
        base_url = os.getenv("MOOCS_BASE_URL")
        if base_url:
            settings.base_url = base_url
        browser_name = os.getenv("MOOCS_BROWSER")
        if browser_name:
            settings.browser_name = browser_name
        headless = os.getenv("MOOCS_HEADLESS")
        if headless is not None:
            settings.headless = headless.strip().lower() in _TRUTHY
        auth_state = os.getenv("MOOCS_AUTH_STATE")
        if auth_state:
            settings.auth_state_path = Path(auth_state)
        settings.validate()
        return settings

    def override(
        self,
        base_url: str | None = None,
        auth_state_path: Path | None = None,
        headless: bool | None = None,
    ) -> Settings:
        """Return a copy with the given command-line options applied."""
        changes: dict[str, object] = {}
        if base_url is not None:
            changes["base_url"] = base_url
        if auth_state_path is not None:
            changes["auth_state_path"] = auth_state_path
        if headless is not None:
            changes["headless"] = headless
        settings = replace(self, **changes)
        settings.validate()
        return settings

    def validate(self) -> None:
        if self.browser_name not in _BROWSERS:
            raise ConfigurationError(f"Unsupported browser '{self.browser_name}'. Must be one of {sorted(_BROWSERS)}")
        if not self.base_url.startswith(("http://", "https://")):
            raise ConfigurationError(f"Base URL must be an http(s) URL, got {self.base_url!r}")

    @property
    def root_url(self) -> str:
        return self.base_url.rstrip("/") + "/"

    @property
    def courses_url(self) -> str:
        return self.base_url.rstrip("/") + "/courses"

    @property
    def host(self) -> str:
        return self.base_url.split("://", 1)[1].split("/", 1)[0]
