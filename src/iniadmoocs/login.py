"""Login handshake for INIAD MOOCs through the INIAD identity provider.

The platform exposes no single reliable "logged in" signal, so the session's
authentication state is derived by a few short, bounded probes and then driven
forward by a small state machine whose transition guards are one probe each.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from loguru import logger

from iniadmoocs.clients import SessionHandle
from iniadmoocs.config import Credentials, Settings
from iniadmoocs.errors import AuthenticationError, MoocsError, translate_playwright_errors

SIGN_IN_SELECTOR = 'text="Sign in with INIAD Account"'
USERNAME_SELECTOR = 'input#username, input[name="username"]'
PASSWORD_SELECTOR = 'input#password, input[name="password"]'
IDP_SUBMIT_SELECTOR = 'input[type="submit"][value="LOG IN"], button:has-text("LOG IN")'
LOGGED_IN_SELECTOR = 'aside.main-sidebar, a[href*="logout"]'
AFTER_SIGN_IN_SELECTOR = f"{USERNAME_SELECTOR}, {LOGGED_IN_SELECTOR}"


class AuthenticationState(Enum):
    ALREADY_AUTHENTICATED = "already_authenticated"
    AT_IDENTITY_PROVIDER = "at_identity_provider"
    AT_SIGN_IN_PROMPT = "at_sign_in_prompt"
    UNDETERMINED = "undetermined"


@dataclass
class HandshakeResult:
    """Outcome of a successful handshake."""

    path: list[AuthenticationState] = field(default_factory=list)
    submitted_credentials: bool = False

    @property
    def message(self) -> str:
        if self.submitted_credentials:
            return "Successfully logged in to INIAD MOOCs using INIAD Account and navigated to courses page."
        return "Already logged in to INIAD MOOCs and navigated to courses page."


class LoginHandshake:
    """Drive a session to "authenticated, on the courses page".

    States and transitions:

    * AT_SIGN_IN_PROMPT -> click the sign-in link -> AT_IDENTITY_PROVIDER, or
      ALREADY_AUTHENTICATED when the identity provider redirects straight back
    * AT_IDENTITY_PROVIDER -> submit credentials, wait for the redirect back
      and the post-login indicator -> ALREADY_AUTHENTICATED
    * UNDETERMINED -> re-probe the identity provider and indicator once, otherwise fail
    * ALREADY_AUTHENTICATED -> open the courses page (terminal)
    """

    max_transitions = 5

    def __init__(self, session: SessionHandle, credentials: Credentials, settings: Settings):
        self.session = session
        self.credentials = credentials
        self.settings = settings
        self._submitted = False
        self._transitions: dict[AuthenticationState, Callable[[], AuthenticationState]] = {
            AuthenticationState.AT_SIGN_IN_PROMPT: self._leave_sign_in_prompt,
            AuthenticationState.AT_IDENTITY_PROVIDER: self._leave_identity_provider,
            AuthenticationState.UNDETERMINED: self._leave_undetermined,
        }

    # Guards: one bounded probe each.

    def sign_in_prompt_visible(self) -> bool:
        visible = self.session.probe(SIGN_IN_SELECTOR, self.settings.probe_timeout)
        logger.debug(f"Sign-in link visible: {visible}")
        return visible

    def identity_provider_visible(self) -> bool:
        visible = self.session.probe(USERNAME_SELECTOR, self.settings.probe_timeout)
        logger.debug(f"Identity provider form visible: {visible}")
        return visible

    def logged_in_indicator_visible(self) -> bool:
        visible = self.session.probe(LOGGED_IN_SELECTOR, self.settings.probe_timeout)
        logger.debug(f"Post-login indicator visible: {visible}")
        return visible

    def classify(self) -> AuthenticationState:
        """Derive the current state from page contents alone."""
        if self.sign_in_prompt_visible():
            return AuthenticationState.AT_SIGN_IN_PROMPT
        if self.identity_provider_visible():
            return AuthenticationState.AT_IDENTITY_PROVIDER
        if self.logged_in_indicator_visible():
            return AuthenticationState.ALREADY_AUTHENTICATED
        return AuthenticationState.UNDETERMINED

    def detect(self) -> AuthenticationState:
        """Open the platform root and classify the session."""
        self._step("open platform", lambda: self.session.navigate(self.settings.root_url))
        state = self.classify()
        logger.info(f"Detected authentication state: {state.value}")
        return state

    def run(self) -> HandshakeResult:
        """Run the handshake to completion.

        Raises:
            AuthenticationError: If a required step fails or its bound elapses.
        """
        state = self.detect()
        path = [state]
        while state is not AuthenticationState.ALREADY_AUTHENTICATED:
            if len(path) > self.max_transitions:
                states = " -> ".join(s.value for s in path)
                raise AuthenticationError("handshake", f"no progress after {states}")
            state = self._transitions[state]()
            logger.debug(f"Transitioned to {state.value}")
            path.append(state)

        self._step("open courses page", lambda: self.session.navigate(self.settings.courses_url))
        logger.success("Logged in to INIAD MOOCs")
        return HandshakeResult(path=path, submitted_credentials=self._submitted)

    def _leave_sign_in_prompt(self) -> AuthenticationState:
        logger.info('Clicking "Sign in with INIAD Account"...')
        self._step("click sign-in link", lambda: self.session.locate(SIGN_IN_SELECTOR).click())
        # A still-valid identity provider session redirects straight back, already logged in.
        self._step(
            "follow sign-in redirect",
            lambda: self.session.wait_for_selector_state(
                AFTER_SIGN_IN_SELECTOR, "visible", self.settings.navigation_timeout
            ),
        )
        if self.identity_provider_visible():
            return AuthenticationState.AT_IDENTITY_PROVIDER
        if self.logged_in_indicator_visible():
            logger.info("Identity provider session still valid, login confirmed.")
            return AuthenticationState.ALREADY_AUTHENTICATED
        raise AuthenticationError("follow sign-in redirect", "Neither the login form nor the post-login page appeared.")

    def _leave_identity_provider(self) -> AuthenticationState:
        logger.info("Entering INIAD username...")
        self._step("fill username", lambda: self.session.locate(USERNAME_SELECTOR).fill(self.credentials.username))
        logger.info("Entering INIAD password...")
        self._step("fill password", lambda: self.session.locate(PASSWORD_SELECTOR).fill(self.credentials.password))
        logger.info("Clicking LOG IN button...")
        self._step("submit credentials", lambda: self.session.locate(IDP_SUBMIT_SELECTOR).click())
        self._submitted = True

        logger.info("Waiting for redirection back to INIAD MOOCs...")
        platform_url = re.compile(rf"^https?://{re.escape(self.settings.host)}(/.*)?$")
        self._step("return to platform", lambda: self.session.wait_for_url(platform_url, self.settings.login_timeout))
        self._step(
            "confirm login",
            lambda: self.session.wait_for_selector_state(LOGGED_IN_SELECTOR, "visible", self.settings.login_timeout),
        )
        return AuthenticationState.ALREADY_AUTHENTICATED

    def _leave_undetermined(self) -> AuthenticationState:
        logger.info("Could not confirm login state, checking for the identity provider once more.")
        if self.identity_provider_visible():
            return AuthenticationState.AT_IDENTITY_PROVIDER
        if self.logged_in_indicator_visible():
            return AuthenticationState.ALREADY_AUTHENTICATED
        raise AuthenticationError("detect state", "Could not confirm final login state.")

    def _step(self, name: str, action: Callable[[], object]) -> None:
        try:
            with translate_playwright_errors(name):
                action()
        except MoocsError as e:
            raise AuthenticationError(name, str(e)) from e


def login(session: SessionHandle, settings: Settings, credentials: Credentials | None = None) -> HandshakeResult:
    """Log in to INIAD MOOCs and leave the session on the courses page.

    Credentials default to INIAD_USERNAME / INIAD_PASSWORD and are checked
    before the page is touched.

    Raises:
        ConfigurationError: If no credentials are configured.
        AuthenticationError: If the handshake fails.
    """
    if credentials is None:
        credentials = Credentials.from_env()
    return LoginHandshake(session, credentials, settings).run()
