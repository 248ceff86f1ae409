"""Exception hierarchy for INIAD MOOCs automation.

Every failure the browser-facing code can produce is one of these. The
submission pipeline and the tool layer catch `MoocsError` at their boundary
and turn it into an error-flagged result, so callers of the tools never see
a raw exception.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError


class MoocsError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(MoocsError):
    """Required configuration (e.g. credentials) is missing or invalid.

    Raised before any browser interaction takes place.
    """


class ResolutionError(MoocsError):
    """No snapshot is available, or a reference cannot be resolved in it."""


class ValidationError(MoocsError, ValueError):
    """A caller-supplied value does not have the shape its action requires."""


class InteractionError(MoocsError, RuntimeError):
    """The browser rejected an action (click, fill, select, ...)."""


class WaitTimeoutError(MoocsError, TimeoutError):
    """A bounded wait elapsed before the awaited condition held."""


class FileChooserTimeoutError(WaitTimeoutError):
    """Clicking an upload control did not open a file chooser in time."""


class ConfirmationError(MoocsError):
    """The post-submit confirmation dialog could not be handled."""


class ConfirmationMismatchError(ConfirmationError):
    """A dialog appeared but its message is not an accepted confirmation."""

    def __init__(self, message: str):
        super().__init__(f"Unexpected confirmation dialog message: {message!r}")
        self.dialog_message = message


class ConfirmationAbsentError(ConfirmationError):
    """No dialog appeared after the submit action."""


class AuthenticationError(MoocsError, RuntimeError):
    """The login handshake failed at a named step."""

    def __init__(self, step: str, reason: str):
        super().__init__(f"Login failed at step '{step}': {reason}")
        self.step = step
        self.reason = reason


class SessionBusyError(MoocsError, RuntimeError):
    """Another pipeline is already running against the same session."""


@contextmanager
def translate_playwright_errors(action: str) -> Iterator[None]:
    """Re-raise Playwright failures inside the block as package errors.

    Playwright timeouts become `WaitTimeoutError`; any other Playwright error
    becomes `InteractionError`. Errors that are already `MoocsError` pass through.
    """
    try:
        yield
    except PlaywrightTimeoutError as e:
        raise WaitTimeoutError(f"{action} timed out: {e.message}") from e
    except PlaywrightError as e:
        raise InteractionError(f"{action} failed: {e.message}") from e
