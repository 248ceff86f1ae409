"""Base class for browser session implementations.

This module defines the interface the login handshake and the submission
pipeline consume. `iniadmoocs.session.BrowserSession` implements it on top of
Playwright; tests implement it with in-memory fakes.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from iniadmoocs.dialogs import PendingDialogSlot
from iniadmoocs.errors import SessionBusyError, WaitTimeoutError
from iniadmoocs.snapshot import Snapshot


class SessionHandle(ABC):
    """Abstract base class for a single browser tab plus its latest snapshot.

    Attributes:
        dialogs: Register holding at most one dialog raised by the page and not
            yet accepted or dismissed.

    Note on timeouts:
        Every waiting method takes an explicit `timeout` in milliseconds. There
        are no unbounded waits; an elapsed bound raises `WaitTimeoutError`.
    """

    dialogs: PendingDialogSlot

    def __init__(self) -> None:
        self.dialogs = PendingDialogSlot()
        self._run_lock = threading.Lock()

    @property
    @abstractmethod
    def url(self) -> str:
        """URL of the current page."""
        ...

    @abstractmethod
    def navigate(self, url: str) -> None:
        """Load `url` in the current page."""
        ...

    @abstractmethod
    def current_snapshot(self) -> Snapshot | None:
        """Return the most recently captured snapshot, or None if none exists."""
        ...

    @abstractmethod
    def resolve(self, ref: str) -> Any:
        """Resolve a reference from the current snapshot to an element.

        Raises:
            ResolutionError: If no snapshot exists or the reference is unknown or stale.
        """
        ...

    @abstractmethod
    def locate(self, selector: str) -> Any:
        """Return an element locator for a fixed CSS selector."""
        ...

    @abstractmethod
    def wait_for_selector_state(self, selector: str, state: str, timeout: int) -> None:
        """Wait until `selector` reaches `state` ("visible", "attached", ...).

        Raises:
            WaitTimeoutError: If the state is not reached within `timeout`.
        """
        ...

    @abstractmethod
    def wait_for_url(self, pattern: Any, timeout: int) -> None:
        """Wait until the page URL matches `pattern` (glob string or regex)."""
        ...

    @abstractmethod
    def expect_event(self, kind: str, timeout: int) -> Any:
        """Arm a one-shot listener for a page event.

        Returns a context manager. The event is awaited when the block exits and
        is available as `.value` afterwards. Actions that should trigger the
        event belong inside the block.
        """
        ...

    @abstractmethod
    def pause(self, milliseconds: int) -> None:
        """Sleep while still dispatching page events (dialogs, console, ...)."""
        ...

    def probe(self, selector: str, timeout: int) -> bool:
        """Return whether `selector` becomes visible within `timeout`."""
        try:
            self.wait_for_selector_state(selector, "visible", timeout)
        except WaitTimeoutError:
            return False
        return True

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        """Allow one pipeline run at a time on this session.

        Raises:
            SessionBusyError: If another run currently holds the session.
        """
        if not self._run_lock.acquire(blocking=False):
            raise SessionBusyError("Another submission is already running in this browser session.")
        try:
            yield
        finally:
            self._run_lock.release()
