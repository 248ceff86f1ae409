"""Playwright-backed browser session for the INIAD MOOCs tools."""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from loguru import logger
from playwright.sync_api import Browser, BrowserContext, ConsoleMessage, Locator, Page, Playwright, sync_playwright

from iniadmoocs.clients import SessionHandle
from iniadmoocs.config import Settings, default_cache_dir
from iniadmoocs.errors import ResolutionError, translate_playwright_errors
from iniadmoocs.snapshot import Snapshot, capture_snapshot


class BrowserSession(SessionHandle):
    """One browser tab, created lazily on first use and torn down by `close()`.

    The browser context is created from the saved authentication state when
    the file exists, so a previous login is reused across processes.
    """

    def __init__(self, settings: Settings | None = None):
        super().__init__()
        self.settings = settings if settings is not None else Settings.from_env()
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None
        self._snapshot: Snapshot | None = None
        self._generation = 0
        self._console: deque[str] = deque(maxlen=1000)

    def __enter__(self) -> BrowserSession:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def page(self) -> Page:
        if self._page is None or self._page.is_closed():
            self._open_page()
        assert self._page is not None
        return self._page

    @property
    def is_open(self) -> bool:
        return self._page is not None and not self._page.is_closed()

    def _open_page(self) -> None:
        if self._playwright is None:
            self._playwright = sync_playwright().start()
        if self._browser is None:
            browser_type = getattr(self._playwright, self.settings.browser_name)
            self._browser = browser_type.launch(headless=self.settings.headless)
            logger.debug(f"Launched {self.settings.browser_name} (headless={self.settings.headless})")
        if self._context is None:
            storage_state = None
            if self.settings.auth_state_path.exists():
                storage_state = str(self.settings.auth_state_path)
                logger.debug(f"Reusing authentication state from {storage_state}")
            self._context = self._browser.new_context(storage_state=storage_state)
            self._context.set_default_timeout(self.settings.action_timeout)
            self._context.set_default_navigation_timeout(self.settings.navigation_timeout)

        page = self._context.new_page()
        page.on("dialog", self.dialogs.offer)
        page.on("console", self._record_console)
        self._page = page
        self._snapshot = None
        self.dialogs.clear()

    def _record_console(self, message: ConsoleMessage) -> None:
        self._console.append(f"[{message.type.upper()}] {message.text}")

    @property
    def url(self) -> str:
        return self.page.url

    def title(self) -> str:
        return self.page.title()

    def navigate(self, url: str) -> None:
        logger.info(f"Navigating to {url}")
        with translate_playwright_errors(f"Navigation to {url}"):
            self.page.goto(url, wait_until="domcontentloaded")

    def go_back(self) -> None:
        with translate_playwright_errors("Navigating back"):
            self.page.go_back(wait_until="domcontentloaded")

    def go_forward(self) -> None:
        with translate_playwright_errors("Navigating forward"):
            self.page.go_forward(wait_until="domcontentloaded")

    def snapshot(self) -> Snapshot:
        """Capture a new reference snapshot of the current page."""
        self._generation += 1
        with translate_playwright_errors("Capturing snapshot"):
            self._snapshot = capture_snapshot(self.page, self._generation)
        return self._snapshot

    def current_snapshot(self) -> Snapshot | None:
        return self._snapshot

    def resolve(self, ref: str) -> Locator:
        snapshot = self.current_snapshot()
        if snapshot is None:
            raise ResolutionError("No snapshot available. Please run browser_snapshot first.")
        with translate_playwright_errors(f"Resolving reference {ref}"):
            return snapshot.resolve(ref)

    def locate(self, selector: str) -> Locator:
        return self.page.locator(selector).first

    def wait_for_selector_state(self, selector: str, state: str, timeout: int) -> None:
        with translate_playwright_errors(f"Waiting for {selector!r} to be {state}"):
            self.page.locator(selector).first.wait_for(state=state, timeout=timeout)

    def wait_for_url(self, pattern: Any, timeout: int) -> None:
        with translate_playwright_errors(f"Waiting for URL {pattern}"):
            self.page.wait_for_url(pattern, timeout=timeout)

    def wait_for_load(self, timeout: int | None = None) -> None:
        with translate_playwright_errors("Waiting for page load"):
            self.page.wait_for_load_state("domcontentloaded", timeout=timeout or self.settings.navigation_timeout)

    @contextmanager
    def expect_event(self, kind: str, timeout: int) -> Iterator[Any]:
        with translate_playwright_errors(f"Waiting for {kind} event"):
            with self.page.expect_event(kind, timeout=timeout) as event_info:
                yield event_info

    def pause(self, milliseconds: int) -> None:
        if self.is_open:
            self.page.wait_for_timeout(milliseconds)
        else:
            time.sleep(milliseconds / 1000)

    def content(self) -> str:
        with translate_playwright_errors("Reading page content"):
            return self.page.content()

    def console_messages(self) -> list[str]:
        return list(self._console)

    def screenshot(self, name: str) -> Path | None:
        """Save a full-page screenshot to the cache directory for diagnosis.

        Returns the path, or None if there is no open page to capture.
        """
        if not self.is_open:
            return None
        screenshot_dir = default_cache_dir() / "screenshots"
        screenshot_dir.mkdir(parents=True, exist_ok=True)
        path = screenshot_dir / f"{name}_{int(time.time() * 1000)}.png"
        try:
            self.page.screenshot(path=path, full_page=True)
        except Exception as e:
            logger.error(f"Failed to take screenshot: {e}")
            return None
        logger.info(f"Screenshot saved to {path}")
        return path

    def save_auth_state(self) -> Path:
        """Persist cookies and local storage so later sessions start logged in."""
        if self._context is None:
            raise RuntimeError("No browser context to save.")
        path = self.settings.auth_state_path
        path.parent.mkdir(parents=True, exist_ok=True)
        self._context.storage_state(path=path)
        logger.debug(f"Authentication state saved at {path}")
        return path

    def close(self) -> None:
        """Close the page, browser and Playwright driver. Safe to call repeatedly."""
        if self._context is not None:
            self._context.close()
        if self._browser is not None:
            self._browser.close()
        if self._playwright is not None:
            self._playwright.stop()
        self._playwright = self._browser = self._context = self._page = None
        self._snapshot = None
        self.dialogs.clear()
        logger.debug("Browser session closed")
