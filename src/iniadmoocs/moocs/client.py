"""Module to navigate the INIAD MOOCs course, lecture and slide hierarchy."""

from __future__ import annotations

import re
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from iniadmoocs.config import Settings
from iniadmoocs.errors import InteractionError, MoocsError, ValidationError, translate_playwright_errors
from iniadmoocs.moocs.course import Course, Lecture, Slide
from iniadmoocs.moocs.scrapers import parse_courses, parse_lectures, parse_slides
from iniadmoocs.session import BrowserSession

SIDEBAR_TOGGLE_SELECTOR = "nav.navbar a.sidebar-toggle"
BOOKMARK_LINK_SELECTOR = 'aside.main-sidebar a[href="/courses/bookmarks"]'
PAGINATION_SELECTOR = 'nav[aria-label="page navigation"]'

LECTURE_ID_PATTERN = re.compile(r"cs\d+-(\d+|intro)")


@dataclass
class Listing:
    """Items listed automatically after a navigation.

    Attributes:
        source: Name of the listing that ran ("listCourses", "listLectures" or "listSlides")
        items: The listed objects
        error: Failure message if the listing could not be produced
    """

    source: str
    items: list[Course | Lecture | Slide] = field(default_factory=list)
    error: str | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": "autoFetchedList", "sourceTool": self.source}
        if self.error is not None:
            data["isError"] = True
            data["error"] = self.error
        else:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class MoocsClient:
    """Client for the listing and selection pages of INIAD MOOCs.

    All methods act on the page currently open in `session`. Failures raise a
    `MoocsError` after saving a screenshot of the page for diagnosis.
    """

    def __init__(self, session: BrowserSession, settings: Settings):
        self.session = session
        self.settings = settings
        root = re.escape(settings.base_url.rstrip("/"))
        self.courses_page_pattern = re.compile(rf"^{root}/courses/?$")
        self.course_page_pattern = re.compile(rf"^{root}/courses/\d{{4}}/[A-Z0-9]+/?$")
        self.lecture_page_pattern = re.compile(rf"^{root}/courses/\d{{4}}/[A-Z0-9]+/[A-Za-z0-9_-]+/?(\d+)?/?$")

    @contextmanager
    def _screenshot_on_error(self, name: str) -> Iterator[None]:
        try:
            yield
        except MoocsError as e:
            logger.error(f"{name.replace('_', ' ').capitalize()} failed: {e}")
            self.session.screenshot(f"{name}_error")
            raise

    def _origin(self) -> str:
        match = re.match(r"^(https?://[^/]+)", self.session.url)
        return match.group(1) if match else self.settings.base_url.rstrip("/")

    def list_courses(self) -> list[Course]:
        """List the courses on the courses page, opening it first if needed."""
        with self._screenshot_on_error("list_courses"):
            if self.session.url.split("?")[0].rstrip("/") != self.settings.courses_url:
                self.session.navigate(self.settings.courses_url)
            else:
                logger.debug("Already on the courses page.")
            courses = parse_courses(self.session.content(), self.settings.base_url)
        logger.info(f"Found {len(courses)} courses.")
        return courses

    def list_lectures(self) -> list[Lecture]:
        """List the lecture links in the sidebar of the current course page.

        When no links are found and the sidebar looks collapsed, it is toggled
        open once and the page is read again.
        """
        with self._screenshot_on_error("list_lectures"):
            lectures = parse_lectures(self.session.content(), self._origin())
            if not lectures and self._open_sidebar():
                lectures = parse_lectures(self.session.content(), self._origin())
                logger.debug(f"Found {len(lectures)} links after toggling sidebar.")
        logger.info(f"Found {len(lectures)} lecture links in total.")
        return lectures

    def _open_sidebar(self) -> bool:
        """Click the sidebar toggle if the sidebar is collapsed. Return whether it was clicked."""
        if not self.session.probe(SIDEBAR_TOGGLE_SELECTOR, self.settings.probe_timeout):
            logger.debug("Sidebar toggle button not found.")
            return False
        if self.session.probe(BOOKMARK_LINK_SELECTOR, self.settings.probe_timeout // 2):
            logger.debug("Sidebar already seems open.")
            return False
        logger.debug("Sidebar seems closed, toggling it.")
        with translate_playwright_errors("Toggling sidebar"):
            self.session.locate(SIDEBAR_TOGGLE_SELECTOR).click()
        self.session.pause(500)
        return True

    def list_slides(self) -> list[Slide]:
        """List the numbered pages of the current lecture."""
        with self._screenshot_on_error("list_slides"):
            slides = parse_slides(self.session.content(), self.session.url)
        logger.info(f"Found {len(slides)} unique slide links.")
        return slides

    def select_course(self, name: str) -> None:
        """Open the course whose heading contains `name`."""
        if not name:
            raise ValidationError("Course name must be a non-empty string")
        with self._screenshot_on_error("select_course"):
            heading_selector = f'h4:has-text("{name}")'
            self.session.wait_for_selector_state(heading_selector, "visible", self.settings.navigation_timeout)
            link = self.session.locate(heading_selector).locator(
                'xpath=following-sibling::a[contains(text(), "View Course")] '
                '| ancestor::li//a[contains(text(), "View Course")]'
            )
            logger.info(f'Clicking "View Course" for "{name}"...')
            with translate_playwright_errors(f'Opening course "{name}"'):
                link.first.wait_for(state="visible", timeout=self.settings.action_timeout)
                link.first.click()
            self.session.wait_for_load()
        logger.success(f"Successfully navigated to course: {name}")

    def select_lecture(self, lecture_id: str) -> None:
        """Open a lecture of the current course by its ID (e.g. "cs1-03", "cs1-intro")."""
        if not isinstance(lecture_id, str) or not LECTURE_ID_PATTERN.fullmatch(lecture_id):
            raise ValidationError(
                f"Lecture ID must be in the format csX-XX or csX-intro (e.g., cs3-00, cs3-intro), got {lecture_id!r}"
            )
        link_selector = f'a[href$="/{lecture_id}"]'
        with self._screenshot_on_error("select_lecture"):
            if not self.session.probe(link_selector, self.settings.probe_timeout):
                logger.debug(f'Lecture link "{lecture_id}" not immediately visible. Expanding navigation...')
                self._open_sidebar()
                group_selector = f'aside.main-sidebar li.treeview:has(a[href$="/{lecture_id}"]) > a'
                if not self.session.probe(link_selector, self.settings.probe_timeout // 2) and self.session.probe(
                    group_selector, self.settings.probe_timeout // 2
                ):
                    with translate_playwright_errors("Expanding lecture list"):
                        self.session.locate(group_selector).click()
                    self.session.pause(500)
                self.session.wait_for_selector_state(link_selector, "visible", self.settings.navigation_timeout)
            with translate_playwright_errors(f'Opening lecture "{lecture_id}"'):
                self.session.locate(link_selector).click()
            self.session.wait_for_load()
        logger.success(f"Successfully navigated to lecture: {lecture_id}")

    def select_slide(self, number: int) -> None:
        """Open page `number` of the current lecture and wait for its URL."""
        if isinstance(number, bool) or not isinstance(number, int) or number < 1:
            raise ValidationError(f"Slide number must be a positive integer, got {number!r}")
        with self._screenshot_on_error("select_slide"):
            if not self.session.probe(PAGINATION_SELECTOR, self.settings.probe_timeout):
                raise InteractionError("Pagination navigation not found on the page.")
            link_selector = f'{PAGINATION_SELECTOR} a:text-is("{number}")'
            self.session.wait_for_selector_state(link_selector, "visible", self.settings.navigation_timeout)
            with translate_playwright_errors(f"Opening slide {number}"):
                self.session.locate(link_selector).click()
            self.session.wait_for_load()
            self.session.wait_for_url(f"**/{number:02d}", self.settings.action_timeout)
        logger.success(f"Successfully navigated to slide number: {number}")

    def get_html(self) -> str:
        """Return the full HTML of the current page."""
        with self._screenshot_on_error("get_html"):
            return self.session.content()

    def listing_for(self, url: str) -> Listing | None:
        """List whatever the page at `url` is an index of, or None for other pages."""
        if self.courses_page_pattern.match(url):
            source, lister = "listCourses", self.list_courses
        elif self.course_page_pattern.match(url):
            source, lister = "listLectures", self.list_lectures
        elif self.lecture_page_pattern.match(url):
            source, lister = "listSlides", self.list_slides
        else:
            return None
        logger.debug(f"Detected {source} page at {url}")
        try:
            return Listing(source=source, items=list(lister()))
        except MoocsError as e:
            logger.warning(f"Automatic {source} after navigation failed: {e}")
            return Listing(source=source, error=str(e))

    def navigate(self, url: str) -> Listing | None:
        """Open `url`, then list its courses, lectures or slides when it is such a page."""
        with self._screenshot_on_error("navigate"):
            self.session.navigate(url)
        return self.listing_for(self.session.url)
