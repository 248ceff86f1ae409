"""Parse MOOCs listing pages into Course, Lecture and Slide objects."""

import re
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from loguru import logger

from iniadmoocs.moocs.course import Course, Lecture, Slide

LECTURE_LINK_SELECTOR = "aside.main-sidebar ul.sidebar-menu li.treeview ul.treeview-menu li a"
SLIDE_LINK_SELECTOR = 'nav[aria-label="page navigation"] ul li a'


def _last_segment(href: str) -> str:
    return href.rstrip("/").split("/")[-1] or "unknown"


def parse_courses(html: str, base_url: str) -> list[Course]:
    """Extract the courses from the courses page.

    Each course is an `h4` heading followed by a "View Course" link. Headings
    without such a link (e.g. the "Other Courses" section title) are skipped.
    """
    soup = BeautifulSoup(html, "html.parser")
    courses = []
    for heading in soup.find_all("h4"):
        title = heading.get_text().strip()
        link = next(
            (a for a in heading.find_next_siblings("a") if "View Course" in a.get_text()),
            None,
        )
        href = link.get("href") if link is not None else None
        if not href or not title:
            if title and title != "Other Courses":
                logger.warning(f"Could not find valid 'View Course' link for heading: {title!r}. Skipping.")
            continue
        courses.append(Course(id=_last_segment(href), title=title, url=urljoin(base_url, href)))
    logger.debug(f"Parsed {len(courses)} courses")
    return courses


def parse_lectures(html: str, base_url: str) -> list[Lecture]:
    """Extract the lecture links from a course page's sidebar."""
    soup = BeautifulSoup(html, "html.parser")
    lectures = []
    for link in soup.select(LECTURE_LINK_SELECTOR):
        href = link.get("href")
        if not href:
            continue
        lectures.append(Lecture(id=_last_segment(href), title=link.get_text().strip(), url=urljoin(base_url, href)))
    logger.debug(f"Parsed {len(lectures)} lecture links")
    return lectures


def parse_slides(html: str, page_url: str) -> list[Slide]:
    """Extract the numbered page links of a lecture.

    Only links whose text is a number count. A link to `#` stands for the
    current page. Duplicates (the pager is often rendered twice) are dropped
    and the result is sorted by slide number.
    """
    soup = BeautifulSoup(html, "html.parser")
    seen: set[str] = set()
    slides = []
    for link in soup.select(SLIDE_LINK_SELECTOR):
        number = link.get_text().strip()
        href = link.get("href")
        if not href or not re.fullmatch(r"\d+", number):
            continue
        url = page_url if href == "#" else urljoin(page_url, href)
        if url in seen:
            continue
        seen.add(url)
        title = (link.get("title") or number).strip()
        slides.append(Slide(number=int(number), title=title, url=url))
    slides.sort(key=lambda slide: slide.number)
    logger.debug(f"Parsed {len(slides)} slide links")
    return slides
