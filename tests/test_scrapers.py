#!/usr/bin/env python
"""Tests for parsing MOOCs listing pages."""

from iniadmoocs.moocs import Course, Lecture, Slide, parse_courses, parse_lectures, parse_slides

COURSES_HTML = """
<div class="content">
  <div class="box"><h4>Computer Science 1</h4><p>Intro</p><a href="/courses/2025/CS1">View Course</a></div>
  <div class="box"><h4>Information Design</h4><a href="/courses/2025/ID2/">View Course</a></div>
  <div class="box"><h4>Other Courses</h4></div>
  <div class="box"><h4>Broken Course</h4><a href="/somewhere">Details</a></div>
</div>
"""

LECTURES_HTML = """
<aside class="main-sidebar">
  <ul class="sidebar-menu">
    <li class="treeview"><a href="#">CS1講義</a>
      <ul class="treeview-menu">
        <li><a href="/courses/2025/CS1/cs1-intro">Introduction</a></li>
        <li><a href="/courses/2025/CS1/cs1-01"> Lecture 1 </a></li>
        <li><a>No link</a></li>
      </ul>
    </li>
  </ul>
</aside>
"""

SLIDES_HTML = """
<nav aria-label="page navigation"><ul class="pagination">
  <li><a href="/courses/2025/CS1/cs1-01/00" title="Overview">«</a></li>
  <li><a href="/courses/2025/CS1/cs1-01/02" title="Variables">2</a></li>
  <li class="active"><a href="#" title="Intro">1</a></li>
  <li><a href="/courses/2025/CS1/cs1-01/10">10</a></li>
  <li><a href="/courses/2025/CS1/cs1-01/02" title="Variables">2</a></li>
</ul></nav>
"""


class TestParseCourses:
    """Test parse_courses."""

    def test_courses(self):
        """Test that each heading with a View Course link becomes a course."""
        courses = parse_courses(COURSES_HTML, "https://moocs.iniad.org")
        assert courses == [
            Course(id="CS1", title="Computer Science 1", url="https://moocs.iniad.org/courses/2025/CS1"),
            Course(id="ID2", title="Information Design", url="https://moocs.iniad.org/courses/2025/ID2/"),
        ]

    def test_to_dict(self):
        """Test the serialized form of a course."""
        course = parse_courses(COURSES_HTML, "https://moocs.iniad.org")[0]
        assert course.to_dict() == {"id": "CS1", "title": "Computer Science 1", "url": "https://moocs.iniad.org/courses/2025/CS1"}
        assert Course.from_dict(course.to_dict()) == course


class TestParseLectures:
    """Test parse_lectures."""

    def test_lectures(self):
        """Test that sidebar links become lectures and links without href are skipped."""
        lectures = parse_lectures(LECTURES_HTML, "https://moocs.iniad.org")
        assert lectures == [
            Lecture(id="cs1-intro", title="Introduction", url="https://moocs.iniad.org/courses/2025/CS1/cs1-intro"),
            Lecture(id="cs1-01", title="Lecture 1", url="https://moocs.iniad.org/courses/2025/CS1/cs1-01"),
        ]

    def test_empty_page(self):
        """Test a page without a sidebar."""
        assert parse_lectures("<html></html>", "https://moocs.iniad.org") == []


class TestParseSlides:
    """Test parse_slides."""

    def test_slides(self):
        """Test numeric links only, de-duplicated and sorted, with # as the current page."""
        page_url = "https://moocs.iniad.org/courses/2025/CS1/cs1-01/01"
        slides = parse_slides(SLIDES_HTML, page_url)
        assert slides == [
            Slide(number=1, title="Intro", url=page_url),
            Slide(number=2, title="Variables", url="https://moocs.iniad.org/courses/2025/CS1/cs1-01/02"),
            Slide(number=10, title="10", url="https://moocs.iniad.org/courses/2025/CS1/cs1-01/10"),
        ]
