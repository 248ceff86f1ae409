"""Module for representing INIAD MOOCs courses, lectures and slides."""

from dataclasses import asdict, dataclass
from typing import Any


@dataclass
class Course:
    """Represents a course listed on the MOOCs courses page.

    Attributes:
        id: Course code taken from the last segment of the course URL (e.g. "CS1")
        title: Course title as shown in its heading
        url: Absolute URL of the course page
    """

    id: str
    title: str
    url: str

    def __str__(self) -> str:
        return f"{self.title} ({self.id})"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Course":
        return cls(id=data["id"], title=data["title"], url=data["url"])


@dataclass
class Lecture:
    """Represents a lecture link in a course's sidebar.

    Attributes:
        id: Lecture identifier from the URL (e.g. "cs1-01", "cs1-intro")
        title: Link text
        url: Absolute URL of the lecture's first page
    """

    id: str
    title: str
    url: str

    def __str__(self) -> str:
        return f"{self.id}: {self.title}"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Lecture":
        return cls(id=data["id"], title=data["title"], url=data["url"])


@dataclass
class Slide:
    """A numbered page of a lecture."""

    number: int
    title: str
    url: str

    def __str__(self) -> str:
        return f"{self.number}: {self.title}" if self.title else str(self.number)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Slide":
        return cls(number=int(data["number"]), title=data.get("title", ""), url=data["url"])
