"""Named tools exposed to a host process over the stdio transport.

Each tool takes a JSON object of arguments and returns an MCP-style result,
`{"content": [{"type": "text", "text": ...}], "isError": bool}`. Argument
shape errors raise `ValidationError`, which the server reports as invalid
params; every other failure comes back as an error-flagged result.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from loguru import logger
from playwright.sync_api import Error as PlaywrightError

from iniadmoocs.config import Settings
from iniadmoocs.errors import MoocsError, ValidationError
from iniadmoocs.login import login
from iniadmoocs.moocs.client import MoocsClient
from iniadmoocs.session import BrowserSession
from iniadmoocs.submission.sequencer import submit_assignment

MAX_WAIT_SECONDS = 10

ToolResult = dict[str, Any]


def text_result(*texts: str, is_error: bool = False) -> ToolResult:
    return {"content": [{"type": "text", "text": text} for text in texts], "isError": is_error}


def _json(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2)


@dataclass
class ToolContext:
    """What a tool handler works against: one browser session and its settings."""

    session: BrowserSession
    settings: Settings

    @property
    def client(self) -> MoocsClient:
        return MoocsClient(self.session, self.settings)

    def snapshot_text(self) -> str:
        return self.session.snapshot().render()


@dataclass
class Tool:
    name: str
    description: str
    handler: Callable[[ToolContext, Mapping[str, Any]], ToolResult]
    input_schema: dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})
    failure: str = ""

    def definition(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description, "inputSchema": self.input_schema}

    def call(self, context: ToolContext, arguments: Mapping[str, Any]) -> ToolResult:
        """Run the handler, turning browser failures into an error result.

        Raises:
            ValidationError: If the arguments do not have the required shape.
        """
        try:
            return self.handler(context, arguments)
        except ValidationError:
            raise
        except (MoocsError, PlaywrightError) as e:
            logger.error(f"Tool {self.name} failed: {e}")
            prefix = self.failure or f"Failed to run {self.name}"
            return text_result(f"{prefix}: {e}", is_error=True)


TOOLS: dict[str, Tool] = {}


def tool(name: str, description: str, properties: dict[str, Any] | None = None, required: list[str] | None = None, failure: str = ""):
    """Register the decorated function as a tool."""
    schema: dict[str, Any] = {"type": "object", "properties": properties or {}}
    if required:
        schema["required"] = required

    def register(handler: Callable[[ToolContext, Mapping[str, Any]], ToolResult]):
        TOOLS[name] = Tool(name=name, description=description, handler=handler, input_schema=schema, failure=failure)
        return handler

    return register


def _string_arg(arguments: Mapping[str, Any], key: str) -> str:
    value = arguments.get(key)
    if not isinstance(value, str) or not value:
        raise ValidationError(f"'{key}' must be a non-empty string")
    return value


@tool(
    "browser_navigate",
    "Navigate to a URL. On the courses, course or lecture pages the matching list is fetched automatically.",
    {"url": {"type": "string", "description": "The URL to navigate to"}},
    ["url"],
    failure="Failed to navigate",
)
def browser_navigate(context: ToolContext, arguments: Mapping[str, Any]) -> ToolResult:
    url = _string_arg(arguments, "url")
    listing = context.client.navigate(url)
    texts = [_json(listing.to_dict())] if listing is not None else []
    texts.append(f"Navigated to {context.session.url}\n\n{context.snapshot_text()}")
    return text_result(*texts)


@tool("browser_navigate_back", "Go back to the previous page", failure="Failed to navigate back")
def browser_navigate_back(context: ToolContext, arguments: Mapping[str, Any]) -> ToolResult:
    context.session.go_back()
    return text_result(f"Navigated back to {context.session.url}\n\n{context.snapshot_text()}")


@tool("browser_navigate_forward", "Go forward to the next page", failure="Failed to navigate forward")
def browser_navigate_forward(context: ToolContext, arguments: Mapping[str, Any]) -> ToolResult:
    context.session.go_forward()
    return text_result(f"Navigated forward to {context.session.url}\n\n{context.snapshot_text()}")


@tool(
    "browser_snapshot",
    "Capture the interactive elements of the current page with the references other tools accept",
    failure="Failed to capture snapshot",
)
def browser_snapshot(context: ToolContext, arguments: Mapping[str, Any]) -> ToolResult:
    return text_result(context.snapshot_text())


@tool(
    "browser_wait",
    f"Wait for a specified time in seconds (at most {MAX_WAIT_SECONDS})",
    {"time": {"type": "number", "description": "The time to wait in seconds"}},
    ["time"],
)
def browser_wait(context: ToolContext, arguments: Mapping[str, Any]) -> ToolResult:
    seconds = arguments.get("time")
    if isinstance(seconds, bool) or not isinstance(seconds, (int, float)) or seconds < 0:
        raise ValidationError("'time' must be a non-negative number")
    seconds = min(seconds, MAX_WAIT_SECONDS)
    context.session.pause(int(seconds * 1000))
    return text_result(f"Waited for {seconds} seconds")


@tool("browser_close", "Close the page")
def browser_close(context: ToolContext, arguments: Mapping[str, Any]) -> ToolResult:
    context.session.close()
    return text_result("Page closed")


@tool(
    "browser_handle_dialog",
    "Accept or dismiss the dialog the page is currently showing",
    {
        "accept": {"type": "boolean", "description": "Whether to accept the dialog."},
        "promptText": {"type": "string", "description": "The text of the prompt in case of a prompt dialog."},
    },
    ["accept"],
    failure="Failed to handle dialog",
)
def browser_handle_dialog(context: ToolContext, arguments: Mapping[str, Any]) -> ToolResult:
    accept = arguments.get("accept")
    if not isinstance(accept, bool):
        raise ValidationError("'accept' must be a boolean")
    prompt_text = arguments.get("promptText")
    if prompt_text is not None and not isinstance(prompt_text, str):
        raise ValidationError("'promptText' must be a string")

    dialog = context.session.dialogs.take()
    if dialog is None:
        return text_result("No dialog visible", is_error=True)
    try:
        if accept and prompt_text is not None:
            dialog.accept(prompt_text)
        elif accept:
            dialog.accept()
        else:
            dialog.dismiss()
    except PlaywrightError as e:
        return text_result(f"Failed to handle dialog: {e.message}", is_error=True)
    verb = "accepted" if accept else "dismissed"
    logger.info(f"Dialog {verb} manually: {dialog.message!r}")
    return text_result(f'Dialog "{dialog.type}" with message "{dialog.message}" {verb}')


@tool(
    "loginToIniadMoocsWithIniadAccount",
    "Log in to INIAD MOOCs with the INIAD account from INIAD_USERNAME / INIAD_PASSWORD, "
    "then open the courses page. Does nothing but open the courses page when already logged in.",
    failure="Failed to log in to INIAD MOOCs",
)
def login_tool(context: ToolContext, arguments: Mapping[str, Any]) -> ToolResult:
    try:
        result = login(context.session, context.settings)
    except MoocsError:
        context.session.screenshot("login_error")
        raise
    context.session.save_auth_state()
    return text_result(_json({"success": True, "message": result.message}))


@tool(
    "listCourses",
    "Lists all available courses (id, title, URL) on the main courses page. "
    'Returns a JSON object with a "courses" array.',
    failure="Failed to list courses",
)
def list_courses(context: ToolContext, arguments: Mapping[str, Any]) -> ToolResult:
    courses = context.client.list_courses()
    return text_result(_json({"courses": [course.to_dict() for course in courses]}))


@tool(
    "listLectureLinks",
    "Lists the lecture links (id, title, URL) in the sidebar of the current course page. "
    'Returns a JSON object with a "lectures" array.',
    failure="Failed to list lecture links",
)
def list_lecture_links(context: ToolContext, arguments: Mapping[str, Any]) -> ToolResult:
    lectures = context.client.list_lectures()
    return text_result(_json({"lectures": [lecture.to_dict() for lecture in lectures]}))


@tool(
    "listSlideLinks",
    "Lists the numbered slide links (number, title, URL) of the current lecture page. "
    'Returns a JSON object with a "slides" array.',
    failure="Failed to list slide links",
)
def list_slide_links(context: ToolContext, arguments: Mapping[str, Any]) -> ToolResult:
    slides = context.client.list_slides()
    return text_result(_json({"slides": [slide.to_dict() for slide in slides]}))


@tool(
    "selectCourseByName",
    "Selects a course on the courses page by its exact name.",
    {"courseName": {"type": "string", "description": "The exact name of the course as it appears on the page."}},
    ["courseName"],
    failure="Failed to select course",
)
def select_course_by_name(context: ToolContext, arguments: Mapping[str, Any]) -> ToolResult:
    name = _string_arg(arguments, "courseName")
    context.client.select_course(name)
    return text_result(f"Successfully selected course: {name}")


@tool(
    "selectLectureById",
    'Selects a lecture of the current course by its ID (e.g. "cs3-00", "cs3-intro"), '
    "expanding the sidebar if necessary.",
    {"lectureId": {"type": "string", "description": 'The ID of the lecture, e.g. "cs3-00" or "cs3-intro".'}},
    ["lectureId"],
    failure="Failed to select lecture",
)
def select_lecture_by_id(context: ToolContext, arguments: Mapping[str, Any]) -> ToolResult:
    lecture_id = _string_arg(arguments, "lectureId")
    context.client.select_lecture(lecture_id)
    return text_result(f"Successfully selected lecture: {lecture_id}")


@tool(
    "selectSlideByNumber",
    "Selects a slide of the current lecture by its number.",
    {"slideNumber": {"type": "integer", "minimum": 1, "description": "The slide number, e.g. 1 or 5."}},
    ["slideNumber"],
    failure="Failed to select slide number",
)
def select_slide_by_number(context: ToolContext, arguments: Mapping[str, Any]) -> ToolResult:
    number = arguments.get("slideNumber")
    context.client.select_slide(number)
    return text_result(f"Successfully selected slide number: {number}")


@tool("getPageHtml", "Gets the full HTML source code of the current page.", failure="Failed to get page HTML")
def get_page_html(context: ToolContext, arguments: Mapping[str, Any]) -> ToolResult:
    return text_result(context.client.get_html())


_OPERATION_SCHEMA = {
    "type": "object",
    "properties": {
        "action": {"type": "string", "enum": ["type", "click", "check", "uncheck", "select", "upload"]},
        "ref": {"type": "string", "description": "Element reference from the page snapshot"},
        "element": {"type": "string", "description": "Human-readable element description"},
        "value": {
            "description": "Text for 'type'; option value(s) for 'select'; absolute file path(s) for 'upload'",
            "anyOf": [{"type": "string"}, {"type": "array", "items": {"type": "string"}}],
        },
    },
    "required": ["action", "ref"],
}


@tool(
    "submit_assignment",
    "Fill in an assignment form using references from the latest snapshot, click its submit button "
    "and accept the confirmation dialog. Returns the list of performed steps.",
    {
        "operations": {"type": "array", "items": _OPERATION_SCHEMA},
        "submitButtonRef": {"type": "string", "description": "Reference of the submit button"},
        "submitButtonElement": {"type": "string", "description": "Human-readable submit button description"},
    },
    ["submitButtonRef"],
)
def submit_assignment_tool(context: ToolContext, arguments: Mapping[str, Any]) -> ToolResult:
    return submit_assignment(context.session, arguments, context.settings).to_tool_result()


CONSOLE_RESOURCE = {
    "uri": "browser://console",
    "name": "Page console",
    "mimeType": "text/plain",
}


def read_console(context: ToolContext) -> str:
    return "\n".join(context.session.console_messages())
