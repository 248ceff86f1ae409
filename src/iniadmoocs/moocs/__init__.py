import json
from typing import Annotated

import typer
from loguru import logger

from iniadmoocs import app as main_app
from iniadmoocs.cli import AuthStateOption, BaseUrlOption, HeadlessOption, cli_settings
from iniadmoocs.errors import MoocsError
from iniadmoocs.login import login as run_login
from iniadmoocs.session import BrowserSession

from .client import Listing, MoocsClient
from .course import Course, Lecture, Slide
from .scrapers import parse_courses, parse_lectures, parse_slides

__all__ = [
    "Course",
    "Lecture",
    "Listing",
    "MoocsClient",
    "Slide",
    "parse_courses",
    "parse_lectures",
    "parse_slides",
]

# Create a local Typer app for MOOCs navigation subcommands
app = typer.Typer(help="Log in to INIAD MOOCs and browse courses, lectures and slides")


def _echo_items(items: list) -> None:
    typer.echo(json.dumps([item.to_dict() for item in items], ensure_ascii=False, indent=2))


@app.command()
def login(
    base_url: BaseUrlOption = None,
    auth_state_path: AuthStateOption = None,
    headless: HeadlessOption = False,
) -> None:
    """Log in with INIAD_USERNAME / INIAD_PASSWORD and persist authentication state."""
    settings = cli_settings(base_url, auth_state_path, headless)
    with BrowserSession(settings) as session:
        try:
            result = run_login(session, settings)
            session.save_auth_state()
        except MoocsError as e:
            session.screenshot("login_error")
            typer.echo(f"Login failed: {e}", err=True)
            raise typer.Exit(code=1)
    typer.echo(result.message)


@app.command()
def courses(
    base_url: BaseUrlOption = None,
    auth_state_path: AuthStateOption = None,
    headless: HeadlessOption = True,
) -> None:
    """List the courses on the courses page as JSON."""
    settings = cli_settings(base_url, auth_state_path, headless)
    with BrowserSession(settings) as session:
        try:
            items = MoocsClient(session, settings).list_courses()
        except MoocsError as e:
            typer.echo(f"Failed to list courses: {e}", err=True)
            raise typer.Exit(code=1)
    _echo_items(items)


@app.command()
def lectures(
    course_url: Annotated[str, typer.Argument(help="URL of the course page")],
    base_url: BaseUrlOption = None,
    auth_state_path: AuthStateOption = None,
    headless: HeadlessOption = True,
) -> None:
    """List the lecture links of a course as JSON."""
    settings = cli_settings(base_url, auth_state_path, headless)
    with BrowserSession(settings) as session:
        client = MoocsClient(session, settings)
        try:
            session.navigate(course_url)
            items = client.list_lectures()
        except MoocsError as e:
            typer.echo(f"Failed to list lecture links: {e}", err=True)
            raise typer.Exit(code=1)
    _echo_items(items)


@app.command()
def slides(
    lecture_url: Annotated[str, typer.Argument(help="URL of a lecture page")],
    base_url: BaseUrlOption = None,
    auth_state_path: AuthStateOption = None,
    headless: HeadlessOption = True,
) -> None:
    """List the numbered pages of a lecture as JSON."""
    settings = cli_settings(base_url, auth_state_path, headless)
    with BrowserSession(settings) as session:
        client = MoocsClient(session, settings)
        try:
            session.navigate(lecture_url)
            items = client.list_slides()
        except MoocsError as e:
            typer.echo(f"Failed to list slide links: {e}", err=True)
            raise typer.Exit(code=1)
    _echo_items(items)


@app.command()
def snapshot(
    url: Annotated[str, typer.Argument(help="URL of the page to capture")],
    base_url: BaseUrlOption = None,
    auth_state_path: AuthStateOption = None,
    headless: HeadlessOption = True,
) -> None:
    """Print the element references of a page, as used by `submit`."""
    settings = cli_settings(base_url, auth_state_path, headless)
    with BrowserSession(settings) as session:
        try:
            session.navigate(url)
            captured = session.snapshot()
        except MoocsError as e:
            typer.echo(f"Failed to capture snapshot: {e}", err=True)
            raise typer.Exit(code=1)
    logger.debug(f"Snapshot has {len(captured)} elements")
    typer.echo(captured.render())


# Register the moocs app as a subcommand with the main app
main_app.add_typer(app, name="moocs")
