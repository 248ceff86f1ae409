import json
from pathlib import Path
from typing import Annotated

import typer

from iniadmoocs import app as main_app
from iniadmoocs.cli import AuthStateOption, BaseUrlOption, HeadlessOption, cli_settings
from iniadmoocs.errors import MoocsError
from iniadmoocs.session import BrowserSession

from .arbiter import DialogArbiter
from .operations import (
    CheckOperation,
    ClickOperation,
    Operation,
    SelectOperation,
    SubmissionRequest,
    SubmitTarget,
    TypeOperation,
    UncheckOperation,
    UploadOperation,
    parse_operation,
    parse_request,
)
from .sequencer import OperationSequencer, run_submission, submit_assignment
from .trace import DialogOutcome, DialogVerdict, SubmissionResult, SubmissionTrace
from .upload import UploadCoordinator

__all__ = [
    "CheckOperation",
    "ClickOperation",
    "DialogArbiter",
    "DialogOutcome",
    "DialogVerdict",
    "Operation",
    "OperationSequencer",
    "SelectOperation",
    "SubmissionRequest",
    "SubmissionResult",
    "SubmissionTrace",
    "SubmitTarget",
    "TypeOperation",
    "UncheckOperation",
    "UploadCoordinator",
    "UploadOperation",
    "parse_operation",
    "parse_request",
    "run_submission",
    "submit_assignment",
]

# Create a local Typer app for submission subcommands
app = typer.Typer(help="Fill in and submit assignment forms")


@app.command()
def submit(
    url: Annotated[str, typer.Argument(help="URL of the page holding the assignment form")],
    request_json: Annotated[
        Path,
        typer.Argument(help="JSON file with `operations`, `submitButtonRef` and optionally `submitButtonElement`"),
    ],
    base_url: BaseUrlOption = None,
    auth_state_path: AuthStateOption = None,
    headless: HeadlessOption = True,
) -> None:
    """Fill in and submit an assignment form.

    References in REQUEST_JSON are those printed by `iniadmoocs moocs snapshot URL`
    for the same page.
    """
    settings = cli_settings(base_url, auth_state_path, headless)
    try:
        arguments = json.loads(request_json.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        typer.echo(f"Could not read submission request {request_json}: {e}", err=True)
        raise typer.Exit(code=2)

    with BrowserSession(settings) as session:
        try:
            session.navigate(url)
            session.snapshot()
        except MoocsError as e:
            typer.echo(f"Failed to open {url}: {e}", err=True)
            raise typer.Exit(code=1)
        result = submit_assignment(session, arguments, settings)

    typer.echo(result.text)
    if result.is_error:
        raise typer.Exit(code=1)


# Register the submission app as a subcommand with the main app
main_app.add_typer(app, name="submission")
