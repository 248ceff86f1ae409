"""Options and helpers shared by the command-line interface."""

from pathlib import Path
from typing import Annotated

import typer

from iniadmoocs.config import Settings
from iniadmoocs.errors import MoocsError

BaseUrlOption = Annotated[str | None, typer.Option(help="Override the INIAD MOOCs base URL")]
AuthStateOption = Annotated[Path | None, typer.Option(help="Path of the saved authentication state JSON")]
HeadlessOption = Annotated[
    bool,
    typer.Option(
        "--headless/--headed",
        help="Run browser headless (for automation) or headed (for debugging)",
    ),
]


def cli_settings(base_url: str | None, auth_state_path: Path | None, headless: bool) -> Settings:
    """Settings from the environment with command-line options applied."""
    try:
        return Settings.from_env().override(base_url=base_url, auth_state_path=auth_state_path, headless=headless)
    except MoocsError as e:
        typer.echo(f"Invalid configuration: {e}", err=True)
        raise typer.Exit(code=2)
