"""Top-level package for iniadmoocs."""

__version__ = "0.1.0"

import typer

app = typer.Typer(help="Automate the INIAD MOOCs platform: login, course navigation and assignment submission.")

# Import submodules at the end to register their commands
from iniadmoocs import (  # noqa: E402
    moocs,  # noqa: F401
    server,  # noqa: F401
    submission,  # noqa: F401
)

if __name__ == "__main__":
    app()
