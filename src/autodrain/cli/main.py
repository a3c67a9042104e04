# src/autodrain/cli/main.py
"""
This module is the main entry point for the autodrain CLI.

It aggregates the commands from the submodules (run, drain, uncordon).
"""

import logging

import typer

from ..core.config import config
from . import nodes, run

# --- Setup Logger ---
logging.basicConfig(
    level=config.LOG_LEVEL.upper(),
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


app = typer.Typer(
    name="autodrain",
    help="Drain unhealthy Kubernetes nodes automatically and uncordon them once they recover.",
    add_completion=False,
)


def version_callback(value: bool):
    """
    Prints the version of autodrain.
    """
    if value:
        from .. import __version__

        typer.echo(f"autodrain version: {__version__}")
        raise typer.Exit()


@app.command()
def version():
    """
    Show the version of autodrain.
    """
    from .. import __version__

    typer.echo(f"autodrain version: {__version__}")


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
):
    """
    autodrain CLI main entry point.
    """
    pass


# Register commands
app.add_typer(run.app, name="run")
app.command(name="drain")(nodes.drain)
app.command(name="uncordon")(nodes.uncordon)


if __name__ == "__main__":
    app()
