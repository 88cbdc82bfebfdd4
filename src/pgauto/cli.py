"""Main CLI entry point using Typer.

This module defines the root CLI application and global options.
Commands are registered from the pgauto.commands submodules.
"""

from typing import Annotated

import typer
from rich.console import Console

from pgauto import __version__
from pgauto.commands.entrypoint import CONTEXT_SETTINGS, entrypoint_cmd
from pgauto.commands.probe import probe_cmd
from pgauto.commands.show import show_cmd


# Create the main Typer app
app = typer.Typer(
    name="pgauto",
    help="Resource-aware PostgreSQL auto-configuration.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=True,
    pretty_exceptions_show_locals=False,
)

# Register commands
app.command("entrypoint", context_settings=CONTEXT_SETTINGS)(entrypoint_cmd)
app.command("show")(show_cmd)
app.command("probe")(probe_cmd)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console = Console()
        console.print(f"pgauto version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """Resource-aware PostgreSQL auto-configuration.

    Sizes PostgreSQL for the memory and CPU it can actually use,
    honoring container limits, and starts it with matching settings.

    [bold]Environment:[/bold]
    - POSTGRES_MEMORY / POSTGRES_CPUS override detection
    - POSTGRES_WORKLOAD_TYPE: mixed, web, oltp, analytical
    - POSTGRES_STORAGE_TYPE: ssd, hdd, network-attached
    - POSTGRES_SKIP_AUTOCONFIG=true disables tuning

    [bold]Examples:[/bold]
        pgauto entrypoint postgres
        pgauto show --format conf
        pgauto probe
    """
    pass


if __name__ == "__main__":
    app()
