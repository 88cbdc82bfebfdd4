"""Container entrypoint command.

Runs the auto-configuration pipeline and replaces itself with the image's
original entrypoint, passing the computed settings as server arguments.

Commands:
- pgauto entrypoint [ARGS...]
"""

from typing import Annotated, Optional

import typer

from pgauto.commands.common import (
    DryRunOption,
    NoColorOption,
    QuietOption,
    VerboseOption,
    handle_error,
)
from pgauto.core.context import create_context
from pgauto.core.exceptions import PgAutoError
from pgauto.core.executor import ProcessLauncher
from pgauto.services.pipeline import run_pipeline


SERVER_COMMAND = "postgres"

# Everything after the first positional argument belongs to the server
CONTEXT_SETTINGS = {
    "allow_extra_args": True,
    "ignore_unknown_options": True,
    "allow_interspersed_args": False,
}


def normalize_args(args: Optional[list[str]]) -> list[str]:
    """Apply the image's argument conventions.

    No arguments means start the server; a leading flag means the flags
    are for the server.
    """
    if not args:
        return [SERVER_COMMAND]
    if args[0].startswith("-"):
        return [SERVER_COMMAND, *args]
    return list(args)


def wants_tuning(args: list[str]) -> bool:
    """Check if the command starts the server (rather than e.g. a shell)."""
    return bool(args) and args[0] == SERVER_COMMAND


def build_command(downstream: str, args: list[str], tuning_argv: list[str]) -> list[str]:
    """Assemble the final command line.

    Operator flags come after the computed ones so they take precedence.
    """
    if not wants_tuning(args):
        return [downstream, *args]
    return [downstream, SERVER_COMMAND, *tuning_argv, *args[1:]]


def entrypoint_cmd(
    args: Annotated[
        Optional[list[str]],
        typer.Argument(help="Command to run; defaults to 'postgres'."),
    ] = None,
    dry_run: DryRunOption = False,
    verbose: VerboseOption = 0,
    quiet: QuietOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Auto-configure PostgreSQL and start it.

    Detects memory and CPU (honoring container limits), computes tuning
    settings and execs the original image entrypoint with them as
    [bold]-c name=value[/bold] arguments. Your own flags are passed last
    and override the computed ones.

    Any command other than [bold]postgres[/bold] runs unchanged.

    [bold]Examples:[/bold]

        pgauto entrypoint

        pgauto entrypoint -c max_connections=500

        pgauto entrypoint --dry-run postgres

        pgauto entrypoint bash
    """
    ctx = create_context(dry_run=dry_run, verbose=verbose, quiet=quiet, no_color=no_color)
    settings = ctx.settings
    command_args = normalize_args(args)

    try:
        tuning_argv: list[str] = []
        env: dict[str, str] = {}
        if wants_tuning(command_args):
            result = run_pipeline(settings, console=ctx.console)
            tuning_argv = result.argv
            env = result.env
        else:
            ctx.console.debug(f"Not starting the server; running {command_args[0]} unchanged")

        command = build_command(settings.downstream, command_args, tuning_argv)
        ProcessLauncher(ctx).exec(command, env=env)

    except PgAutoError as e:
        handle_error(e)
