"""Options and error handling shared by all commands."""

from typing import Annotated, Optional

import typer
from rich.markup import escape

from pgauto.core.exceptions import PgAutoError
from pgauto.core.output import console


DryRunOption = Annotated[
    bool,
    typer.Option(
        "--dry-run",
        help="Print the final command line instead of executing it.",
        is_flag=True,
    ),
]

VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Increase output verbosity. Can be repeated (-v, -vv).",
    ),
]

QuietOption = Annotated[
    bool,
    typer.Option(
        "--quiet",
        "-q",
        help="Suppress non-essential output. Diagnostics are always shown.",
        is_flag=True,
    ),
]

NoColorOption = Annotated[
    bool,
    typer.Option(
        "--no-color",
        help="Disable colored output.",
        is_flag=True,
    ),
]

MemoryOption = Annotated[
    Optional[str],
    typer.Option(
        "--memory",
        "-m",
        help="Memory override, e.g. 4096 or 4GB (default: POSTGRES_MEMORY).",
    ),
]

CpusOption = Annotated[
    Optional[str],
    typer.Option(
        "--cpus",
        "-c",
        help="CPU count override (default: POSTGRES_CPUS).",
    ),
]

WorkloadOption = Annotated[
    Optional[str],
    typer.Option(
        "--workload",
        "-w",
        help="Workload type: mixed, web, oltp, analytical (default: POSTGRES_WORKLOAD_TYPE).",
    ),
]

StorageOption = Annotated[
    Optional[str],
    typer.Option(
        "--storage",
        "-s",
        help="Storage type: ssd, hdd, network-attached (default: POSTGRES_STORAGE_TYPE).",
    ),
]


def handle_error(error: PgAutoError) -> None:
    """Handle a PgAutoError by printing formatted error and exiting."""
    console.error(error.message)

    if error.details:
        for detail in error.details:
            console.print(f"  [dim]{escape(detail)}[/dim]")

    if error.hint:
        console.hint(error.hint)

    raise typer.Exit(error.exit_code)
