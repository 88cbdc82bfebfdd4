"""Profile preview command.

Computes the same profile the entrypoint would use and prints it.

Commands:
- pgauto show (table)
- pgauto show --format conf|yaml|args (machine-readable, on stdout)
"""

from enum import Enum
from typing import Annotated

import typer
import yaml
from rich import box
from rich.markup import escape
from rich.table import Table

from pgauto.commands.common import (
    CpusOption,
    MemoryOption,
    NoColorOption,
    QuietOption,
    StorageOption,
    VerboseOption,
    WorkloadOption,
    handle_error,
)
from pgauto.core.context import ExecutionContext, create_context
from pgauto.core.exceptions import PgAutoError
from pgauto.services.emitter import profile_to_dict, render_config
from pgauto.services.pipeline import PipelineResult, run_pipeline


class OutputFormat(str, Enum):
    """Output formats for the show command."""

    TABLE = "table"
    CONF = "conf"
    YAML = "yaml"
    ARGS = "args"

    @property
    def machine_readable(self) -> bool:
        """Check if the format is meant to be piped."""
        return self != OutputFormat.TABLE


def _display_table(ctx: ExecutionContext, result: PipelineResult) -> None:
    """Display the resolved inputs and the settings table."""
    profile = result.profile
    hints = result.hints

    items: dict[str, str] = {}
    for reading in result.readings:
        items[reading.kind.label] = reading.describe().split(": ", 1)[1]
    items["Workload"] = f"{profile.workload.value.upper()} - {profile.workload.description}"
    items["Storage"] = profile.storage.value.upper()
    items["Connection tier"] = profile.connection_tier

    ctx.console.print()
    ctx.console.summary("Detected Resources", items)

    if hints and hints.notes:
        for note in hints.notes:
            ctx.console.verbose(escape(note))

    table = Table(
        title="Tuning Settings",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold",
    )
    table.add_column("Parameter", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")
    table.add_column("Reasoning", style="dim")
    table.add_column("", width=1, justify="center")  # Restart indicator

    settings = profile.settings
    for setting in settings:
        table.add_row(
            setting.name,
            escape(setting.value),
            escape(setting.reason),
            "*" if setting.requires_restart else "",
        )

    ctx.console.print(table)

    if any(s.requires_restart for s in settings):
        ctx.console.print()
        ctx.console.print("[dim]* = Requires PostgreSQL restart to take effect[/dim]")

    if result.env:
        ctx.console.print()
        for key, value in result.env.items():
            ctx.console.info(f"initdb environment: {key}={escape(value)}")


def show_cmd(
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format: table, conf (postgresql.conf), yaml, args (one per line).",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
    memory: MemoryOption = None,
    cpus: CpusOption = None,
    workload: WorkloadOption = None,
    storage: StorageOption = None,
    verbose: VerboseOption = 0,
    quiet: QuietOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Preview the tuning profile without starting PostgreSQL.

    Reads the same environment variables as the entrypoint. Options
    given here replace the corresponding variables.

    Machine-readable formats are written to stdout; diagnostics and
    warnings go to stderr.

    [bold]Examples:[/bold]

        pgauto show

        pgauto show --memory 8GB --cpus 4 --workload oltp

        pgauto show --format conf > /etc/postgresql/conf.d/tuning.conf

        pgauto show --format args
    """
    ctx = create_context(
        verbose=verbose,
        quiet=quiet,
        no_color=no_color,
        stderr_only=output_format.machine_readable,
    )

    try:
        settings = ctx.settings.with_overrides(
            memory_override=memory,
            cpu_override=cpus,
            workload_type=workload,
            storage_type=storage,
        )
        result = run_pipeline(settings, console=ctx.console)

        if result.skipped:
            ctx.console.info("Auto-configuration is disabled (POSTGRES_SKIP_AUTOCONFIG)")
            return

        if output_format == OutputFormat.ARGS:
            for arg in result.argv:
                typer.echo(arg)
        elif output_format == OutputFormat.CONF:
            typer.echo(render_config(result.profile), nl=False)
        elif output_format == OutputFormat.YAML:
            data = profile_to_dict(result.profile)
            typer.echo(yaml.dump(data, default_flow_style=False, sort_keys=False), nl=False)
        else:
            _display_table(ctx, result)

    except PgAutoError as e:
        handle_error(e)
