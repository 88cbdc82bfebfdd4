"""Resource probe command.

Commands:
- pgauto probe
"""

from rich.markup import escape

from pgauto.commands.common import (
    CpusOption,
    MemoryOption,
    NoColorOption,
    VerboseOption,
)
from pgauto.core.context import create_context
from pgauto.services.probe import ResourceKind, ResourceProber


def probe_cmd(
    memory: MemoryOption = None,
    cpus: CpusOption = None,
    verbose: VerboseOption = 0,
    no_color: NoColorOption = False,
) -> None:
    """Show the memory and CPU the server would be sized for.

    Lists each resource with the source it was taken from: a manual
    override, the container's cgroup limit, the whole system, or the
    built-in fallback.

    [bold]Examples:[/bold]

        pgauto probe

        pgauto probe -vv
    """
    ctx = create_context(verbose=verbose, no_color=no_color)
    settings = ctx.settings.with_overrides(memory_override=memory, cpu_override=cpus)

    ctx.console.verbose(f"Probe root: {settings.probe_root_path}")
    prober = ResourceProber(root=settings.probe_root_path, console=ctx.console)
    readings = prober.probe_all(
        memory_override=settings.memory_override,
        cpu_override=settings.cpu_override,
    )

    rows = []
    for reading in readings:
        unit = "MB" if reading.kind == ResourceKind.MEMORY else ""
        rows.append([
            reading.kind.label,
            f"{reading.value}{unit}",
            reading.source.value,
            escape("; ".join(reading.notes)),
        ])

    ctx.console.print()
    ctx.console.table("Resources", ["Resource", "Value", "Source", "Notes"], rows)

    if ctx.is_verbose:
        env_yaml = settings.to_yaml()
        if env_yaml.strip() != "{}":
            ctx.console.yaml(env_yaml, title="Environment")
