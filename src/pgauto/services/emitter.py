"""Profile emission.

Turns a TuningProfile into what the downstream entrypoint consumes:
server arguments, an environment fragment and human-readable log lines.
Also renders the profile as a postgresql.conf fragment and a plain
mapping for YAML display.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Optional

from pgauto.core.exceptions import ValidationError
from pgauto.services.tuning import TuningProfile, TuningSetting


NO_DATA_CHECKSUMS_FLAG = "--no-data-checksums"
INITDB_ARGS_VARIABLE = "POSTGRES_INITDB_ARGS"

# Server parameter names: lowercase identifiers, dots for extension namespaces
_GUC_NAME_PATTERN = re.compile(r"^[a-z_][a-z0-9_.]*$")

# Values postgresql.conf accepts without quoting
_BARE_VALUE_PATTERN = re.compile(r"^[A-Za-z0-9.]+$")

# (section title, parameter names) in render order
CONFIG_SECTIONS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Memory Settings", (
        "shared_buffers", "effective_cache_size", "work_mem",
        "maintenance_work_mem", "wal_buffers",
    )),
    ("Parallel Query Settings", (
        "max_worker_processes", "max_parallel_workers",
        "max_parallel_workers_per_gather",
    )),
    ("Disk I/O Settings", (
        "random_page_cost", "effective_io_concurrency", "maintenance_io_concurrency",
    )),
    ("Connection Settings", ("max_connections",)),
    ("WAL Settings", ("min_wal_size", "max_wal_size", "checkpoint_completion_target")),
    ("Planner Settings", ("default_statistics_target", "jit")),
    ("Extensions", ("shared_preload_libraries",)),
)


@dataclass(frozen=True)
class EmittedProfile:
    """Everything handed to the downstream entrypoint."""

    argv: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    log_lines: list[str] = field(default_factory=list)


def validate_setting_name(name: str) -> str:
    """Check a parameter name is safe to pass as ``-c name=value``.

    Raises:
        ValidationError: If the name is not a valid server parameter name
    """
    if not _GUC_NAME_PATTERN.match(name):
        raise ValidationError(
            f"Invalid server parameter name: {name!r}",
            hint="Parameter names must be lowercase letters, digits, '_' or '.'",
        )
    return name


def summary_line(profile: TuningProfile) -> str:
    """One-line description of what the profile was sized for."""
    cores = "1 CPU" if profile.cpu_count == 1 else f"{profile.cpu_count} CPUs"
    return (
        f"Tuned for {profile.memory_mb}MB RAM, {cores}, "
        f"{profile.workload.value} workload on {profile.storage.value} storage"
    )


def initdb_env(disable_data_checksums: bool, initdb_args: Optional[str] = None) -> dict[str, str]:
    """Environment fragment for first-time cluster initialization."""
    if not disable_data_checksums:
        return {}
    existing = (initdb_args or "").strip()
    if NO_DATA_CHECKSUMS_FLAG in existing.split():
        return {INITDB_ARGS_VARIABLE: existing}
    args = f"{existing} {NO_DATA_CHECKSUMS_FLAG}" if existing else NO_DATA_CHECKSUMS_FLAG
    return {INITDB_ARGS_VARIABLE: args}


def emit(
    profile: TuningProfile,
    disable_data_checksums: bool = False,
    initdb_args: Optional[str] = None,
) -> EmittedProfile:
    """Render a profile for the downstream entrypoint.

    Args:
        profile: Computed tuning profile
        disable_data_checksums: Append --no-data-checksums to the initdb args
        initdb_args: Existing initdb args to extend

    Returns:
        EmittedProfile with ``-c name=value`` pairs, env fragment and log lines
    """
    argv: list[str] = []
    log_lines = [summary_line(profile)]
    for setting in profile.settings:
        validate_setting_name(setting.name)
        argv.extend(["-c", setting.as_assignment()])
        log_lines.append(setting.as_assignment())

    return EmittedProfile(
        argv=argv,
        env=initdb_env(disable_data_checksums, initdb_args),
        log_lines=log_lines,
    )


def _conf_value(setting: TuningSetting) -> str:
    if _BARE_VALUE_PATTERN.match(setting.value):
        return setting.value
    escaped = setting.value.replace("'", "''")
    return f"'{escaped}'"


def render_config(profile: TuningProfile) -> str:
    """Render the profile as a commented postgresql.conf fragment.

    Args:
        profile: Computed tuning profile

    Returns:
        Config file content as string
    """
    sep = "# " + "=" * 74
    lines = [
        "# PostgreSQL Tuning Configuration",
        "# Generated by: pgauto show --format conf",
        f"# System: {profile.memory_mb}MB RAM, {profile.cpu_count} CPUs, "
        f"{profile.storage.value.upper()}",
        f"# Workload: {profile.workload.value.upper()} - {profile.workload.description}",
    ]

    by_name = {s.name: s for s in profile.settings}
    for title, names in CONFIG_SECTIONS:
        section = [by_name[name] for name in names if name in by_name]
        if not section:
            continue
        lines.extend(["", sep, f"# {title}", sep])
        for setting in section:
            restart = " (requires restart)" if setting.requires_restart else ""
            lines.append(f"# {setting.reason}{restart}")
            lines.append(f"{setting.name} = {_conf_value(setting)}")

    return "\n".join(lines) + "\n"


def profile_to_dict(profile: TuningProfile) -> dict[str, Any]:
    """Plain mapping of a profile for YAML output."""
    return {
        "system": {
            "memory_mb": profile.memory_mb,
            "cpu_count": profile.cpu_count,
            "storage": profile.storage.value,
        },
        "workload": profile.workload.value,
        "connection_tier": profile.connection_tier,
        "settings": {s.name: s.value for s in profile.settings},
    }
