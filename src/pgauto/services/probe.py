"""Resource detection for auto-configuration.

Provides:
- Memory and CPU detection with a strict precedence order
- cgroup v2 / v1 limit parsing with "unlimited" sentinels treated as absent
- Manual override parsing and sanitization
- One diagnostic line per resolved resource

Precedence (highest first): manual override, containment boundary
(cgroup), whole system, fallback default. Probing never raises; every
unreadable or malformed signal falls through to the next source.
"""

import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from rich.markup import escape

from pgauto.core.output import Console, console as default_console


class ResourceKind(Enum):
    """Resources the engine sizes the server for."""

    MEMORY = "memory"
    CPU = "cpu"

    @property
    def label(self) -> str:
        """Short label used in log lines."""
        return {"memory": "RAM", "cpu": "CPU"}[self.value]


class ResourceSource(Enum):
    """Where a resource value came from."""

    MANUAL_OVERRIDE = "manual-override"
    CONTAINED_LIMIT = "contained-limit"
    WHOLE_SYSTEM = "whole-system"
    FALLBACK_DEFAULT = "fallback-default"


@dataclass(frozen=True)
class ResourceReading:
    """One resource's detected value plus its provenance.

    ``value`` is in MB for memory and a count for CPU.
    """

    kind: ResourceKind
    value: int
    source: ResourceSource
    notes: tuple[str, ...] = ()

    def describe(self) -> str:
        """Render the operator-facing line, e.g. ``RAM: 4096MB (manual-override)``."""
        if self.kind == ResourceKind.MEMORY:
            amount = f"{self.value}MB"
        else:
            amount = f"{self.value} core" if self.value == 1 else f"{self.value} cores"
        return f"{self.kind.label}: {amount} ({self.source.value})"


# Conservative values used when nothing can be detected
DEFAULT_MEMORY_MB = 1024
DEFAULT_CPU_COUNT = 1

# Smallest values the server is sized for; overrides below are raised to these
MEMORY_FLOOR_MB = 512
CPU_FLOOR = 1

# Environment variables carrying manual overrides (named in warnings)
OVERRIDE_VARIABLES = {
    ResourceKind.MEMORY: "POSTGRES_MEMORY",
    ResourceKind.CPU: "POSTGRES_CPUS",
}

# cgroup v1 reports "no limit" as a page-aligned value near 2^63
CGROUP_V1_UNLIMITED_BYTES = 2**62

# Default CFS period when cpu.max carries only a quota
DEFAULT_CFS_PERIOD_US = 100000

# Pre-compiled regex for memory sizes ("4096", "4GB", "512 mb", "-1")
_MEMORY_PATTERN = re.compile(r"^(-?\d+)\s*(kb|mb|gb|tb)?$", re.IGNORECASE)
_COUNT_PATTERN = re.compile(r"^-?\d+$")

_CGROUP_V2_MEMORY = "sys/fs/cgroup/memory.max"
_CGROUP_V1_MEMORY = "sys/fs/cgroup/memory/memory.limit_in_bytes"
_CGROUP_V2_CPU = "sys/fs/cgroup/cpu.max"
_CGROUP_V1_CPU_DIRS = ("sys/fs/cgroup/cpu", "sys/fs/cgroup/cpu,cpuacct")
_MEMINFO = "proc/meminfo"


def parse_memory_mb(raw: str) -> Optional[int]:
    """Parse a memory size into MB.

    A bare number is MB. Returns None when the value is not a size at all;
    negative numbers are returned as-is so the caller can sanitize them.
    """
    match = _MEMORY_PATTERN.match(raw.strip())
    if not match:
        return None
    num = int(match.group(1))
    unit = (match.group(2) or "mb").lower()
    if unit == "kb":
        return num // 1024
    elif unit == "gb":
        return num * 1024
    elif unit == "tb":
        return num * 1024 * 1024
    return num


def parse_count(raw: str) -> Optional[int]:
    """Parse a whole-number count, or None if malformed."""
    value = raw.strip()
    if not _COUNT_PATTERN.match(value):
        return None
    return int(value)


class ResourceProber:
    """Detect memory and CPU available to the database process.

    All paths are resolved under ``root`` so tests (and unusual mounts)
    can point the prober at a different filesystem tree.
    """

    def __init__(self, root: Path = Path("/"), console: Console = default_console) -> None:
        """Initialize prober.

        Args:
            root: Filesystem root holding ``sys/`` and ``proc/``
            console: Console for diagnostics
        """
        self.root = root
        self.console = console

    def probe_all(
        self,
        memory_override: Optional[str] = None,
        cpu_override: Optional[str] = None,
    ) -> list[ResourceReading]:
        """Resolve one reading per resource kind."""
        return [
            self.probe(ResourceKind.MEMORY, memory_override),
            self.probe(ResourceKind.CPU, cpu_override),
        ]

    def probe(self, kind: ResourceKind, override: Optional[str] = None) -> ResourceReading:
        """Resolve a resource using the precedence chain.

        Args:
            kind: Resource to resolve
            override: Raw operator override, checked before any file is read

        Returns:
            The first trustworthy reading, never raising
        """
        notes: list[str] = []

        reading = None
        if override is not None and override.strip():
            reading = self._from_override(kind, override, notes)

        if reading is None:
            reading = self._detect(kind, tuple(notes))

        self.console.diagnostic(reading.describe())
        return reading

    def _from_override(
        self, kind: ResourceKind, raw: str, notes: list[str]
    ) -> Optional[ResourceReading]:
        """Build a reading from a manual override, or None if unusable."""
        variable = OVERRIDE_VARIABLES[kind]
        if kind == ResourceKind.MEMORY:
            value = parse_memory_mb(raw)
            floor = MEMORY_FLOOR_MB
            unit = "MB"
        else:
            value = parse_count(raw)
            floor = CPU_FLOOR
            unit = ""

        if value is None:
            note = f"{variable}={raw.strip()!r} is not a valid value; override ignored"
            self.console.warn(escape(note))
            notes.append(note)
            return None

        if value < floor:
            note = f"{variable}={value}{unit} is below the minimum; using {floor}{unit}"
            self.console.warn(escape(note))
            notes.append(note)
            value = floor

        return ResourceReading(kind, value, ResourceSource.MANUAL_OVERRIDE, tuple(notes))

    def _detect(self, kind: ResourceKind, notes: tuple[str, ...]) -> ResourceReading:
        """Walk the probed sources, falling back to the default."""
        sources: list[tuple[ResourceSource, Callable[[], Optional[int]]]]
        if kind == ResourceKind.MEMORY:
            sources = [
                (ResourceSource.CONTAINED_LIMIT, self._cgroup_memory_mb),
                (ResourceSource.WHOLE_SYSTEM, self._system_memory_mb),
            ]
            default = DEFAULT_MEMORY_MB
        else:
            sources = [
                (ResourceSource.CONTAINED_LIMIT, self._cgroup_cpu_count),
                (ResourceSource.WHOLE_SYSTEM, self._system_cpu_count),
            ]
            default = DEFAULT_CPU_COUNT

        for source, reader in sources:
            value = reader()
            if value:
                return ResourceReading(kind, value, source, notes)
            self.console.debug(f"{kind.label}: {source.value} unavailable")

        return ResourceReading(kind, default, ResourceSource.FALLBACK_DEFAULT, notes)

    # ------------------------------------------------------------------
    # File access
    # ------------------------------------------------------------------

    def _read(self, relative: str) -> Optional[str]:
        """Read a probe file, returning None if it cannot be read."""
        try:
            return (self.root / relative).read_text().strip()
        except (OSError, UnicodeDecodeError):
            return None

    # ------------------------------------------------------------------
    # Memory sources
    # ------------------------------------------------------------------

    def _cgroup_memory_mb(self) -> Optional[int]:
        """Memory limit of the enclosing cgroup in MB.

        Returns None for "max", empty or zero limits, the cgroup v1
        unlimited sentinel and limits larger than installed memory.
        """
        limit_bytes = self._cgroup_v2_memory_bytes()
        if limit_bytes is None:
            limit_bytes = self._cgroup_v1_memory_bytes()
        if limit_bytes is None:
            return None

        limit_mb = limit_bytes // 1024 // 1024
        if limit_mb <= 0:
            return None

        system_mb = self._system_memory_mb()
        if system_mb and limit_mb > system_mb:
            self.console.debug(
                f"cgroup limit {limit_mb}MB exceeds installed memory {system_mb}MB; ignoring"
            )
            return None
        return limit_mb

    def _cgroup_v2_memory_bytes(self) -> Optional[int]:
        content = self._read(_CGROUP_V2_MEMORY)
        if not content or content == "max":
            return None
        try:
            return int(content)
        except ValueError:
            return None

    def _cgroup_v1_memory_bytes(self) -> Optional[int]:
        content = self._read(_CGROUP_V1_MEMORY)
        if not content:
            return None
        try:
            value = int(content)
        except ValueError:
            return None
        if value <= 0 or value >= CGROUP_V1_UNLIMITED_BYTES:
            return None
        return value

    def _system_memory_mb(self) -> Optional[int]:
        """Total installed memory in MB from /proc/meminfo."""
        content = self._read(_MEMINFO)
        if not content:
            return None
        for line in content.splitlines():
            if line.startswith("MemTotal:"):
                # Format: "MemTotal:     16384000 kB"
                parts = line.split()
                try:
                    return int(parts[1]) // 1024
                except (ValueError, IndexError):
                    return None
        return None

    # ------------------------------------------------------------------
    # CPU sources
    # ------------------------------------------------------------------

    def _cgroup_cpu_count(self) -> Optional[int]:
        """CPU quota of the enclosing cgroup, rounded up to whole cores."""
        quota_period = self._cgroup_v2_cpu_quota()
        if quota_period is None:
            quota_period = self._cgroup_v1_cpu_quota()
        if quota_period is None:
            return None

        quota, period = quota_period
        cores = -(-quota // period)
        return max(cores, CPU_FLOOR)

    def _cgroup_v2_cpu_quota(self) -> Optional[tuple[int, int]]:
        content = self._read(_CGROUP_V2_CPU)
        if not content:
            return None
        parts = content.split()
        if parts[0] == "max":
            return None
        try:
            quota = int(parts[0])
            period = int(parts[1]) if len(parts) > 1 else DEFAULT_CFS_PERIOD_US
        except ValueError:
            return None
        if quota <= 0 or period <= 0:
            return None
        return quota, period

    def _cgroup_v1_cpu_quota(self) -> Optional[tuple[int, int]]:
        for cgroup_dir in _CGROUP_V1_CPU_DIRS:
            quota_raw = self._read(f"{cgroup_dir}/cpu.cfs_quota_us")
            if not quota_raw:
                continue
            period_raw = self._read(f"{cgroup_dir}/cpu.cfs_period_us")
            try:
                quota = int(quota_raw)
                period = int(period_raw) if period_raw else DEFAULT_CFS_PERIOD_US
            except ValueError:
                continue
            # -1 means no quota
            if quota <= 0 or period <= 0:
                continue
            return quota, period
        return None

    def _system_cpu_count(self) -> Optional[int]:
        """CPUs this process may be scheduled on, else all installed CPUs."""
        if hasattr(os, "sched_getaffinity"):
            try:
                count = len(os.sched_getaffinity(0))
                if count > 0:
                    return count
            except OSError:
                pass
        count = os.cpu_count()
        return count if count and count > 0 else None
