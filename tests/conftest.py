"""Shared pytest fixtures."""

from pathlib import Path

import pytest


ENGINE_VARIABLES = (
    "POSTGRES_MEMORY",
    "POSTGRES_CPUS",
    "POSTGRES_SKIP_AUTOCONFIG",
    "POSTGRES_WORKLOAD_TYPE",
    "POSTGRES_STORAGE_TYPE",
    "POSTGRES_SHARED_PRELOAD_LIBRARIES",
    "DISABLE_DATA_CHECKSUMS",
    "POSTGRES_INITDB_ARGS",
    "PGAUTO_PROBE_ROOT",
    "PGAUTO_DOWNSTREAM_ENTRYPOINT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the host's environment out of settings loaded in tests."""
    for name in ENGINE_VARIABLES:
        monkeypatch.delenv(name, raising=False)


def meminfo(total_mb: int) -> str:
    """Render a /proc/meminfo body with the given MemTotal."""
    return (
        f"MemTotal:       {total_mb * 1024} kB\n"
        "MemFree:         1024000 kB\n"
        "MemAvailable:    2048000 kB\n"
    )


class ProbeTree:
    """Fake filesystem root holding cgroup and proc files."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def write(self, relative: str, content: str) -> Path:
        """Create a probe file (e.g. ``sys/fs/cgroup/memory.max``)."""
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    def meminfo(self, total_mb: int) -> Path:
        return self.write("proc/meminfo", meminfo(total_mb))

    def cgroup_memory(self, content: str) -> Path:
        return self.write("sys/fs/cgroup/memory.max", content)

    def cgroup_cpu(self, content: str) -> Path:
        return self.write("sys/fs/cgroup/cpu.max", content)


@pytest.fixture
def probe_tree(tmp_path: Path) -> ProbeTree:
    """Empty fake root for ResourceProber."""
    return ProbeTree(tmp_path)
