"""PostgreSQL tuning calculator.

Provides:
- A single clamp helper used for every bounded setting
- Tier tables for connections and work_mem caps
- Storage and workload lookup tables
- compute(): a pure (readings, hints) -> TuningProfile derivation

All memory values are whole MB and all arithmetic uses floor division, so
the same inputs always give the same profile.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from pgauto.core.config import DEFAULT_SHARED_PRELOAD_LIBRARIES
from pgauto.core.output import Console
from pgauto.services.classify import StorageType, WorkloadHints, WorkloadType
from pgauto.services.probe import (
    CPU_FLOOR,
    DEFAULT_CPU_COUNT,
    DEFAULT_MEMORY_MB,
    MEMORY_FLOOR_MB,
    ResourceKind,
    ResourceReading,
)


# =============================================================================
# Memory constants
# =============================================================================

SHARED_BUFFERS_PCT = 25
SHARED_BUFFERS_FLOOR_MB = 64
SHARED_BUFFERS_CAP_MB = 32768

# effective_cache_size may never be reported above this share of RAM
EFFECTIVE_CACHE_CEILING_PCT = 75
# Largest value the server accepts (INT_MAX 8kB pages)
EFFECTIVE_CACHE_CAP_MB = 16777215

# maintenance_work_mem as a share of shared_buffers
MAINTENANCE_WORK_MEM_PCT = {
    WorkloadType.MIXED: 25,
    WorkloadType.WEB: 25,
    WorkloadType.OLTP: 25,
    WorkloadType.ANALYTICAL: 50,
}
MAINTENANCE_WORK_MEM_FLOOR_MB = 32
MAINTENANCE_WORK_MEM_CAP_MB = 2048

# work_mem: pool left after buffers, per-connection overhead and the OS,
# split across four sort/hash operations per connection
CONNECTION_OVERHEAD_PER_CONN_MB = 10
OS_RESERVE_MB = 512
WORK_MEM_POOL_FLOOR_MB = 256
WORK_MEM_OPS_PER_CONNECTION = 4
WORK_MEM_FLOOR_MB = 1
WORK_MEM_CAP_MB = 32

# Larger caps for workloads running big sorts, highest threshold first
WORK_MEM_CAP_TIERS: tuple[tuple[int, int], ...] = (
    (32768, 256),
    (8192, 128),
    (2048, 64),
)
WORK_MEM_TIERED_WORKLOADS = frozenset({WorkloadType.MIXED, WorkloadType.ANALYTICAL})

WAL_BUFFERS_PCT = 3
WAL_BUFFERS_FLOOR_MB = 1
WAL_BUFFERS_CAP_MB = 16

# =============================================================================
# Connection tiers
# =============================================================================

# RAM below the first threshold is "small", below the second "medium"
CONNECTION_TIER_THRESHOLDS_MB = (1024, 4096)
CONNECTION_TIER_NAMES = ("small", "medium", "large")

CONNECTION_TIERS: dict[WorkloadType, tuple[int, int, int]] = {
    WorkloadType.MIXED: (80, 120, 200),
    WorkloadType.WEB: (100, 140, 200),
    WorkloadType.OLTP: (150, 210, 300),
    WorkloadType.ANALYTICAL: (50, 70, 100),
}

# =============================================================================
# CPU constants
# =============================================================================

MAX_WORKER_PROCESSES_FLOOR = 2
MAX_WORKER_PROCESSES_CAP = 64
MAX_PARALLEL_WORKERS_CAP = 64


# =============================================================================
# Storage and workload lookups
# =============================================================================

@dataclass(frozen=True)
class StorageProfile:
    """I/O cost hints for a storage medium."""

    random_page_cost: float
    effective_io_concurrency: int
    maintenance_io_concurrency: int


STORAGE_PROFILES: dict[StorageType, StorageProfile] = {
    StorageType.SSD: StorageProfile(1.1, 200, 20),
    StorageType.HDD: StorageProfile(4.0, 2, 10),
    StorageType.NETWORK_ATTACHED: StorageProfile(1.1, 300, 20),
}

# (min_wal_size, max_wal_size) in MB
WAL_SIZES_MB: dict[WorkloadType, tuple[int, int]] = {
    WorkloadType.MIXED: (1024, 4096),
    WorkloadType.WEB: (1024, 4096),
    WorkloadType.OLTP: (2048, 8192),
    WorkloadType.ANALYTICAL: (4096, 16384),
}

STATISTICS_TARGETS: dict[WorkloadType, int] = {
    WorkloadType.MIXED: 200,
    WorkloadType.WEB: 100,
    WorkloadType.OLTP: 100,
    WorkloadType.ANALYTICAL: 500,
}

CHECKPOINT_COMPLETION_TARGET = 0.9

# Parameters that require a PostgreSQL restart to change
RESTART_REQUIRED = frozenset({
    "shared_buffers",
    "max_connections",
    "max_worker_processes",
    "wal_buffers",
    "shared_preload_libraries",
})


def clamp(value: int, floor: int, ceiling: int) -> int:
    """Force value into [floor, ceiling].

    If floor exceeds ceiling the ceiling wins.
    """
    return min(max(value, floor), ceiling)


def connection_tier(memory_mb: int) -> int:
    """Index of the connection tier for a RAM size (lower bound inclusive)."""
    tier = 0
    for threshold in CONNECTION_TIER_THRESHOLDS_MB:
        if memory_mb >= threshold:
            tier += 1
    return tier


def effective_cache_ceiling(memory_mb: int) -> int:
    """Upper bound for effective_cache_size for this RAM size."""
    return min(memory_mb * EFFECTIVE_CACHE_CEILING_PCT // 100, EFFECTIVE_CACHE_CAP_MB)


def work_mem_cap(memory_mb: int, workload: WorkloadType) -> int:
    """Upper bound for work_mem for this RAM size and workload."""
    if workload in WORK_MEM_TIERED_WORKLOADS:
        for threshold, cap in WORK_MEM_CAP_TIERS:
            if memory_mb >= threshold:
                return cap
    return WORK_MEM_CAP_MB


def normalize_preload_libraries(raw: str) -> str:
    """Strip whitespace and empty entries from a comma-separated list."""
    return ",".join(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class TuningSetting:
    """A single emitted setting with its reasoning."""

    name: str
    value: str
    reason: str

    @property
    def requires_restart(self) -> bool:
        """Check if changing this setting needs a server restart."""
        return self.name in RESTART_REQUIRED

    def as_assignment(self) -> str:
        """Render as ``name=value``."""
        return f"{self.name}={self.value}"


@dataclass(frozen=True)
class TuningProfile:
    """Complete resolved tuning for one startup.

    Built once by compute() and never mutated.
    """

    # Resolved inputs
    memory_mb: int
    cpu_count: int
    workload: WorkloadType
    storage: StorageType

    # Memory
    shared_buffers_mb: int
    effective_cache_size_mb: int
    maintenance_work_mem_mb: int
    work_mem_mb: int
    wal_buffers_mb: int

    # Connections
    connection_tier: str
    max_connections: int

    # Parallelism
    max_worker_processes: int
    max_parallel_workers: int
    max_parallel_workers_per_gather: int

    # Disk I/O
    random_page_cost: float
    effective_io_concurrency: int
    maintenance_io_concurrency: int

    # WAL
    min_wal_size_mb: int
    max_wal_size_mb: int
    checkpoint_completion_target: float

    # Planner
    default_statistics_target: int
    jit: bool

    # Pass-through
    shared_preload_libraries: str = ""

    @property
    def settings(self) -> list[TuningSetting]:
        """All settings in emission order."""
        shared = self.shared_buffers_mb
        wl = self.workload.value
        params = [
            TuningSetting(
                "shared_buffers",
                f"{shared}MB",
                f"{SHARED_BUFFERS_PCT}% of {self.memory_mb}MB RAM "
                f"(bounds {SHARED_BUFFERS_FLOOR_MB}-{SHARED_BUFFERS_CAP_MB}MB)",
            ),
            TuningSetting(
                "effective_cache_size",
                f"{self.effective_cache_size_mb}MB",
                f"RAM minus shared_buffers, within {2 * shared}-"
                f"{effective_cache_ceiling(self.memory_mb)}MB",
            ),
            TuningSetting(
                "maintenance_work_mem",
                f"{self.maintenance_work_mem_mb}MB",
                f"{MAINTENANCE_WORK_MEM_PCT[self.workload]}% of shared_buffers "
                f"(cap {MAINTENANCE_WORK_MEM_CAP_MB}MB)",
            ),
            TuningSetting(
                "work_mem",
                f"{self.work_mem_mb}MB",
                f"Per-operation memory for sorts/hashes "
                f"(cap {work_mem_cap(self.memory_mb, self.workload)}MB)",
            ),
            TuningSetting(
                "wal_buffers",
                f"{self.wal_buffers_mb}MB",
                f"{WAL_BUFFERS_PCT}% of shared_buffers (cap {WAL_BUFFERS_CAP_MB}MB)",
            ),
            TuningSetting(
                "max_connections",
                str(self.max_connections),
                f"{self.connection_tier} tier for {wl.upper()} workload",
            ),
            TuningSetting(
                "max_worker_processes",
                str(self.max_worker_processes),
                f"2 per CPU core ({self.cpu_count})",
            ),
            TuningSetting(
                "max_parallel_workers",
                str(self.max_parallel_workers),
                f"Match CPU core count ({self.cpu_count})",
            ),
            TuningSetting(
                "max_parallel_workers_per_gather",
                str(self.max_parallel_workers_per_gather),
                "Half the CPU cores per query",
            ),
            TuningSetting(
                "random_page_cost",
                str(self.random_page_cost),
                f"Random access cost on {self.storage.value.upper()}",
            ),
            TuningSetting(
                "effective_io_concurrency",
                str(self.effective_io_concurrency),
                f"Concurrent I/O on {self.storage.value.upper()}",
            ),
            TuningSetting(
                "maintenance_io_concurrency",
                str(self.maintenance_io_concurrency),
                f"Maintenance I/O on {self.storage.value.upper()}",
            ),
            TuningSetting(
                "min_wal_size",
                f"{self.min_wal_size_mb}MB",
                "WAL file retention minimum",
            ),
            TuningSetting(
                "max_wal_size",
                f"{self.max_wal_size_mb}MB",
                f"WAL headroom for {wl.upper()} workload",
            ),
            TuningSetting(
                "checkpoint_completion_target",
                str(self.checkpoint_completion_target),
                "Spread checkpoint I/O over time",
            ),
            TuningSetting(
                "default_statistics_target",
                str(self.default_statistics_target),
                f"Statistics detail for {wl.upper()} queries",
            ),
            TuningSetting(
                "jit",
                "on" if self.jit else "off",
                "JIT compilation helps complex analytical queries" if self.jit
                else "JIT overhead not beneficial for short queries",
            ),
        ]
        if self.shared_preload_libraries:
            params.append(TuningSetting(
                "shared_preload_libraries",
                self.shared_preload_libraries,
                "Libraries loaded at server start",
            ))
        return params


def _warn(console: Optional[Console], message: str) -> None:
    if console is not None:
        console.warn(message)


def _resolve_reading(
    readings: Sequence[ResourceReading],
    kind: ResourceKind,
    default: int,
    floor: int,
    console: Optional[Console],
) -> int:
    """Pick the reading for a kind and sanitize it to its floor."""
    matching = [r for r in readings if r.kind == kind]
    if not matching:
        _warn(console, f"No {kind.label} reading supplied; assuming {default}")
        return default
    if len(matching) > 1:
        _warn(console, f"Multiple {kind.label} readings supplied; using the first")

    value = matching[0].value
    if value < floor:
        _warn(console, f"{kind.label} value {value} is below the minimum; using {floor}")
        return floor
    return value


def compute(
    readings: Sequence[ResourceReading],
    hints: WorkloadHints,
    preload_libraries: str = DEFAULT_SHARED_PRELOAD_LIBRARIES,
    console: Optional[Console] = None,
) -> TuningProfile:
    """Derive the tuning profile from resources and workload hints.

    Args:
        readings: One reading per resource kind
        hints: Classified workload hints
        preload_libraries: Comma-separated shared_preload_libraries value
        console: Where sanitization warnings go (silent if None)

    Returns:
        TuningProfile with every setting resolved and bounded
    """
    memory = _resolve_reading(
        readings, ResourceKind.MEMORY, DEFAULT_MEMORY_MB, MEMORY_FLOOR_MB, console
    )
    cpus = _resolve_reading(
        readings, ResourceKind.CPU, DEFAULT_CPU_COUNT, CPU_FLOOR, console
    )
    workload = hints.workload
    storage = STORAGE_PROFILES[hints.storage]

    # === Memory ===

    shared = clamp(
        memory * SHARED_BUFFERS_PCT // 100,
        SHARED_BUFFERS_FLOOR_MB,
        SHARED_BUFFERS_CAP_MB,
    )

    effective_cache = clamp(
        memory - shared,
        2 * shared,
        effective_cache_ceiling(memory),
    )

    maintenance = clamp(
        shared * MAINTENANCE_WORK_MEM_PCT[workload] // 100,
        MAINTENANCE_WORK_MEM_FLOOR_MB,
        MAINTENANCE_WORK_MEM_CAP_MB,
    )

    tier = connection_tier(memory)
    max_connections = CONNECTION_TIERS[workload][tier]

    pool = max(
        memory - shared - max_connections * CONNECTION_OVERHEAD_PER_CONN_MB - OS_RESERVE_MB,
        WORK_MEM_POOL_FLOOR_MB,
    )
    work_mem = clamp(
        pool // (max_connections * WORK_MEM_OPS_PER_CONNECTION),
        WORK_MEM_FLOOR_MB,
        work_mem_cap(memory, workload),
    )

    wal_buffers = shared * WAL_BUFFERS_PCT // 100
    # Values just under the cap round up to it
    if wal_buffers > WAL_BUFFERS_CAP_MB - 2:
        wal_buffers = WAL_BUFFERS_CAP_MB
    wal_buffers = clamp(wal_buffers, WAL_BUFFERS_FLOOR_MB, WAL_BUFFERS_CAP_MB)

    # === Parallelism ===

    max_worker_processes = clamp(cpus * 2, MAX_WORKER_PROCESSES_FLOOR, MAX_WORKER_PROCESSES_CAP)
    max_parallel_workers = clamp(cpus, 1, MAX_PARALLEL_WORKERS_CAP)
    per_gather = clamp(cpus // 2, 1, max_parallel_workers)

    min_wal, max_wal = WAL_SIZES_MB[workload]

    return TuningProfile(
        memory_mb=memory,
        cpu_count=cpus,
        workload=workload,
        storage=hints.storage,
        shared_buffers_mb=shared,
        effective_cache_size_mb=effective_cache,
        maintenance_work_mem_mb=maintenance,
        work_mem_mb=work_mem,
        wal_buffers_mb=wal_buffers,
        connection_tier=CONNECTION_TIER_NAMES[tier],
        max_connections=max_connections,
        max_worker_processes=max_worker_processes,
        max_parallel_workers=max_parallel_workers,
        max_parallel_workers_per_gather=per_gather,
        random_page_cost=storage.random_page_cost,
        effective_io_concurrency=storage.effective_io_concurrency,
        maintenance_io_concurrency=storage.maintenance_io_concurrency,
        min_wal_size_mb=min_wal,
        max_wal_size_mb=max_wal,
        checkpoint_completion_target=CHECKPOINT_COMPLETION_TARGET,
        default_statistics_target=STATISTICS_TARGETS[workload],
        jit=workload == WorkloadType.ANALYTICAL,
        shared_preload_libraries=normalize_preload_libraries(preload_libraries),
    )
