"""Unit tests for the tuning calculator."""

import pytest
from unittest.mock import Mock

from pgauto.services.classify import StorageType, WorkloadHints, WorkloadType
from pgauto.services.probe import ResourceKind, ResourceReading, ResourceSource
from pgauto.services.tuning import (
    EFFECTIVE_CACHE_CAP_MB,
    SHARED_BUFFERS_CAP_MB,
    TuningSetting,
    clamp,
    compute,
    connection_tier,
    normalize_preload_libraries,
    work_mem_cap,
)


def readings(memory_mb: int, cpus: int = 2) -> list[ResourceReading]:
    return [
        ResourceReading(ResourceKind.MEMORY, memory_mb, ResourceSource.MANUAL_OVERRIDE),
        ResourceReading(ResourceKind.CPU, cpus, ResourceSource.MANUAL_OVERRIDE),
    ]


def hints(
    workload: WorkloadType = WorkloadType.MIXED,
    storage: StorageType = StorageType.SSD,
) -> WorkloadHints:
    return WorkloadHints(workload=workload, storage=storage)


class TestClamp:
    """Tests for the clamp helper."""

    def test_within_bounds(self):
        assert clamp(50, 10, 100) == 50

    def test_below_floor(self):
        assert clamp(5, 10, 100) == 10

    def test_above_ceiling(self):
        assert clamp(500, 10, 100) == 100

    def test_ceiling_wins_when_bounds_cross(self):
        """If floor > ceiling the ceiling should win."""
        assert clamp(50, 200, 100) == 100


class TestTiers:
    """Tests for tier selection."""

    @pytest.mark.parametrize("memory_mb,tier", [
        (512, 0),
        (1023, 0),
        (1024, 1),
        (4095, 1),
        (4096, 2),
        (262144, 2),
    ])
    def test_connection_tier(self, memory_mb, tier):
        assert connection_tier(memory_mb) == tier

    def test_work_mem_cap_grows_for_mixed(self):
        assert work_mem_cap(1024, WorkloadType.MIXED) == 32
        assert work_mem_cap(2048, WorkloadType.MIXED) == 64
        assert work_mem_cap(8192, WorkloadType.ANALYTICAL) == 128
        assert work_mem_cap(32768, WorkloadType.ANALYTICAL) == 256

    def test_work_mem_cap_fixed_for_oltp(self):
        assert work_mem_cap(65536, WorkloadType.OLTP) == 32
        assert work_mem_cap(65536, WorkloadType.WEB) == 32


class TestComputeScenarios:
    """Worked examples of full profile computation."""

    def test_4gb_override(self):
        """4096MB should give 1024MB shared_buffers and 3072MB cache."""
        profile = compute(readings(4096, 2), hints())

        assert profile.shared_buffers_mb == 1024
        assert profile.effective_cache_size_mb == 3072
        assert profile.maintenance_work_mem_mb == 256
        assert profile.max_connections == 200
        assert profile.connection_tier == "large"
        assert profile.work_mem_mb == 1
        assert profile.wal_buffers_mb == 16

    def test_64gb_host(self):
        """Whole-system 65536MB should stay under the shared_buffers cap."""
        profile = compute(readings(65536, 16), hints())

        assert profile.shared_buffers_mb == 16384
        assert profile.effective_cache_size_mb == 49152
        assert profile.maintenance_work_mem_mb == 2048
        assert profile.work_mem_mb == 58

    def test_512mb_container(self):
        """The smallest supported size should use the smallest tier."""
        profile = compute(readings(512, 1), hints())

        assert profile.shared_buffers_mb == 128
        assert profile.effective_cache_size_mb == 384
        assert profile.maintenance_work_mem_mb == 32
        assert profile.connection_tier == "small"
        assert profile.max_connections == 80
        assert profile.work_mem_mb == 1
        assert profile.wal_buffers_mb == 3

    def test_analytical(self):
        profile = compute(readings(16384, 8), hints(WorkloadType.ANALYTICAL))

        assert profile.shared_buffers_mb == 4096
        assert profile.maintenance_work_mem_mb == 2048
        assert profile.max_connections == 100
        assert profile.work_mem_mb == 26
        assert profile.min_wal_size_mb == 4096
        assert profile.max_wal_size_mb == 16384
        assert profile.default_statistics_target == 500
        assert profile.jit is True

    def test_oltp_medium_tier(self):
        profile = compute(readings(2048, 4), hints(WorkloadType.OLTP))

        assert profile.connection_tier == "medium"
        assert profile.max_connections == 210
        assert profile.min_wal_size_mb == 2048
        assert profile.default_statistics_target == 100
        assert profile.jit is False

    def test_web_tiers(self):
        assert compute(readings(768), hints(WorkloadType.WEB)).max_connections == 100
        assert compute(readings(1024), hints(WorkloadType.WEB)).max_connections == 140
        assert compute(readings(8192), hints(WorkloadType.WEB)).max_connections == 200


class TestComputeCpu:
    """Tests for parallelism settings."""

    def test_single_core(self):
        profile = compute(readings(4096, 1), hints())

        assert profile.max_worker_processes == 2
        assert profile.max_parallel_workers == 1
        assert profile.max_parallel_workers_per_gather == 1

    def test_eight_cores(self):
        profile = compute(readings(4096, 8), hints())

        assert profile.max_worker_processes == 16
        assert profile.max_parallel_workers == 8
        assert profile.max_parallel_workers_per_gather == 4

    def test_many_cores_are_capped(self):
        profile = compute(readings(4096, 100), hints())

        assert profile.max_worker_processes == 64
        assert profile.max_parallel_workers == 64
        assert profile.max_parallel_workers_per_gather == 50


class TestComputeStorage:
    """Tests for storage-dependent settings."""

    @pytest.mark.parametrize("storage,cost,io,maintenance_io", [
        (StorageType.SSD, 1.1, 200, 20),
        (StorageType.HDD, 4.0, 2, 10),
        (StorageType.NETWORK_ATTACHED, 1.1, 300, 20),
    ])
    def test_storage_profiles(self, storage, cost, io, maintenance_io):
        profile = compute(readings(4096), hints(storage=storage))

        assert profile.random_page_cost == cost
        assert profile.effective_io_concurrency == io
        assert profile.maintenance_io_concurrency == maintenance_io


class TestComputeProperties:
    """Properties that must hold for every input."""

    def test_deterministic(self):
        """Identical inputs should give identical profiles."""
        first = compute(readings(6000, 3), hints(WorkloadType.WEB, StorageType.HDD))
        second = compute(readings(6000, 3), hints(WorkloadType.WEB, StorageType.HDD))

        assert first == second
        assert first.settings == second.settings

    def test_shared_buffers_monotonic(self):
        """More memory should never mean fewer shared_buffers."""
        previous = 0
        for memory_mb in range(512, 300000, 1536):
            shared = compute(readings(memory_mb), hints()).shared_buffers_mb
            assert shared >= previous
            previous = shared

    @pytest.mark.parametrize("workload", list(WorkloadType))
    @pytest.mark.parametrize("memory_mb", [512, 777, 1024, 3000, 4096, 16384, 131072, 1048576])
    def test_ceilings_hold(self, workload, memory_mb):
        """No setting should exceed its cap or the memory it was sized for."""
        profile = compute(readings(memory_mb, 4), hints(workload))

        assert profile.shared_buffers_mb <= SHARED_BUFFERS_CAP_MB
        assert profile.shared_buffers_mb < memory_mb
        assert profile.effective_cache_size_mb <= memory_mb * 75 // 100
        assert profile.effective_cache_size_mb <= EFFECTIVE_CACHE_CAP_MB
        assert 32 <= profile.maintenance_work_mem_mb <= 2048
        assert 1 <= profile.work_mem_mb <= 256
        assert 1 <= profile.wal_buffers_mb <= 16

    def test_huge_host_hits_cap(self):
        profile = compute(readings(262144), hints())

        assert profile.shared_buffers_mb == SHARED_BUFFERS_CAP_MB
        assert profile.effective_cache_size_mb == 196608

    def test_multi_terabyte_host_hits_cache_cap(self):
        """effective_cache_size stops at the largest value the server accepts."""
        profile = compute(readings(33554432), hints())

        assert profile.effective_cache_size_mb == EFFECTIVE_CACHE_CAP_MB == 16777215
        settings = {s.name: s.value for s in profile.settings}
        assert settings["effective_cache_size"] == "16777215MB"



class TestComputeSanitization:
    """Tests for out-of-range and missing readings."""

    def test_low_memory_is_raised(self):
        console = Mock()

        profile = compute(readings(100, 1), hints(), console=console)

        assert profile.memory_mb == 512
        console.warn.assert_called_once()

    def test_zero_cpus_is_raised(self):
        profile = compute(readings(4096, 0), hints())
        assert profile.cpu_count == 1

    def test_missing_readings_use_defaults(self):
        """compute() should be total even with no readings."""
        console = Mock()

        profile = compute([], hints(), console=console)

        assert profile.memory_mb == 1024
        assert profile.cpu_count == 1
        assert console.warn.call_count == 2

    def test_duplicate_readings_use_first(self):
        console = Mock()
        duplicated = readings(2048) + readings(8192)

        profile = compute(duplicated, hints(), console=console)

        assert profile.memory_mb == 2048
        assert console.warn.call_count == 2


class TestSettings:
    """Tests for the emitted settings list."""

    def test_settings_order_and_values(self):
        profile = compute(readings(4096, 2), hints())
        settings = {s.name: s.value for s in profile.settings}

        assert profile.settings[0].name == "shared_buffers"
        assert settings["shared_buffers"] == "1024MB"
        assert settings["effective_cache_size"] == "3072MB"
        assert settings["random_page_cost"] == "1.1"
        assert settings["checkpoint_completion_target"] == "0.9"
        assert settings["jit"] == "off"
        assert settings["shared_preload_libraries"] == (
            "pg_stat_statements,auto_explain,pg_cron,pgaudit"
        )

    def test_empty_preload_list_is_omitted(self):
        profile = compute(readings(4096), hints(), preload_libraries="")
        names = [s.name for s in profile.settings]

        assert "shared_preload_libraries" not in names

    def test_preload_list_is_normalized(self):
        assert normalize_preload_libraries(" timescaledb , ,pg_cron ") == "timescaledb,pg_cron"

    def test_requires_restart(self):
        assert TuningSetting("shared_buffers", "1GB", "").requires_restart is True
        assert TuningSetting("work_mem", "4MB", "").requires_restart is False

    def test_reasons_are_present(self):
        profile = compute(readings(4096), hints())
        assert all(s.reason for s in profile.settings)
