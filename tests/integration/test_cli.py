"""Integration tests for the pgauto CLI.

Runs the real pipeline against a fake probe root; the entrypoint is
always run with --dry-run (or with a missing downstream) so nothing is
exec'd.
"""

import pytest
import yaml

from typer.testing import CliRunner

from pgauto import __version__
from pgauto.cli import app
from pgauto.commands.show import OutputFormat, show_cmd
from pgauto.services.classify import WorkloadHints
from pgauto.services.probe import ResourceKind, ResourceReading, ResourceSource
from pgauto.services.tuning import compute


runner = CliRunner()

DOWNSTREAM = "/usr/local/bin/docker-entrypoint.sh"


@pytest.fixture
def engine_env(monkeypatch, probe_tree):
    """Point the engine at a fake 16GB host with no cgroup limits."""
    probe_tree.meminfo(16384)
    probe_tree.cgroup_cpu("400000 100000")
    monkeypatch.setenv("PGAUTO_PROBE_ROOT", str(probe_tree.root))
    monkeypatch.setenv("PGAUTO_DOWNSTREAM_ENTRYPOINT", DOWNSTREAM)
    return probe_tree


class TestVersion:
    """Tests for --version."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"pgauto version {__version__}" in result.output


class TestEntrypoint:
    """Tests for the entrypoint command."""

    def test_dry_run_shows_tuned_command(self, engine_env, monkeypatch):
        monkeypatch.setenv("POSTGRES_MEMORY", "4096")

        result = runner.invoke(app, ["entrypoint", "--dry-run"])

        assert result.exit_code == 0
        assert "[AUTO-CONFIG] RAM: 4096MB (manual-override)" in result.output
        assert "[AUTO-CONFIG] CPU: 4 cores (contained-limit)" in result.output
        assert f"Would: exec {DOWNSTREAM} postgres -c shared_buffers=1024MB" in result.output
        assert "effective_cache_size=3072MB" in result.output

    def test_dry_run_logs_every_final_setting(self, engine_env, monkeypatch):
        """Each resource and post-clamp setting gets an [AUTO-CONFIG] line."""
        monkeypatch.setenv("POSTGRES_MEMORY", "256GB")
        expected = compute(
            [
                ResourceReading(ResourceKind.MEMORY, 262144, ResourceSource.MANUAL_OVERRIDE),
                ResourceReading(ResourceKind.CPU, 4, ResourceSource.CONTAINED_LIMIT),
            ],
            WorkloadHints(),
        )

        result = runner.invoke(app, ["entrypoint", "--dry-run"])

        assert result.exit_code == 0
        assert "[AUTO-CONFIG] RAM: 262144MB (manual-override)" in result.output
        assert "[AUTO-CONFIG] CPU: 4 cores (contained-limit)" in result.output
        assert "[AUTO-CONFIG] effective_cache_size=196608MB" in result.output
        assert "229376MB" not in result.output
        for setting in expected.settings:
            assert f"[AUTO-CONFIG] {setting.as_assignment()}" in result.output

    def test_dry_run_caps_cache_on_multi_terabyte_host(self, engine_env, monkeypatch):
        monkeypatch.setenv("POSTGRES_MEMORY", "32TB")

        result = runner.invoke(app, ["entrypoint", "--dry-run"])

        assert result.exit_code == 0
        assert "[AUTO-CONFIG] RAM: 33554432MB (manual-override)" in result.output
        assert "[AUTO-CONFIG] effective_cache_size=16777215MB" in result.output
        assert "-c effective_cache_size=16777215MB" in result.output

    def test_detected_resources(self, engine_env):
        result = runner.invoke(app, ["entrypoint", "--dry-run", "postgres"])

        assert result.exit_code == 0
        assert "[AUTO-CONFIG] RAM: 16384MB (whole-system)" in result.output
        assert "-c shared_buffers=4096MB" in result.output

    def test_operator_flags_win(self, engine_env):
        """Operator flags should come after the computed ones."""
        result = runner.invoke(
            app, ["entrypoint", "--dry-run", "postgres", "-c", "max_connections=500"]
        )

        assert result.exit_code == 0
        assert "max_connections=200" in result.output
        assert result.output.index("max_connections=200") < result.output.index(
            "max_connections=500"
        )

    def test_leading_flags_go_to_server(self, engine_env):
        result = runner.invoke(app, ["entrypoint", "--dry-run", "-c", "work_mem=8MB"])

        assert result.exit_code == 0
        assert f"exec {DOWNSTREAM} postgres -c shared_buffers=" in result.output
        assert result.output.count("work_mem=8MB") == 1

    def test_other_commands_run_unchanged(self, engine_env):
        result = runner.invoke(app, ["entrypoint", "--dry-run", "bash"])

        assert result.exit_code == 0
        assert f"Would: exec {DOWNSTREAM} bash" in result.output
        assert "AUTO-CONFIG" not in result.output
        assert "shared_buffers" not in result.output

    def test_skip(self, engine_env, monkeypatch):
        monkeypatch.setenv("POSTGRES_SKIP_AUTOCONFIG", "true")

        result = runner.invoke(app, ["entrypoint", "--dry-run"])

        assert result.exit_code == 0
        assert "[AUTO-CONFIG] tuning skipped" in result.output
        assert "RAM:" not in result.output
        assert "shared_buffers" not in result.output
        assert f"Would: exec {DOWNSTREAM} postgres" in result.output

    def test_checksums_env(self, engine_env, monkeypatch):
        monkeypatch.setenv("DISABLE_DATA_CHECKSUMS", "1")

        result = runner.invoke(app, ["entrypoint", "--dry-run"])

        assert result.exit_code == 0
        assert "export POSTGRES_INITDB_ARGS=--no-data-checksums" in result.output

    def test_bad_overrides_still_start(self, engine_env, monkeypatch):
        """Malformed input should warn, never stop startup."""
        monkeypatch.setenv("POSTGRES_MEMORY", "abc")
        monkeypatch.setenv("POSTGRES_WORKLOAD_TYPE", "gaming")

        result = runner.invoke(app, ["entrypoint", "--dry-run"])

        assert result.exit_code == 0
        assert "[WARN]" in result.output
        assert "[AUTO-CONFIG] RAM: 16384MB (whole-system)" in result.output
        assert "Would: exec" in result.output

    def test_missing_downstream(self, engine_env, monkeypatch):
        monkeypatch.setenv("PGAUTO_DOWNSTREAM_ENTRYPOINT", "/nonexistent/entrypoint.sh")

        result = runner.invoke(app, ["entrypoint"])

        assert result.exit_code == 2
        assert "Downstream entrypoint not found" in result.output


class TestShow:
    """Tests for the show command."""

    def test_table(self, engine_env):
        result = runner.invoke(app, ["show"])

        assert result.exit_code == 0
        assert "Detected Resources" in result.output
        assert "Tuning Settings" in result.output
        assert "shared_buffers" in result.output
        assert "RAM: 16384MB (whole-system)" in result.output

    def test_cli_overrides_env(self, engine_env, monkeypatch):
        monkeypatch.setenv("POSTGRES_MEMORY", "2048")

        result = runner.invoke(app, ["show", "--format", "args", "--memory", "8GB"])

        assert result.exit_code == 0
        assert "shared_buffers=2048MB" in result.output

    def test_args(self, engine_env):
        result = runner.invoke(app, ["show", "--format", "args", "--cpus", "8"])

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert "-c" in lines
        assert "max_parallel_workers=8" in lines

    def test_conf(self, engine_env):
        result = runner.invoke(app, ["show", "-f", "conf", "--workload", "analytical"])

        assert result.exit_code == 0
        assert "# PostgreSQL Tuning Configuration" in result.output
        assert "jit = on" in result.output
        assert "default_statistics_target = 500" in result.output

    def test_yaml(self, engine_env):
        result = runner.invoke(app, ["show", "--format", "yaml", "--storage", "hdd"])

        assert result.exit_code == 0
        assert "random_page_cost: '4.0'" in result.output
        assert "storage: hdd" in result.output

    def test_skip(self, engine_env, monkeypatch):
        monkeypatch.setenv("POSTGRES_SKIP_AUTOCONFIG", "on")

        result = runner.invoke(app, ["show"])

        assert result.exit_code == 0
        assert "disabled" in result.output

    def test_machine_output_keeps_stdout_clean(self, engine_env, capsys):
        """Only data should reach stdout; diagnostics go to stderr."""
        show_cmd(output_format=OutputFormat.YAML, memory="4096", cpus="2")

        captured = capsys.readouterr()
        data = yaml.safe_load(captured.out)
        assert data["settings"]["shared_buffers"] == "1024MB"
        assert "[AUTO-CONFIG] RAM: 4096MB (manual-override)" in captured.err


class TestProbe:
    """Tests for the probe command."""

    def test_probe_table(self, engine_env):
        result = runner.invoke(app, ["probe"])

        assert result.exit_code == 0
        assert "Resources" in result.output
        assert "whole-system" in result.output
        assert "contained-limit" in result.output

    def test_probe_override(self, engine_env):
        result = runner.invoke(app, ["probe", "--memory", "2GB"])

        assert result.exit_code == 0
        assert "manual-override" in result.output
        assert "2048MB" in result.output
