"""Auto-configuration pipeline.

Runs probe -> classify -> compute -> emit once per startup. The skip flag
is checked before anything else so a skipped run touches no probe file.
"""

from dataclasses import dataclass, field
from typing import Optional

from pgauto.core.config import EngineSettings
from pgauto.core.output import Console, console as default_console
from pgauto.services.classify import WorkloadHints, classify
from pgauto.services.emitter import EmittedProfile, emit
from pgauto.services.probe import ResourceProber, ResourceReading
from pgauto.services.tuning import TuningProfile, compute


SKIPPED_MESSAGE = "tuning skipped"


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of one pipeline run.

    When ``skipped`` is True every other field is empty.
    """

    skipped: bool
    readings: list[ResourceReading] = field(default_factory=list)
    hints: Optional[WorkloadHints] = None
    profile: Optional[TuningProfile] = None
    emitted: EmittedProfile = field(default_factory=EmittedProfile)

    @property
    def argv(self) -> list[str]:
        """Server arguments to prepend to the operator's own."""
        return self.emitted.argv

    @property
    def env(self) -> dict[str, str]:
        """Environment fragment for the downstream entrypoint."""
        return self.emitted.env


def run_pipeline(
    settings: EngineSettings,
    prober: Optional[ResourceProber] = None,
    console: Console = default_console,
) -> PipelineResult:
    """Resolve resources and hints into an emitted profile.

    Args:
        settings: Engine settings read from the environment
        prober: Resource prober (built from settings if None)
        console: Console for diagnostics and warnings

    Returns:
        PipelineResult, never raising for bad operator input
    """
    if settings.skip_requested:
        console.diagnostic(SKIPPED_MESSAGE)
        return PipelineResult(skipped=True)

    if prober is None:
        prober = ResourceProber(root=settings.probe_root_path, console=console)

    readings = prober.probe_all(
        memory_override=settings.memory_override,
        cpu_override=settings.cpu_override,
    )
    hints = classify(settings.workload_type, settings.storage_type, console=console)
    profile = compute(
        readings,
        hints,
        preload_libraries=settings.preload_libraries,
        console=console,
    )
    emitted = emit(
        profile,
        disable_data_checksums=settings.checksums_disabled,
        initdb_args=settings.initdb_args,
    )

    for line in emitted.log_lines:
        console.diagnostic(line)

    return PipelineResult(
        skipped=False,
        readings=readings,
        hints=hints,
        profile=profile,
        emitted=emitted,
    )
