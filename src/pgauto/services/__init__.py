"""Auto-configuration stages: probe, classify, compute, emit."""

from pgauto.services.classify import StorageType, WorkloadHints, WorkloadType, classify
from pgauto.services.emitter import EmittedProfile, emit, profile_to_dict, render_config
from pgauto.services.pipeline import PipelineResult, run_pipeline
from pgauto.services.probe import ResourceKind, ResourceProber, ResourceReading, ResourceSource
from pgauto.services.tuning import TuningProfile, TuningSetting, compute

__all__ = [
    # Probe
    "ResourceKind",
    "ResourceProber",
    "ResourceReading",
    "ResourceSource",
    # Classify
    "StorageType",
    "WorkloadHints",
    "WorkloadType",
    "classify",
    # Compute
    "TuningProfile",
    "TuningSetting",
    "compute",
    # Emit
    "EmittedProfile",
    "emit",
    "profile_to_dict",
    "render_config",
    # Pipeline
    "PipelineResult",
    "run_pipeline",
]
