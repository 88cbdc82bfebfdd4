"""Configuration management using Pydantic.

Provides:
- Environment-driven engine settings (the container's only config surface)
- Lenient parsing helpers for operator-supplied strings
- YAML rendering for settings display

Every setting is kept as a raw string. A mistyped environment variable must
never stop the database from starting, so interpretation (and defaulting)
happens in the pipeline stages, where it can be logged.
"""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_PROBE_ROOT = Path("/")
DEFAULT_DOWNSTREAM_ENTRYPOINT = "/usr/local/bin/docker-entrypoint.sh"

# Minimal default preload set shipped with the image.
# Optional libraries requiring preload (enable via POSTGRES_SHARED_PRELOAD_LIBRARIES):
#   - pgsodium: needs a getkey script for column encryption
#   - timescaledb: heavy extension for time-series data
#   - pg_stat_monitor: alternative to pg_stat_statements (may conflict)
DEFAULT_SHARED_PRELOAD_LIBRARIES = "pg_stat_statements,auto_explain,pg_cron,pgaudit"

TRUTHY_VALUES = frozenset({"1", "true", "yes", "on", "y"})


def is_truthy(value: Optional[str]) -> bool:
    """Interpret an environment flag.

    Anything outside the recognised truthy spellings (including garbage)
    counts as false.
    """
    if value is None:
        return False
    return value.strip().lower() in TRUTHY_VALUES


class EngineSettings(BaseSettings):
    """Settings loaded from environment variables.

    Names match the variables documented for the PostgreSQL image so an
    existing compose file keeps working unchanged.
    """

    # Manual resource overrides
    memory_override: Optional[str] = Field(None, alias="POSTGRES_MEMORY")
    cpu_override: Optional[str] = Field(None, alias="POSTGRES_CPUS")

    # Bypass the whole pipeline and use the static configuration
    skip_autoconfig: Optional[str] = Field(None, alias="POSTGRES_SKIP_AUTOCONFIG")

    # Workload hints
    workload_type: Optional[str] = Field(None, alias="POSTGRES_WORKLOAD_TYPE")
    storage_type: Optional[str] = Field(None, alias="POSTGRES_STORAGE_TYPE")

    # Pass-through settings
    shared_preload_libraries: Optional[str] = Field(
        None, alias="POSTGRES_SHARED_PRELOAD_LIBRARIES"
    )
    disable_data_checksums: Optional[str] = Field(None, alias="DISABLE_DATA_CHECKSUMS")
    initdb_args: Optional[str] = Field(None, alias="POSTGRES_INITDB_ARGS")

    # Runtime wiring
    probe_root: Optional[str] = Field(None, alias="PGAUTO_PROBE_ROOT")
    downstream_entrypoint: Optional[str] = Field(None, alias="PGAUTO_DOWNSTREAM_ENTRYPOINT")

    model_config = SettingsConfigDict(
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("*", mode="before")
    @classmethod
    def coerce_to_string(cls, v: object) -> Optional[str]:
        if v is None:
            return None
        return str(v)

    @property
    def skip_requested(self) -> bool:
        """Check if the operator asked to bypass auto-configuration."""
        return is_truthy(self.skip_autoconfig)

    @property
    def checksums_disabled(self) -> bool:
        """Check if data checksums should be disabled at initdb time."""
        return is_truthy(self.disable_data_checksums)

    @property
    def preload_libraries(self) -> str:
        """Preload list, falling back to the image default when unset."""
        if self.shared_preload_libraries is None:
            return DEFAULT_SHARED_PRELOAD_LIBRARIES
        return self.shared_preload_libraries

    @property
    def probe_root_path(self) -> Path:
        """Filesystem root the prober reads cgroup and proc files from."""
        if self.probe_root and self.probe_root.strip():
            return Path(self.probe_root.strip())
        return DEFAULT_PROBE_ROOT

    @property
    def downstream(self) -> str:
        """Entrypoint that finally starts PostgreSQL."""
        if self.downstream_entrypoint and self.downstream_entrypoint.strip():
            return self.downstream_entrypoint.strip()
        return DEFAULT_DOWNSTREAM_ENTRYPOINT

    def with_overrides(self, **overrides: Optional[str]) -> "EngineSettings":
        """Return a copy with CLI-supplied values replacing environment ones.

        ``None`` values are ignored so unset CLI options keep the
        environment's value.
        """
        update = {k: str(v) for k, v in overrides.items() if v is not None}
        return self.model_copy(update=update)

    def to_yaml(self) -> str:
        """Convert the recognised environment to a YAML string."""
        data = self.model_dump(by_alias=True, exclude_none=True)
        return yaml.dump(data, default_flow_style=False, sort_keys=False)
