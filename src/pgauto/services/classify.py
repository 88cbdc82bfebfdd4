"""Workload classification.

Maps the operator's workload and storage hints to the enums the tuning
calculator keys its tables on. Classification is total: any string,
including empty or garbage, resolves to a value.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from rich.markup import escape

from pgauto.core.output import Console


class WorkloadType(Enum):
    """Declared database workload."""

    MIXED = "mixed"
    WEB = "web"
    OLTP = "oltp"
    ANALYTICAL = "analytical"

    @property
    def description(self) -> str:
        """Human-readable description of the workload."""
        descriptions = {
            "mixed": "Balanced workload (general purpose)",
            "web": "Many short-lived requests (web applications, APIs)",
            "oltp": "High concurrency, fast transactions",
            "analytical": "Complex queries, large datasets (analytics/reporting)",
        }
        return descriptions[self.value]


class StorageType(Enum):
    """Storage medium holding the data directory."""

    SSD = "ssd"
    HDD = "hdd"
    NETWORK_ATTACHED = "network-attached"


DEFAULT_WORKLOAD = WorkloadType.MIXED
DEFAULT_STORAGE = StorageType.SSD

# Accepted spellings, including the names older images documented
WORKLOAD_ALIASES: dict[str, WorkloadType] = {
    "mixed": WorkloadType.MIXED,
    "web": WorkloadType.WEB,
    "oltp": WorkloadType.OLTP,
    "analytical": WorkloadType.ANALYTICAL,
    "analytics": WorkloadType.ANALYTICAL,
    "olap": WorkloadType.ANALYTICAL,
    "dw": WorkloadType.ANALYTICAL,
    "warehouse": WorkloadType.ANALYTICAL,
}

STORAGE_ALIASES: dict[str, StorageType] = {
    "ssd": StorageType.SSD,
    "nvme": StorageType.SSD,
    "hdd": StorageType.HDD,
    "spinning": StorageType.HDD,
    "rotational": StorageType.HDD,
    "network-attached": StorageType.NETWORK_ATTACHED,
    "network_attached": StorageType.NETWORK_ATTACHED,
    "network": StorageType.NETWORK_ATTACHED,
    "san": StorageType.NETWORK_ATTACHED,
    "nas": StorageType.NETWORK_ATTACHED,
    "ebs": StorageType.NETWORK_ATTACHED,
}


@dataclass(frozen=True)
class WorkloadHints:
    """Operator-declared intent, resolved to known values."""

    workload: WorkloadType = DEFAULT_WORKLOAD
    storage: StorageType = DEFAULT_STORAGE
    notes: tuple[str, ...] = ()


def _resolve(
    raw: Optional[str],
    aliases: dict[str, Enum],
    default: Enum,
    what: str,
    notes: list[str],
) -> Enum:
    if raw is None or not raw.strip():
        return default
    resolved = aliases.get(raw.strip().lower())
    if resolved is None:
        notes.append(f"Unrecognized {what} {raw.strip()!r}; using {default.value}")
        return default
    return resolved


def classify(
    raw_workload: Optional[str] = None,
    raw_storage: Optional[str] = None,
    console: Optional[Console] = None,
) -> WorkloadHints:
    """Resolve raw hint strings to WorkloadHints.

    Unset values take the defaults silently. Unrecognized values take the
    defaults too and are reported as informational notes; this is a
    supported path, not a degraded one.
    """
    notes: list[str] = []
    workload = _resolve(raw_workload, WORKLOAD_ALIASES, DEFAULT_WORKLOAD, "workload type", notes)
    storage = _resolve(raw_storage, STORAGE_ALIASES, DEFAULT_STORAGE, "storage type", notes)

    if console is not None:
        for note in notes:
            console.info(escape(note))

    return WorkloadHints(workload=workload, storage=storage, notes=tuple(notes))
