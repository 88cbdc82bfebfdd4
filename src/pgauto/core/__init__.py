"""Core framework components for pgauto."""

from pgauto.core.exceptions import (
    PgAutoError,
    ConfigurationError,
    ValidationError,
    ExecutionError,
)

from pgauto.core.context import ExecutionContext, create_context
from pgauto.core.output import console, Console, Verbosity
from pgauto.core.config import EngineSettings, is_truthy
from pgauto.core.executor import ProcessLauncher

__all__ = [
    # Exceptions
    "PgAutoError",
    "ConfigurationError",
    "ValidationError",
    "ExecutionError",
    # Context
    "ExecutionContext",
    "create_context",
    # Output
    "console",
    "Console",
    "Verbosity",
    # Config
    "EngineSettings",
    "is_truthy",
    # Process hand-off
    "ProcessLauncher",
]
