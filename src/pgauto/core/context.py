"""Execution context for commands.

The ExecutionContext holds the current state and flags that affect
how commands are executed. It is passed to the launcher and output systems.
"""

from dataclasses import dataclass, field
from typing import Optional

from pgauto.core.config import EngineSettings
from pgauto.core.output import Console, console, Verbosity


@dataclass
class ExecutionContext:
    """Execution context passed to all commands.

    Attributes:
        dry_run: If True, show what would be executed without executing
        verbosity: Output verbosity level (0-3)
        no_color: If True, disable colored output
        stderr_only: If True, keep stdout free for machine-readable output
    """

    # Runtime flags
    dry_run: bool = False
    verbosity: int = 1
    no_color: bool = False
    stderr_only: bool = False

    # Internal state (initialized lazily)
    _settings: Optional[EngineSettings] = field(default=None, repr=False)
    _console: Console = field(default_factory=lambda: console, repr=False)

    def __post_init__(self) -> None:
        """Configure console after initialization."""
        self._console.configure(
            verbosity=self.verbosity,
            dry_run=self.dry_run,
            no_color=self.no_color,
            stderr_only=self.stderr_only,
        )

    @property
    def settings(self) -> EngineSettings:
        """Get engine settings (lazy loaded from the environment)."""
        if self._settings is None:
            self._settings = EngineSettings()
        return self._settings

    @property
    def console(self) -> Console:
        """Get console for output."""
        return self._console

    @property
    def is_verbose(self) -> bool:
        """Check if verbose output is enabled."""
        return self.verbosity >= Verbosity.VERBOSE


def create_context(
    dry_run: bool = False,
    verbose: int = 0,
    quiet: bool = False,
    no_color: bool = False,
    stderr_only: bool = False,
    settings: Optional[EngineSettings] = None,
) -> ExecutionContext:
    """Create an execution context from CLI options.

    Args:
        dry_run: Preview instead of executing
        verbose: Increase verbosity (can be repeated)
        quiet: Suppress non-essential output
        no_color: Disable colored output
        stderr_only: Send human-readable output to stderr
        settings: Pre-loaded settings (read from the environment if None)

    Returns:
        Configured execution context
    """
    if quiet:
        verbosity = Verbosity.QUIET
    else:
        verbosity = min(Verbosity.NORMAL + verbose, Verbosity.DEBUG)

    return ExecutionContext(
        dry_run=dry_run,
        verbosity=verbosity,
        no_color=no_color,
        stderr_only=stderr_only,
        _settings=settings,
    )
