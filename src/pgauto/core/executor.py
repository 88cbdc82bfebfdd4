"""Process hand-off to the downstream entrypoint.

Provides:
- Replacement of the current process with the database entrypoint
- Environment merging for the emitted env fragment
- Dry-run mode support
"""

import os
import shlex
import shutil
from typing import Optional

from rich.markup import escape

from pgauto.core.context import ExecutionContext
from pgauto.core.exceptions import ConfigurationError, ExecutionError


class ProcessLauncher:
    """Replace the current process with the downstream entrypoint.

    Features:
    - Dry-run mode shows the final command line instead of executing
    - Environment fragment merged over the inherited environment
    """

    def __init__(self, ctx: ExecutionContext) -> None:
        """Initialize launcher with context.

        Args:
            ctx: Execution context with flags
        """
        self.ctx = ctx

    def build_env(self, env: Optional[dict[str, str]] = None) -> dict[str, str]:
        """Merge an env fragment over the current environment."""
        run_env = os.environ.copy()
        if env:
            run_env.update(env)
        return run_env

    def exec(self, command: list[str], *, env: Optional[dict[str, str]] = None) -> None:
        """Exec the command, never returning on success.

        Args:
            command: Command as list of strings
            env: Additional environment variables

        Raises:
            ConfigurationError: If the program is not found
            ExecutionError: If the command cannot be executed
        """
        cmd_display = shlex.join(command)
        self.ctx.console.debug(f"Executing: {escape(cmd_display)}")

        if self.ctx.dry_run:
            self.ctx.console.dry_run_msg(f"exec {cmd_display}")
            for key, value in (env or {}).items():
                self.ctx.console.dry_run_msg(f"export {key}={shlex.quote(value)}")
            return

        if shutil.which(command[0]) is None:
            raise ConfigurationError(
                f"Downstream entrypoint not found: {command[0]}",
                hint="Set PGAUTO_DOWNSTREAM_ENTRYPOINT to the image's original entrypoint",
            )

        try:
            os.execvpe(command[0], command, self.build_env(env))
        except OSError as e:
            raise ExecutionError(
                f"Cannot start {command[0]}",
                command=cmd_display,
                stderr=e.strerror,
                hint="Check PGAUTO_DOWNSTREAM_ENTRYPOINT points at an executable",
            ) from e
