"""Custom exceptions for pgauto.

All exceptions provide:
- Clear error messages
- Optional hints for resolution
- Optional details for debugging
- Exit codes for proper shell integration

The tuning pipeline itself absorbs every anomaly it meets; these
exceptions only surface at the edges (invalid setting names, a downstream
process that cannot be started).
"""

from typing import Optional


class PgAutoError(Exception):
    """Base exception for all pgauto errors.

    Attributes:
        message: Human-readable error description
        hint: Suggested action to resolve the error
        details: Additional context for debugging
        exit_code: Shell exit code (1-127)
    """

    exit_code: int = 1

    def __init__(
        self,
        message: str,
        *,
        hint: Optional[str] = None,
        details: Optional[list[str]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or []

    def __str__(self) -> str:
        return self.message


class ConfigurationError(PgAutoError):
    """Configuration or settings errors.

    Raised when:
    - The downstream entrypoint is not an executable on PATH
    """
    exit_code = 2


class ValidationError(PgAutoError):
    """Input validation errors.

    Raised when:
    - A generated setting name is not a valid PostgreSQL GUC name
    """
    exit_code = 3


class ExecutionError(PgAutoError):
    """Process execution failures.

    Raised when:
    - The downstream entrypoint cannot be executed
    """
    exit_code = 5

    def __init__(
        self,
        message: str,
        *,
        command: Optional[str] = None,
        return_code: Optional[int] = None,
        stderr: Optional[str] = None,
        hint: Optional[str] = None,
        details: Optional[list[str]] = None,
    ) -> None:
        if not details:
            details = []
        if return_code is not None:
            details.append(f"Exit code: {return_code}")
        if stderr:
            details.append(f"Error output: {stderr}")
        super().__init__(message, hint=hint, details=details)
        self.command = command
        self.return_code = return_code
        self.stderr = stderr
