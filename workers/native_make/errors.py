"""
Error taxonomy for a build invocation.

Every error is terminal: nothing is recovered locally, and the CLI turns
the first one raised into the process exit status.
"""
from pathlib import Path
from typing import Optional, Union

FALLBACK_EXIT_CODE = 3


class NativeMakeError(Exception):
    """Base class; carries the exit status the build should end with."""

    def __init__(self, message: str, exit_code: int = FALLBACK_EXIT_CODE):
        super().__init__(message)
        self.exit_code = exit_code


class ConfigurationError(NativeMakeError):
    """Invalid request, detected before any subprocess is spawned."""


class ExternalToolError(NativeMakeError):
    """pkg-config, compiler or linker failed to run or exited non-zero."""

    def __init__(
        self,
        tool: str,
        subject: str,
        exit_code: Optional[int] = None,
        detail: str = "",
        fallback: int = FALLBACK_EXIT_CODE,
    ):
        self.tool = tool
        self.subject = subject
        # Signals show up as negative return codes
        if exit_code is None or exit_code <= 0:
            exit_code = fallback
        message = f"{tool} failed for {subject} (exit {exit_code})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, exit_code)


class FilesystemError(NativeMakeError):
    """A declared source file cannot be stat'ed."""

    def __init__(self, path: Union[str, Path], reason: str = ""):
        self.path = Path(path)
        message = f"cannot stat {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
