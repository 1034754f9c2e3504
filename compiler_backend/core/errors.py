"""Exception taxonomy for the compile service."""
from __future__ import annotations


class CompileServiceError(Exception):
    """Base class for all service level failures."""


class ValidationError(CompileServiceError):
    """Raised when a compile request is malformed or targets an unknown board."""


class BoardRegistryError(CompileServiceError):
    """Raised when the board table cannot be loaded."""


class WorkspaceError(CompileServiceError):
    """Raised when a job workspace cannot be prepared."""


class WorkspaceCreationError(WorkspaceError):
    """The filesystem rejected creation of the job directory tree."""


class WorkspaceWriteError(WorkspaceError):
    """The sketch source could not be written into the workspace."""


class ToolchainError(CompileServiceError):
    """Base class for failures reported by the toolchain invoker."""


class ToolchainNotFoundError(ToolchainError):
    """The toolchain binary is missing at its configured path."""


class ToolchainExecutionError(ToolchainError):
    """The toolchain ran but did not exit cleanly."""

    def __init__(self, message: str, *, combined_output: str = "", returncode: int | None = None) -> None:
        super().__init__(message)
        self.combined_output = combined_output
        self.returncode = returncode


class ToolchainOutputLimitError(ToolchainExecutionError):
    """The toolchain produced more output than the capture ceiling allows."""


class ToolchainTimeoutError(ToolchainError):
    """The toolchain did not exit within its wall-clock budget."""

    def __init__(self, timeout: float, *, combined_output: str = "") -> None:
        super().__init__(f"Compilation timed out after {timeout:g} seconds")
        self.timeout = timeout
        self.combined_output = combined_output
