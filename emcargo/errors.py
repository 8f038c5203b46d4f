"""Exception hierarchy shared by the emcargo build engine."""

from __future__ import annotations

from typing import List, Optional


class EmcargoError(RuntimeError):
    """Base class for every failure raised by emcargo."""


class ClassificationError(EmcargoError):
    """Raised when a rustc invocation is missing a flag the engine relies on."""


class ConfigError(EmcargoError):
    """Raised when the engine configuration cannot be used."""


class UnsupportedEmitError(ConfigError):
    """Raised for a browser emit kind without a known output extension."""


class IRTransformError(EmcargoError):
    """Raised when the IR module cannot be read, repaired or replaced."""


class ProcessError(EmcargoError):
    """Raised when a child process cannot complete successfully."""

    def __init__(self, message: str, args: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.argv: List[str] = list(args or [])


class SpawnError(ProcessError):
    """The child process could not be started."""


class CommunicationError(ProcessError):
    """Reading from or writing to the child process failed."""


class ExitStatusError(ProcessError):
    """The child process exited with a non-zero status."""

    def __init__(
        self,
        message: str,
        args: Optional[List[str]] = None,
        *,
        returncode: int,
        stdout: Optional[bytes] = None,
        stderr: Optional[bytes] = None,
    ) -> None:
        super().__init__(message, args)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


__all__ = [
    "EmcargoError",
    "ClassificationError",
    "ConfigError",
    "UnsupportedEmitError",
    "IRTransformError",
    "ProcessError",
    "SpawnError",
    "CommunicationError",
    "ExitStatusError",
]
