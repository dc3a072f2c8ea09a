"""
Custom exception hierarchy for pdm2dsf.
"""

from __future__ import annotations

from pathlib import Path


class Pdm2DsfError(Exception):
    """Base class for pdm2dsf exceptions."""


class ConfigError(Pdm2DsfError, ValueError):
    """Raised when a configuration value is out of range."""


class DsfIOError(Pdm2DsfError):
    """Base class for file-system failures; keeps the path and the OS error."""

    action = "access"

    def __init__(self, path: str | Path, cause: OSError) -> None:
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Failed to {self.action} '{self.path}': {cause}")


class InputReadError(DsfIOError):
    """Raised when the PDM source file cannot be read."""

    action = "read"


class OutputCreateError(DsfIOError):
    """Raised when the DSF destination cannot be created."""

    action = "create"


class DsfWriteError(DsfIOError):
    """Raised when writing or flushing the DSF file fails."""

    action = "write"
