"""Exceptions raised while scaffolding a gallery project.

Every error the pipeline raises on purpose derives from ``ScaffoldError`` so
the CLI can report it uniformly.  Plain file-system failures are left as the
built-in ``OSError`` and propagate unchanged.
"""

from __future__ import annotations

from pathlib import Path


class ScaffoldError(Exception):
    """Base class for scaffolding failures."""


class TemplateNotFound(ScaffoldError):
    """Raised when a variant name does not match any template tree."""

    def __init__(self, variant: str, available: list[str] | None = None) -> None:
        self.variant = variant
        self.available = available or []
        message = f"Unknown variant '{variant}'"
        if self.available:
            message += f" (available: {', '.join(self.available)})"
        super().__init__(message)


class ManifestParseError(ScaffoldError):
    """Raised when a manifest template is not a valid JSON object."""

    def __init__(self, path: str | Path, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Invalid manifest {self.path}: {reason}")


class RenderError(ScaffoldError):
    """Raised when a template file contains a malformed expression."""

    def __init__(self, path: str | Path, reason: str, line: int | None = None) -> None:
        self.path = Path(path)
        self.reason = reason
        self.line = line
        location = f"{self.path}:{line}" if line else str(self.path)
        super().__init__(f"Failed to render {location}: {reason}")


class SubprocessError(ScaffoldError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(self, message: str, command: str = "", returncode: int | None = None) -> None:
        self.command = command
        self.returncode = returncode
        super().__init__(message)


class ProjectExistsError(ScaffoldError):
    """Raised when the target project directory already holds files."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        super().__init__(
            f"Directory {self.path} already exists and is not empty "
            "(use --force to scaffold into it anyway)"
        )
