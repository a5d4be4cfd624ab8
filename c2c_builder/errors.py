"""Typed failures raised while generating and building container artifacts."""

from __future__ import annotations

from pathlib import Path


class C2CBuilderError(Exception):
    """Base exception for all c2c-builder errors."""


class InvalidImageName(C2CBuilderError):
    """Raised when an image reference does not follow the Docker naming grammar."""


# --- Image build (external builder process) --------------------------------


class ImageBuildError(C2CBuilderError):
    """Base class for failures of the external image builder."""


class BuilderNotFound(ImageBuildError):
    """Raised when the builder executable is not installed on the host."""


class BuildFailed(ImageBuildError):
    """Raised when the builder ran and exited with a non-zero code."""

    def __init__(
        self,
        message: str,
        returncode: int,
        stdout: str | None = None,
        stderr: str | None = None,
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class BuildInterrupted(ImageBuildError):
    """Raised when waiting for the builder failed for any other reason."""


# --- Artifact output --------------------------------------------------------


class ArtifactWriteFailed(C2CBuilderError):
    """Raised when writing the recipe or copying an artifact fails."""

    def __init__(self, target_dir: Path, cause: OSError) -> None:
        super().__init__(f"unable to write content to {target_dir}: {cause}")
        self.target_dir = target_dir
        self.cause = cause
