"""Image build through the external docker CLI.

The builder runs synchronously. Its output streams straight to the caller's
console unless capture is requested; process failures are mapped onto the
ImageBuildError family.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from c2c_builder.config import BuilderOptions
from c2c_builder.errors import BuilderNotFound, BuildFailed, BuildInterrupted
from c2c_builder.logging import get_logger
from c2c_builder.naming import validate_image_name
from c2c_builder.types import ImageBuildResult

log = get_logger(__name__)

# Host specific phrasings of "executable not found".
_NOT_FOUND_MESSAGES = (
    "No such file or directory",
    "The system cannot find the file specified",
)


def build_command(directory: Path, image: str, executable: str = "docker") -> list[str]:
    return [executable, "build", "--no-cache", "--force-rm", "-t", image, str(directory)]


def _is_not_found(exc: OSError) -> bool:
    if isinstance(exc, FileNotFoundError):
        return True
    text = str(exc)
    return any(msg in text for msg in _NOT_FOUND_MESSAGES)


def build_image(
    directory: Path, image: str, options: BuilderOptions | None = None
) -> ImageBuildResult:
    """Build *image* from the Dockerfile in *directory*.

    Raises InvalidImageName before anything is spawned, BuilderNotFound when
    the executable is missing, BuildFailed on a non-zero exit and
    BuildInterrupted for any other failure while waiting (timeouts included).
    """
    options = options or BuilderOptions()
    validate_image_name(image)

    cmd = build_command(directory, image, options.executable)
    log.debug(f"running {' '.join(cmd)}", extra={"image": image, "directory": directory})

    try:
        proc = subprocess.run(
            cmd,
            capture_output=options.capture_output,
            text=options.capture_output or None,
            timeout=options.timeout,
            check=False,
        )
    except OSError as exc:
        if _is_not_found(exc):
            raise BuilderNotFound(f"command not found: {options.executable}") from exc
        raise BuildInterrupted(str(exc)) from exc
    except (subprocess.SubprocessError, KeyboardInterrupt) as exc:
        raise BuildInterrupted(str(exc) or type(exc).__name__) from exc

    if proc.returncode != 0:
        raise BuildFailed(
            f"{options.executable} build failed. refer to the build log",
            returncode=proc.returncode,
            stdout=proc.stdout,
            stderr=proc.stderr,
        )
    return ImageBuildResult(
        image=image, returncode=proc.returncode, stdout=proc.stdout, stderr=proc.stderr
    )
