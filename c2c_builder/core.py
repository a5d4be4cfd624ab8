"""Artifact orchestration: Dockerfile → jars → extra files → (image build)."""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path

from c2c_builder.config import BuilderOptions, RecipeOptions
from c2c_builder.errors import ArtifactWriteFailed
from c2c_builder.logging import get_logger
from c2c_builder.package.docker import compose_dockerfile
from c2c_builder.package.image import build_image
from c2c_builder.types import BuildModel, ImageBuildResult, Packaging

DOCKERFILE_NAME = "Dockerfile"

log = get_logger(__name__)


@dataclass
class Artifact:
    kind: str  # "dockerfile" | "jar" | "copy"
    path: Path


@dataclass
class BuildContext:
    model: BuildModel
    outdir: Path
    recipe: RecipeOptions = field(default_factory=RecipeOptions)
    builder: BuilderOptions = field(default_factory=BuilderOptions)


@dataclass
class BuildOutcome:
    artifacts: list[Artifact]
    image: ImageBuildResult | None = None


def _copy_file_or_directory(source: Path, target: Path) -> None:
    # Relative sources are taken from the current working directory.
    source = source if source.is_absolute() else source.absolute()
    if source.is_dir():
        shutil.copytree(source, target, dirs_exist_ok=True)
    else:
        shutil.copy2(source, target)


def _stage_jars(model: BuildModel, outdir: Path) -> list[Artifact]:
    staged: list[Artifact] = []
    if model.packaging is Packaging.FAT:
        target = outdir / model.main_artifact_path.name
        _copy_file_or_directory(model.main_artifact_path, target)
        return [Artifact(kind="jar", path=target)]

    for jar in model.dependency_paths:
        target = outdir / jar.name
        _copy_file_or_directory(jar, target)
        staged.append(Artifact(kind="jar", path=target))
    if model.main_artifact_path is not None:
        target = outdir / model.jar_file_name
        _copy_file_or_directory(model.main_artifact_path, target)
        staged.append(Artifact(kind="jar", path=target))
    return staged


def build_pipeline(ctx: BuildContext) -> BuildOutcome:
    """Write the Docker build context for ``ctx.model`` and optionally build it.

    Steps run in order and stop at the first I/O error, which surfaces as
    ArtifactWriteFailed; files written up to that point are left in place.
    Image build errors propagate unchanged.
    """
    model, outdir = ctx.model, ctx.outdir
    artifacts: list[Artifact] = []
    try:
        outdir.mkdir(parents=True, exist_ok=True)

        dockerfile = outdir / DOCKERFILE_NAME
        # newline="" keeps the recipe's own line separators on every host.
        with open(dockerfile, "w", encoding="utf-8", newline="") as f:
            f.write(compose_dockerfile(model, ctx.recipe))
        artifacts.append(Artifact(kind="dockerfile", path=dockerfile))

        artifacts.extend(_stage_jars(model, outdir))

        for copy_file in model.copy_files:
            target = outdir / copy_file.source.name
            _copy_file_or_directory(copy_file.source, target)
            artifacts.append(Artifact(kind="copy", path=target))
    except OSError as exc:
        raise ArtifactWriteFailed(outdir, exc) from exc

    for artifact in artifacts:
        log.debug(f"wrote {artifact.kind}", extra={"artifact": artifact.path, "directory": outdir})

    image = None
    if model.build_image:
        log.info("building the docker image", extra={"image": model.image, "directory": outdir})
        image = build_image(outdir, model.image, ctx.builder)
    return BuildOutcome(artifacts=artifacts, image=image)
