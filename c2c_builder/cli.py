"""c2c-builder CLI — Dockerfile generation and local image builds.

Commands:
- dockerfile: print the recipe for a model document
- build: write the Docker build context (and build the image unless disabled)
- image-name: print a validated, canonical image reference
- validate: schema-check a model document

``--windows`` and ``--ci-build`` also read ENABLE_WINDOWS_BUILD and CI_BUILD.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from click.core import ParameterSource
from jsonschema import ValidationError as SchemaValidationError
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from c2c_builder.config import CI_BUILD_ENV, WINDOWS_BUILD_ENV, BuilderOptions, RecipeOptions
from c2c_builder.core import BuildContext, build_pipeline
from c2c_builder.errors import BuildFailed, C2CBuilderError
from c2c_builder.naming import resolve_image_name, validate_image_name
from c2c_builder.package.docker import compose_dockerfile
from c2c_builder.types import BuildModel, TargetPlatform
from c2c_builder.validator import load_build_model, validate_build_model

app = typer.Typer(add_completion=False, help="Generate Docker artifacts for Ballerina builds")
console = Console()

WindowsOpt = typer.Option(
    False, "--windows", envvar=WINDOWS_BUILD_ENV, help="Render a Windows container recipe"
)
CiBuildOpt = typer.Option(
    False, "--ci-build", envvar=CI_BUILD_ENV, help="Insert the CI layer-cache workaround"
)


def _fail(message: str) -> None:
    rprint(f"[red]error:[/red] {message}")
    raise typer.Exit(code=1)


def _load(model: str) -> BuildModel:
    try:
        return load_build_model(Path(model))
    except FileNotFoundError:
        _fail(f"model document not found: {model}")
    except json.JSONDecodeError as exc:
        _fail(f"invalid model document: {exc}")
    except SchemaValidationError as exc:
        _fail(f"invalid model document: {exc.message}")
    except ValidationError as exc:
        _fail(f"invalid model document: {exc}")


def _recipe_options(windows: bool, ci_build: bool) -> RecipeOptions:
    platform = TargetPlatform.WINDOWS if windows else TargetPlatform.POSIX
    return RecipeOptions(platform=platform, ci_cache_workaround=ci_build)


@app.command()
def dockerfile(
    model: str = typer.Argument(..., help="Path to the build model JSON document"),
    windows: bool = WindowsOpt,
    ci_build: bool = CiBuildOpt,
) -> None:
    build_model = _load(model)
    typer.echo(compose_dockerfile(build_model, _recipe_options(windows, ci_build)), nl=False)


@app.command()
def build(
    ctx: typer.Context,
    model: str = typer.Argument(..., help="Path to the build model JSON document"),
    out: str = typer.Option("./docker", help="Output directory for the build context"),
    windows: bool = WindowsOpt,
    ci_build: bool = CiBuildOpt,
    build_image: bool = typer.Option(
        True, "--build-image/--no-build-image", help="Override the model's build_image flag"
    ),
    capture: bool = typer.Option(False, "--capture", help="Capture builder output instead of streaming"),
    timeout: float | None = typer.Option(None, "--timeout", help="Builder timeout in seconds"),
    docker: str = typer.Option("docker", "--docker", help="Builder executable"),
) -> None:
    build_model = _load(model)
    if ctx.get_parameter_source("build_image") is not ParameterSource.DEFAULT:
        build_model = build_model.model_copy(update={"build_image": build_image})

    try:
        builder = BuilderOptions(executable=docker, capture_output=capture, timeout=timeout)
    except ValidationError as exc:
        _fail(f"invalid builder options: {exc.errors()[0]['msg']}")

    build_ctx = BuildContext(
        model=build_model,
        outdir=Path(out),
        recipe=_recipe_options(windows, ci_build),
        builder=builder,
    )
    if build_model.build_image:
        rprint(f"[cyan]Building the docker image[/cyan] {build_model.image}")
    try:
        outcome = build_pipeline(build_ctx)
    except BuildFailed as exc:
        if exc.stderr:
            console.print(exc.stderr, markup=False)
        _fail(str(exc))
    except C2CBuilderError as exc:
        _fail(str(exc))

    table = Table(title="Docker Artifacts")
    table.add_column("Kind", style="cyan")
    table.add_column("Path")
    for artifact in outcome.artifacts:
        table.add_row(artifact.kind, str(artifact.path))
    console.print(table)
    if outcome.image is not None:
        rprint(f"[green]Image built:[/green] {outcome.image.image}")
    else:
        rprint(f"[green]Build context written:[/green] {build_ctx.outdir}")


@app.command("image-name")
def image_name(
    name: str = typer.Argument(..., help="Image name without registry or tag"),
    registry: str | None = typer.Option(None, "--registry", help="Registry prefix"),
    tag: str = typer.Option("latest", "--tag", help="Image tag"),
) -> None:
    ref = resolve_image_name(registry, name, tag)
    try:
        validate_image_name(ref)
    except C2CBuilderError as exc:
        _fail(str(exc))
    typer.echo(ref)


@app.command()
def validate(model: str = typer.Argument(..., help="Path to the build model JSON document")) -> None:
    try:
        validate_build_model(json.loads(Path(model).read_text(encoding="utf-8")))
    except FileNotFoundError:
        _fail(f"model document not found: {model}")
    except json.JSONDecodeError as exc:
        _fail(f"invalid model document: {exc}")
    except SchemaValidationError as exc:
        _fail(f"invalid model document: {exc.message}")
    rprint("[green]Model document is valid.[/green]")


if __name__ == "__main__":
    app()
