"""Dockerfile generation.

The recipe is assembled line by line in a fixed order:
- header: generated marker, FROM and the maintainer label
- jar staging: thin builds copy every dependency jar (sorted, deduplicated)
  followed by the observability and executable jars; fat builds copy one jar
- a non-root user for base images that need one
- WORKDIR, ENV, extra COPY, EXPOSE and USER
- the CMD line

Composition is pure: identical inputs give byte-identical output.
"""

from __future__ import annotations

from c2c_builder.config import RecipeOptions
from c2c_builder.naming import entrypoint_identifier
from c2c_builder.types import BuildModel, CopyInstruction, Packaging, TargetPlatform

GENERATED_MARKER = "# Auto Generated Dockerfile"
MAINTAINER = "dev@ballerina.io"
OBSERVABILITY_JAR_SUFFIX = "-observability-symbols.jar"

SERVICE_USER = "ballerina"
SERVICE_GROUP = "troupe"


def _copy(source: str, target: str) -> str:
    return f"COPY {source} {target}"


def _is_special_jar(file_name: str, jar_file_name: str) -> bool:
    if file_name.endswith(OBSERVABILITY_JAR_SUFFIX):
        return True
    return bool(jar_file_name) and file_name == jar_file_name


def _staging_lines(model: BuildModel, options: RecipeOptions) -> list[str]:
    jars_dir = options.jars_dir
    if model.packaging is Packaging.FAT:
        return [_copy(model.main_artifact_path.name, jars_dir)]

    jar_file_name = model.jar_file_name
    names = [path.name for path in model.dependency_paths]
    cache_workaround = options.ci_cache_workaround and options.platform is TargetPlatform.POSIX

    lines: list[str] = []
    for name in sorted({n for n in names if not _is_special_jar(n, jar_file_name)}):
        lines.append(_copy(name, jars_dir))
        if cache_workaround:
            # TODO: drop once moby/moby#37965 is fixed in the builders we support.
            lines.append("RUN true")
    # Observability and executable jars go last, in the order they were given.
    lines.extend(_copy(n, jars_dir) for n in names if _is_special_jar(n, jar_file_name))
    return lines


def _user_lines(model: BuildModel) -> list[str]:
    if not model.base_image.requires_user_provisioning:
        return []
    return [
        f"RUN addgroup {SERVICE_GROUP} \\",
        f"    && adduser -S -s /bin/bash -g '{SERVICE_USER}' -G {SERVICE_GROUP} -D {SERVICE_USER} \\",
        "    && apk add --update --no-cache bash \\",
        "    && rm -rf /var/cache/apk/*",
        "",
    ]


def copy_instructions(model: BuildModel) -> list[CopyInstruction]:
    """Extra files are copied from the build context by file name."""
    return [CopyInstruction(source=cf.source.name, target=cf.target) for cf in model.copy_files]


def _common_lines(model: BuildModel) -> list[str]:
    lines = [f"ENV {key}={model.env[key]}" for key in sorted(model.env)]
    lines.extend(_copy(ci.source, ci.target) for ci in copy_instructions(model))
    lines.append("")
    if model.service and model.ports:
        lines.append("EXPOSE " + " ".join(str(port) for port in sorted(model.ports)))
    else:
        lines.append("")
    if model.base_image.requires_user_provisioning:
        lines.extend([f"USER {SERVICE_USER}", ""])
    return lines


def default_command(model: BuildModel) -> str:
    pkg = model.package
    main_class = entrypoint_identifier(pkg.org_name, pkg.module_name, pkg.version)
    parts = ["CMD java -Xdiag"]
    if model.debug.enabled:
        parts.append(
            "-agentlib:jdwp=transport=dt_socket,server=y,suspend=n,"
            f"address='*:{model.debug.port}'"
        )
    parts.append(f'-cp "{model.jar_file_name}:jars/*"')
    parts.append(main_class)
    return " ".join(parts)


def _command_line(model: BuildModel) -> str:
    line = model.command if model.command and model.command.strip() else default_command(model)
    if model.command_args and model.command_args.strip():
        line += model.command_args
    return line


def compose_dockerfile(model: BuildModel, options: RecipeOptions | None = None) -> str:
    """Render the Dockerfile for *model*.

    Parameters
    ----------
    model: BuildModel
        The build description; read only.
    options: RecipeOptions | None
        Target platform and builder workarounds. Defaults to a POSIX recipe.

    Returns
    -------
    str
        The recipe text, ending with exactly one line separator.
    """
    options = options or RecipeOptions()
    lines = [
        GENERATED_MARKER,
        f"FROM {model.base_image.name}",
        "",
        f'LABEL maintainer="{MAINTAINER}"',
    ]
    lines.extend(_staging_lines(model, options))
    lines.extend(_user_lines(model))
    lines.append(f"WORKDIR {options.work_dir}")
    lines.extend(_common_lines(model))
    lines.append(_command_line(model))

    sep = options.line_separator
    return sep.join(lines).rstrip("\r\n") + sep
