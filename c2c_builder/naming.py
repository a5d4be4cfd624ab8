"""Image reference and entrypoint naming rules."""

from __future__ import annotations

import re

from c2c_builder.errors import InvalidImageName

REGISTRY_SEPARATOR = "/"
TAG_SEPARATOR = ":"

ANON_ORG = "$anon"
NO_MODULE = "."
MODULE_INIT_CLASS_NAME = "$_init"
FILE_NAME_PERIOD_SEPARATOR = "$$$"

NAME_TOTAL_LENGTH_MAX = 255

# --- Docker reference grammar ----------------------------------------------

_ALPHA_NUMERIC = r"[a-z0-9]+"
_SEPARATOR = r"(?:[._]|__|[-]+)"
_PATH_COMPONENT = rf"{_ALPHA_NUMERIC}(?:{_SEPARATOR}{_ALPHA_NUMERIC})*"
_DOMAIN_COMPONENT = r"(?:[a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9-]*[a-zA-Z0-9])"
_DOMAIN = rf"{_DOMAIN_COMPONENT}(?:\.{_DOMAIN_COMPONENT})*(?::[0-9]+)?"
_TAG = r"[\w][\w.-]{0,127}"
_DIGEST = r"[A-Za-z][A-Za-z0-9]*(?:[-_+.][A-Za-z][A-Za-z0-9]*)*:[0-9A-Fa-f]{32,}"
_NAME = rf"(?:{_DOMAIN}/)?{_PATH_COMPONENT}(?:/{_PATH_COMPONENT})*"

REFERENCE_RE = re.compile(rf"^(?P<name>{_NAME})(?::(?P<tag>{_TAG}))?(?:@(?P<digest>{_DIGEST}))?$")


def resolve_image_name(registry: str | None, name: str, tag: str) -> str:
    """Return the canonical ``[registry/]name:tag`` reference.

    Inputs are expected to be raw components; passing an already resolved
    name appends the registry and tag a second time.
    """
    if registry and registry.strip():
        return f"{registry}{REGISTRY_SEPARATOR}{name}{TAG_SEPARATOR}{tag}"
    return f"{name}{TAG_SEPARATOR}{tag}"


def validate_image_name(image: str) -> None:
    """Raise InvalidImageName unless *image* is a valid Docker reference."""
    if not image:
        raise InvalidImageName("image name cannot be empty")
    match = REFERENCE_RE.match(image)
    if match is None:
        if image.lower() != image and REFERENCE_RE.match(image.lower()):
            raise InvalidImageName(f"image name '{image}' must be lowercase")
        raise InvalidImageName(f"image name '{image}' is not a valid docker reference")
    if len(match.group("name")) > NAME_TOTAL_LENGTH_MAX:
        raise InvalidImageName(
            f"image name '{image}' is longer than {NAME_TOTAL_LENGTH_MAX} characters"
        )


def _cleanup_name(name: str) -> str:
    return name.replace(".", "_")


def entrypoint_identifier(org_name: str, module_name: str, version: str) -> str:
    """Return the quoted module init class the default CMD starts.

    ``$anon`` drops the org segment, a ``.`` module drops module and version,
    and the version contributes only its major component.
    """
    class_name = MODULE_INIT_CLASS_NAME.replace(".", FILE_NAME_PERIOD_SEPARATOR)

    if module_name != NO_MODULE:
        if version:
            major = version.split(".")[0]
            class_name = f"{_cleanup_name(major)}/{class_name}"
        class_name = f"{_cleanup_name(module_name)}/{class_name}"

    if org_name.lower() != ANON_ORG:
        class_name = f"{_cleanup_name(org_name)}/{class_name}"

    return f"'{class_name}'"
