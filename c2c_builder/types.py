"""Shared Pydantic models describing a containerized build."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from c2c_builder.naming import resolve_image_name

DEFAULT_BASE_IMAGE = "ballerina/jre11:v1"

# Alpine based images without a non-root user; recipes add one.
USER_PROVISIONED_BASES = frozenset({DEFAULT_BASE_IMAGE})


class Packaging(str, Enum):
    THIN = "thin"
    FAT = "fat"


class TargetPlatform(str, Enum):
    POSIX = "posix"
    WINDOWS = "windows"


class BaseImage(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    requires_user_provisioning: bool = False

    @classmethod
    def from_name(cls, name: str) -> BaseImage:
        return cls(name=name, requires_user_provisioning=name in USER_PROVISIONED_BASES)


class PackageIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    org_name: str = "$anon"
    module_name: str = "."
    version: str = ""


class DebugSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    port: int = Field(default=5005, ge=1, le=65535)


class CopyFile(BaseModel):
    """An extra file (or directory) shipped into the image."""

    model_config = ConfigDict(frozen=True)

    source: Path
    target: str = Field(min_length=1)


class CopyInstruction(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: str
    target: str


class BuildModel(BaseModel):
    """Everything needed to generate a Dockerfile and build the image.

    The model is frozen: derived values such as the canonical image reference
    are computed on access and never written back.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    registry: str | None = None
    tag: str = Field(default="latest", min_length=1)
    base_image: BaseImage = Field(default_factory=lambda: BaseImage.from_name(DEFAULT_BASE_IMAGE))
    packaging: Packaging = Packaging.THIN
    dependency_paths: list[Path] = Field(default_factory=list)
    main_artifact_path: Path | None = None
    main_artifact_file_name: str | None = None
    copy_files: list[CopyFile] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    ports: set[int] = Field(default_factory=set)
    service: bool = False
    command: str | None = None
    command_args: str | None = None
    debug: DebugSettings = Field(default_factory=DebugSettings)
    package: PackageIdentity = Field(default_factory=PackageIdentity)
    build_image: bool = True

    @field_validator("base_image", mode="before")
    @classmethod
    def _base_image_from_name(cls, value: object) -> object:
        if isinstance(value, str):
            return BaseImage.from_name(value)
        return value

    @model_validator(mode="after")
    def _fat_needs_artifact(self) -> BuildModel:
        if self.packaging is Packaging.FAT and self.main_artifact_path is None:
            raise ValueError("fat packaging requires main_artifact_path")
        return self

    @property
    def jar_file_name(self) -> str:
        if self.main_artifact_file_name:
            return self.main_artifact_file_name
        if self.main_artifact_path is not None:
            return self.main_artifact_path.name
        return ""

    @property
    def image(self) -> str:
        return resolve_image_name(self.registry, self.name, self.tag)


class ImageBuildResult(BaseModel):
    image: str
    returncode: int = 0
    stdout: str | None = None
    stderr: str | None = None
