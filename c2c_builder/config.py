"""Options that steer recipe generation and the image build.

Environment switches are read here, once, so that composing a Dockerfile only
depends on its arguments.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field

from c2c_builder.types import TargetPlatform

CI_BUILD_ENV = "CI_BUILD"
WINDOWS_BUILD_ENV = "ENABLE_WINDOWS_BUILD"

POSIX_WORK_DIR = "/home/ballerina"
WINDOWS_WORK_DIR = "C:\\ballerina\\home\\"


def _is_true(value: str | None) -> bool:
    return (value or "").strip().lower() == "true"


class RecipeOptions(BaseModel):
    """How a Dockerfile is rendered.

    ``ci_cache_workaround`` inserts a ``RUN true`` after every dependency COPY
    (moby/moby#37965); only POSIX recipes honour it.
    """

    model_config = ConfigDict(frozen=True)

    platform: TargetPlatform = TargetPlatform.POSIX
    ci_cache_workaround: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> RecipeOptions:
        env = os.environ if environ is None else environ
        platform = TargetPlatform.WINDOWS if _is_true(env.get(WINDOWS_BUILD_ENV)) else TargetPlatform.POSIX
        return cls(platform=platform, ci_cache_workaround=_is_true(env.get(CI_BUILD_ENV)))

    @property
    def work_dir(self) -> str:
        return WINDOWS_WORK_DIR if self.platform is TargetPlatform.WINDOWS else POSIX_WORK_DIR

    @property
    def jars_dir(self) -> str:
        if self.platform is TargetPlatform.WINDOWS:
            return f"{self.work_dir}jars\\"
        return f"{self.work_dir}/jars/"

    @property
    def line_separator(self) -> str:
        return "\r\n" if self.platform is TargetPlatform.WINDOWS else "\n"


class BuilderOptions(BaseModel):
    """How the external builder is invoked.

    By default the builder inherits stdio so progress streams to the console;
    ``capture_output`` collects it instead. ``timeout`` (seconds) kills a hung
    build.
    """

    model_config = ConfigDict(frozen=True)

    executable: str = "docker"
    capture_output: bool = False
    timeout: float | None = Field(default=None, gt=0)
