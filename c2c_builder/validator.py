"""Schema validation and loading of build model documents."""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path

from jsonschema import Draft202012Validator

from c2c_builder.types import BuildModel

# --- Schema loaders ---------------------------------------------------------


def _load_schema(package: str, resource_name: str) -> dict:
    with resources.files(package).joinpath(resource_name).open("r", encoding="utf-8") as f:
        return json.load(f)


def _build_model_schema() -> dict:
    return _load_schema("c2c_builder.schema", "build_model.schema.json")


# --- Public validators ------------------------------------------------------


def validate_build_model(data: dict) -> None:
    Draft202012Validator(_build_model_schema()).validate(data)


def load_build_model(path: Path) -> BuildModel:
    """Read a model document written by the scan step and return a BuildModel.

    Raises ``jsonschema.ValidationError`` for documents that do not match the
    bundled schema and ``pydantic.ValidationError`` for cross-field problems
    the schema cannot express (e.g. fat packaging without an artifact).
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    validate_build_model(data)
    return BuildModel.model_validate(data)
