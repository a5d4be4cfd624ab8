from __future__ import annotations

import json
import subprocess
from pathlib import Path

import pytest
from typer.testing import CliRunner

from c2c_builder.cli import app
from c2c_builder.config import BuilderOptions
from c2c_builder.core import BuildContext, build_pipeline
from c2c_builder.errors import ArtifactWriteFailed, InvalidImageName
from c2c_builder.package import image as image_mod
from c2c_builder.types import BuildModel, CopyFile, PackageIdentity, Packaging


def _write_jar(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"PK\x03\x04" + path.name.encode())
    return path


@pytest.fixture
def no_docker(monkeypatch):
    """Fail loudly if a test reaches the real builder."""
    calls: list[list[str]] = []

    def _run(cmd, **kwargs):
        calls.append(cmd)
        return subprocess.CompletedProcess(cmd, 0, None, None)

    monkeypatch.setattr(image_mod.subprocess, "run", _run)
    return calls


@pytest.mark.timeout(20)
def test_thin_build_context(tmp_path: Path, no_docker) -> None:
    src = tmp_path / "src"
    deps = [_write_jar(src / "lib" / "b.jar"), _write_jar(src / "lib" / "a.jar")]
    obs = _write_jar(src / "lib" / "svc-observability-symbols.jar")
    main = _write_jar(src / "target" / "bin" / "svc.jar")
    conf = src / "Config.toml"
    conf.write_text("[svc]\nport = 9090\n", encoding="utf-8")
    data = src / "data"
    (data / "nested").mkdir(parents=True)
    (data / "nested" / "seed.csv").write_text("id\n1\n", encoding="utf-8")

    model = BuildModel(
        name="svc",
        registry="myreg",
        tag="1.0",
        dependency_paths=[*deps, obs],
        main_artifact_path=main,
        copy_files=[
            CopyFile(source=conf, target="/home/ballerina/Config.toml"),
            CopyFile(source=data, target="/home/ballerina/data"),
        ],
        env={"B": "2", "A": "1"},
        ports={9090},
        service=True,
        package=PackageIdentity(org_name="acme", module_name="svc", version="0.1.0"),
        build_image=False,
    )
    out = tmp_path / "docker"
    outcome = build_pipeline(BuildContext(model=model, outdir=out))

    assert outcome.image is None
    assert no_docker == []
    assert [a.kind for a in outcome.artifacts] == ["dockerfile", "jar", "jar", "jar", "jar", "copy", "copy"]
    for name in ("Dockerfile", "a.jar", "b.jar", "svc-observability-symbols.jar", "svc.jar", "Config.toml"):
        assert (out / name).is_file(), name
    assert (out / "data" / "nested" / "seed.csv").read_text(encoding="utf-8") == "id\n1\n"

    dockerfile = (out / "Dockerfile").read_text(encoding="utf-8")
    assert "COPY a.jar /home/ballerina/jars/\nCOPY b.jar /home/ballerina/jars/\n" in dockerfile
    assert "ENV A=1\nENV B=2\n" in dockerfile
    assert "EXPOSE 9090" in dockerfile
    assert dockerfile.endswith("CMD java -Xdiag -cp \"svc.jar:jars/*\" 'acme/svc/0/$_init'\n")


@pytest.mark.timeout(20)
def test_fat_build_invokes_builder(tmp_path: Path, no_docker, monkeypatch) -> None:
    jar = _write_jar(tmp_path / "target" / "app.jar")
    monkeypatch.chdir(tmp_path)
    model = BuildModel(
        name="app", tag="1.0", packaging=Packaging.FAT, main_artifact_path=Path("target/app.jar")
    )
    out = tmp_path / "docker"
    outcome = build_pipeline(BuildContext(model=model, outdir=out))

    assert (out / "app.jar").read_bytes() == jar.read_bytes()
    dockerfile = (out / "Dockerfile").read_text(encoding="utf-8")
    assert [line for line in dockerfile.splitlines() if line.startswith("COPY")] == [
        "COPY app.jar /home/ballerina/jars/"
    ]
    assert 'app.jar:jars/*' in dockerfile
    assert outcome.image is not None and outcome.image.image == "app:1.0"
    assert no_docker == [
        ["docker", "build", "--no-cache", "--force-rm", "-t", "app:1.0", str(out)]
    ]


def test_missing_artifact_is_write_failure(tmp_path: Path, no_docker) -> None:
    model = BuildModel(
        name="app", packaging=Packaging.FAT, main_artifact_path=tmp_path / "missing.jar"
    )
    out = tmp_path / "docker"
    with pytest.raises(ArtifactWriteFailed) as info:
        build_pipeline(BuildContext(model=model, outdir=out))
    assert info.value.target_dir == out
    assert isinstance(info.value.cause, FileNotFoundError)
    # The recipe written before the failure stays behind.
    assert (out / "Dockerfile").exists()
    assert no_docker == []


def test_missing_dependency_jar_is_write_failure(tmp_path: Path, no_docker) -> None:
    present = _write_jar(tmp_path / "lib" / "a.jar")
    model = BuildModel(
        name="svc",
        dependency_paths=[present, tmp_path / "lib" / "gone.jar"],
        main_artifact_path=_write_jar(tmp_path / "target" / "svc.jar"),
    )
    out = tmp_path / "docker"
    with pytest.raises(ArtifactWriteFailed) as info:
        build_pipeline(BuildContext(model=model, outdir=out))
    assert info.value.target_dir == out
    assert isinstance(info.value.cause, FileNotFoundError)
    assert str(out) in str(info.value)
    # Copies made before the failing one are not rolled back.
    assert (out / "a.jar").exists()
    assert not (out / "svc.jar").exists()
    assert no_docker == []


def test_missing_copy_file_is_write_failure(tmp_path: Path, no_docker) -> None:
    model = BuildModel(
        name="app",
        packaging=Packaging.FAT,
        main_artifact_path=_write_jar(tmp_path / "app.jar"),
        copy_files=[CopyFile(source=tmp_path / "conf" / "Config.toml", target="/home/ballerina/Config.toml")],
    )
    out = tmp_path / "docker"
    with pytest.raises(ArtifactWriteFailed) as info:
        build_pipeline(BuildContext(model=model, outdir=out))
    assert info.value.target_dir == out
    assert isinstance(info.value.cause, FileNotFoundError)
    assert (out / "app.jar").exists()
    assert no_docker == []


def test_invalid_image_name_stops_before_builder(tmp_path: Path, no_docker) -> None:
    jar = _write_jar(tmp_path / "app.jar")
    model = BuildModel(name="App", packaging=Packaging.FAT, main_artifact_path=jar)
    with pytest.raises(InvalidImageName):
        build_pipeline(
            BuildContext(model=model, outdir=tmp_path / "docker", builder=BuilderOptions(timeout=5))
        )
    assert no_docker == []


def _model_doc(tmp_path: Path, **fields) -> Path:
    jar = _write_jar(tmp_path / "target" / "app.jar")
    doc = {
        "name": "app",
        "tag": "1.0",
        "base_image": "openjdk:11-jre",
        "packaging": "fat",
        "main_artifact_path": str(jar),
        "ports": [9090],
        "service": True,
        "build_image": False,
    }
    doc.update(fields)
    path = tmp_path / "model.json"
    path.write_text(json.dumps(doc), encoding="utf-8")
    return path


def test_cli_dockerfile(tmp_path: Path) -> None:
    model = _model_doc(tmp_path)
    result = CliRunner().invoke(app, ["dockerfile", str(model)])
    assert result.exit_code == 0, result.output
    assert result.output.startswith("# Auto Generated Dockerfile\nFROM openjdk:11-jre\n")
    assert "EXPOSE 9090" in result.output


def test_cli_dockerfile_windows_from_env(tmp_path: Path) -> None:
    model = _model_doc(tmp_path)
    result = CliRunner().invoke(
        app, ["dockerfile", str(model)], env={"ENABLE_WINDOWS_BUILD": "true"}
    )
    assert result.exit_code == 0, result.output
    assert "WORKDIR C:\\ballerina\\home\\" in result.output


def test_cli_build_writes_context(tmp_path: Path, no_docker) -> None:
    model = _model_doc(tmp_path, build_image=True)
    out = tmp_path / "docker"
    result = CliRunner().invoke(app, ["build", str(model), "--out", str(out), "--no-build-image"])
    assert result.exit_code == 0, result.output
    assert (out / "Dockerfile").exists()
    assert (out / "app.jar").exists()
    assert no_docker == []


def test_cli_rejects_invalid_document(tmp_path: Path) -> None:
    model = _model_doc(tmp_path, packaging="uber")
    runner = CliRunner()
    assert runner.invoke(app, ["validate", str(model)]).exit_code == 1
    assert runner.invoke(app, ["dockerfile", str(model)]).exit_code == 1


def test_cli_image_name() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["image-name", "app", "--registry", "myreg", "--tag", "1.0"])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == "myreg/app:1.0"
    assert runner.invoke(app, ["image-name", "App"]).exit_code == 1


@pytest.mark.parametrize("command", ["dockerfile", "validate", "build"])
def test_cli_reports_malformed_json(tmp_path: Path, command: str, no_docker) -> None:
    model = tmp_path / "model.json"
    model.write_text("{not json", encoding="utf-8")
    result = CliRunner().invoke(app, [command, str(model)])
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "invalid model document" in result.output
    assert no_docker == []


def test_cli_rejects_non_positive_timeout(tmp_path: Path, no_docker) -> None:
    model = _model_doc(tmp_path, build_image=True)
    out = tmp_path / "docker"
    result = CliRunner().invoke(app, ["build", str(model), "--out", str(out), "--timeout", "0"])
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "invalid builder options" in result.output
    assert no_docker == []


@pytest.mark.parametrize(
    ("model_flag", "args", "builds"),
    [
        (False, ["--build-image"], True),
        (True, ["--no-build-image"], False),
        (True, [], True),
        (False, [], False),
    ],
)
def test_cli_build_image_flag_overrides_model(
    tmp_path: Path, no_docker, model_flag: bool, args: list[str], builds: bool
) -> None:
    model = _model_doc(tmp_path, build_image=model_flag)
    out = tmp_path / "docker"
    result = CliRunner().invoke(app, ["build", str(model), "--out", str(out), *args])
    assert result.exit_code == 0, result.output
    assert (out / "Dockerfile").exists()
    expected = [["docker", "build", "--no-cache", "--force-rm", "-t", "app:1.0", str(out)]]
    assert no_docker == (expected if builds else [])
