"""Unit tests for BuildCoordinator and build_service().

The toolchain is replaced by a fake runner (see conftest.py) that writes the
executable cargo would produce; packaging runs for real in tmp_path.
"""

from __future__ import annotations

import sys
import threading
import time
import zipfile
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest

from sls_rust_core.builder.coordinator import BuildCoordinator, attach_artifacts, build_service
from sls_rust_core.builder.models import BuildStage, BuildStatus
from sls_rust_core.builder.packager import BOOTSTRAP_ENTRY, ArtifactPackager
from sls_rust_core.builder.toolchain import CommandRunner
from sls_rust_core.errors import (
    BuildFailedError,
    CompileError,
    NoRustFunctionsError,
    PackageError,
    WrongHandlerError,
)
from sls_rust_core.schemas import RustConfig, ServiceDefinition
from sls_rust_core.schemas.target import BuildTarget

TRIPLE = "aarch64-unknown-linux-musl"


class SpyPackager(ArtifactPackager):
    """ArtifactPackager that records which projects it was asked to package."""

    def __init__(self) -> None:
        super().__init__()
        self.packaged: list[str] = []

    def package(self, release_dir: Path, project_name: str) -> Path:
        self.packaged.append(project_name)
        return super().package(release_dir, project_name)


class PythonToolchainRunner(CommandRunner):
    """CommandRunner that runs a Python child per project instead of cross/cargo."""

    def __init__(self, scripts: dict[str, str]) -> None:
        super().__init__()
        self.scripts = scripts

    def run(
        self, argv: Sequence[str], *, cwd: Path, label: str = "", index: int = 0
    ) -> None:
        child = [sys.executable, "-c", self.scripts[label]]
        super().run(child, cwd=cwd, label=label, index=index)


@pytest.fixture
def targets() -> list[BuildTarget]:
    return [
        BuildTarget.from_handler("a", "svc-a.handler_a", index=0),
        BuildTarget.from_handler("b", "svc-b.handler_b", index=1),
    ]


class TestBuildAll:
    """Tests for BuildCoordinator.build_all()."""

    def test_empty_targets_spawn_nothing(self, tmp_path: Path, fake_runner: Any) -> None:
        coordinator = BuildCoordinator(RustConfig(), base_dir=tmp_path, runner=fake_runner)

        with pytest.raises(NoRustFunctionsError):
            coordinator.build_all([])
        assert fake_runner.calls == []

    def test_builds_every_target(
        self, tmp_path: Path, fake_runner: Any, targets: list[BuildTarget]
    ) -> None:
        coordinator = BuildCoordinator(RustConfig(), base_dir=tmp_path, runner=fake_runner)

        report = coordinator.build_all(targets)

        assert report.succeeded is True
        assert report.finished_at is not None
        assert [r.target for r in report.results] == targets
        assert report.artifacts == {
            "a": f"svc-a/target/{TRIPLE}/release/handler_a.zip",
            "b": f"svc-b/target/{TRIPLE}/release/handler_b.zip",
        }
        for artifact in report.artifacts.values():
            with zipfile.ZipFile(tmp_path / artifact) as zf:
                assert zf.namelist() == [BOOTSTRAP_ENTRY]

    def test_compiles_in_each_project_dir(
        self, tmp_path: Path, fake_runner: Any, targets: list[BuildTarget]
    ) -> None:
        coordinator = BuildCoordinator(RustConfig(), base_dir=tmp_path, runner=fake_runner)
        coordinator.build_all(targets)

        calls = sorted(fake_runner.calls, key=lambda c: c["index"])
        assert [c["cwd"] for c in calls] == [tmp_path / "svc-a", tmp_path / "svc-b"]
        assert [c["label"] for c in calls] == ["handler_a", "handler_b"]
        assert all(c["argv"] == ["cross", "build", "--release", "--target", TRIPLE] for c in calls)

    def test_native_toolchain_and_custom_triple(
        self, tmp_path: Path, fake_runner: Any, targets: list[BuildTarget]
    ) -> None:
        config = RustConfig(use_cross=False, target_runtime="x86_64-unknown-linux-musl")
        coordinator = BuildCoordinator(config, base_dir=tmp_path, runner=fake_runner)

        report = coordinator.build_all(targets)

        assert {c["argv"][0] for c in fake_runner.calls} == {"cargo"}
        assert report.artifacts["a"] == (
            "svc-a/target/x86_64-unknown-linux-musl/release/handler_a.zip"
        )

    def test_compile_failure_skips_package_and_spares_siblings(
        self,
        tmp_path: Path,
        fake_runner_factory: Callable[..., Any],
        targets: list[BuildTarget],
    ) -> None:
        runner = fake_runner_factory(fail=["handler_a"])
        packager = SpyPackager()
        coordinator = BuildCoordinator(
            RustConfig(), base_dir=tmp_path, runner=runner, packager=packager
        )

        with pytest.raises(BuildFailedError) as exc_info:
            coordinator.build_all(targets)

        error = exc_info.value
        assert len(error.errors) == 1
        assert isinstance(error.errors[0], CompileError)
        assert error.failed_targets == [targets[0]]
        assert error.errors[0].exit_code == 101
        assert packager.packaged == ["handler_b"]

        failed, succeeded = error.report.results
        assert failed.status == BuildStatus.FAILED
        assert failed.stage == BuildStage.COMPILE
        assert failed.exit_code == 101
        assert failed.artifact_path is None
        assert succeeded.status == BuildStatus.SUCCEEDED
        assert (tmp_path / str(succeeded.artifact_path)).exists()

    def test_undecodable_compiler_output_is_a_compile_error(
        self, tmp_path: Path, targets: list[BuildTarget]
    ) -> None:
        for project in ("svc-a", "svc-b"):
            (tmp_path / project).mkdir()
        runner = PythonToolchainRunner(
            {
                "handler_a": (
                    "import sys; sys.stdout.buffer.write(b'error: \\xff\\xfe bad path\\n'); "
                    "sys.exit(1)"
                ),
                "handler_b": (
                    f"import pathlib; release = pathlib.Path('target/{TRIPLE}/release'); "
                    "release.mkdir(parents=True); (release / 'handler_b').write_bytes(b'ELF')"
                ),
            }
        )
        coordinator = BuildCoordinator(RustConfig(), base_dir=tmp_path, runner=runner)

        with pytest.raises(BuildFailedError) as exc_info:
            coordinator.build_all(targets)

        error = exc_info.value
        assert [type(err) for err in error.errors] == [CompileError]
        assert error.failed_targets == [targets[0]]
        assert error.errors[0].exit_code == 1
        assert error.report.results[1].status == BuildStatus.SUCCEEDED

    def test_package_failure(
        self,
        tmp_path: Path,
        fake_runner_factory: Callable[..., Any],
        targets: list[BuildTarget],
    ) -> None:
        runner = fake_runner_factory(no_output=["handler_b"])
        coordinator = BuildCoordinator(RustConfig(), base_dir=tmp_path, runner=runner)

        with pytest.raises(BuildFailedError) as exc_info:
            coordinator.build_all(targets)

        error = exc_info.value
        assert isinstance(error.errors[0], PackageError)
        assert error.failed_targets == [targets[1]]
        assert error.report.artifacts == {"a": f"svc-a/target/{TRIPLE}/release/handler_a.zip"}
        assert error.report.results[1].stage == BuildStage.PACKAGE

    def test_every_target_failing_is_reported(
        self,
        tmp_path: Path,
        fake_runner_factory: Callable[..., Any],
        targets: list[BuildTarget],
    ) -> None:
        runner = fake_runner_factory(fail=["handler_a"], no_output=["handler_b"])
        coordinator = BuildCoordinator(RustConfig(), base_dir=tmp_path, runner=runner)

        with pytest.raises(BuildFailedError) as exc_info:
            coordinator.build_all(targets)

        assert [type(e) for e in exc_info.value.errors] == [CompileError, PackageError]
        assert "2 of 2" in exc_info.value.user_message

    def test_failing_target_waits_for_slow_sibling(
        self,
        tmp_path: Path,
        fake_runner_factory: Callable[..., Any],
        targets: list[BuildTarget],
    ) -> None:
        def slow_b(label: str) -> None:
            if label == "handler_b":
                time.sleep(0.2)

        runner = fake_runner_factory(fail=["handler_a"], on_run=slow_b)
        coordinator = BuildCoordinator(RustConfig(), base_dir=tmp_path, runner=runner)

        with pytest.raises(BuildFailedError) as exc_info:
            coordinator.build_all(targets)

        assert exc_info.value.report.results[1].succeeded is True

    def test_targets_run_concurrently(
        self, tmp_path: Path, fake_runner_factory: Callable[..., Any]
    ) -> None:
        many = [BuildTarget.from_handler(f"f{i}", f"svc{i}.bin{i}", index=i) for i in range(4)]
        barrier = threading.Barrier(len(many), timeout=5)
        runner = fake_runner_factory(on_run=lambda _label: barrier.wait())
        coordinator = BuildCoordinator(RustConfig(), base_dir=tmp_path, runner=runner)

        report = coordinator.build_all(many)

        assert len(report.artifacts) == 4

    def test_max_workers_caps_concurrency(
        self, tmp_path: Path, fake_runner_factory: Callable[..., Any]
    ) -> None:
        many = [BuildTarget.from_handler(f"f{i}", f"svc{i}.bin{i}", index=i) for i in range(4)]
        lock = threading.Lock()
        active = 0
        peak = 0

        def track(_label: str) -> None:
            nonlocal active, peak
            with lock:
                active += 1
                peak = max(peak, active)
            time.sleep(0.02)
            with lock:
                active -= 1

        runner = fake_runner_factory(on_run=track)
        coordinator = BuildCoordinator(
            RustConfig(max_workers=2), base_dir=tmp_path, runner=runner
        )

        coordinator.build_all(many)

        assert 1 <= peak <= 2

    def test_rebuild_is_idempotent(
        self, tmp_path: Path, fake_runner: Any, targets: list[BuildTarget]
    ) -> None:
        coordinator = BuildCoordinator(RustConfig(), base_dir=tmp_path, runner=fake_runner)

        first = coordinator.build_all(targets)
        second = coordinator.build_all(targets)

        assert first.artifacts == second.artifacts


class TestBuildOne:
    """Tests for BuildCoordinator.build_one()."""

    def test_returns_artifact_under_project(
        self, tmp_path: Path, fake_runner: Any, targets: list[BuildTarget]
    ) -> None:
        coordinator = BuildCoordinator(RustConfig(), base_dir=tmp_path, runner=fake_runner)

        result = coordinator.build_one(targets[0])

        assert result.succeeded is True
        assert result.stage == BuildStage.PACKAGE
        assert result.artifact_path is not None
        assert result.artifact_path.startswith("svc-a/target/")

    def test_compile_error(
        self,
        tmp_path: Path,
        fake_runner_factory: Callable[..., Any],
        targets: list[BuildTarget],
    ) -> None:
        packager = SpyPackager()
        coordinator = BuildCoordinator(
            RustConfig(),
            base_dir=tmp_path,
            runner=fake_runner_factory(fail=["handler_a"]),
            packager=packager,
        )

        with pytest.raises(CompileError) as exc_info:
            coordinator.build_one(targets[0])
        assert exc_info.value.target == targets[0]
        assert packager.packaged == []

    def test_package_error(
        self,
        tmp_path: Path,
        fake_runner_factory: Callable[..., Any],
        targets: list[BuildTarget],
    ) -> None:
        coordinator = BuildCoordinator(
            RustConfig(),
            base_dir=tmp_path,
            runner=fake_runner_factory(no_output=["handler_a"]),
        )

        with pytest.raises(PackageError) as exc_info:
            coordinator.build_one(targets[0])
        assert isinstance(exc_info.value.cause, FileNotFoundError)


class TestBuildService:
    """Tests for attach_artifacts() and build_service()."""

    def test_two_functions_end_to_end(
        self, tmp_path: Path, fake_runner: Any, sample_service_dict: dict[str, Any]
    ) -> None:
        service = ServiceDefinition.model_validate(sample_service_dict)

        report = build_service(service, base_dir=tmp_path, runner=fake_runner)

        assert report is not None
        fn_a = service.functions["a"]
        fn_b = service.functions["b"]
        assert fn_a.package is not None and fn_b.package is not None
        assert fn_a.package.artifact == f"svc-a/target/{TRIPLE}/release/handler_a.zip"
        assert fn_b.package.artifact == f"svc-b/target/{TRIPLE}/release/handler_b.zip"
        assert fn_a.runtime == "provided.al2"
        assert fn_b.runtime == "provided.al2023"
        assert service.functions["node"].package is None

    def test_descriptor_config_is_used(
        self, tmp_path: Path, fake_runner: Any, sample_service_dict: dict[str, Any]
    ) -> None:
        sample_service_dict["rust"] = {"useCross": False}
        service = ServiceDefinition.model_validate(sample_service_dict)

        build_service(service, base_dir=tmp_path, runner=fake_runner)

        assert {c["argv"][0] for c in fake_runner.calls} == {"cargo"}

    def test_failure_attaches_nothing(
        self,
        tmp_path: Path,
        fake_runner_factory: Callable[..., Any],
        sample_service_dict: dict[str, Any],
    ) -> None:
        service = ServiceDefinition.model_validate(sample_service_dict)
        runner = fake_runner_factory(fail=["handler_b"])

        with pytest.raises(BuildFailedError):
            build_service(service, base_dir=tmp_path, runner=runner)

        assert service.functions["a"].package is None
        assert service.functions["b"].package is None

    def test_unsupported_provider_is_skipped(
        self, tmp_path: Path, fake_runner: Any, sample_service_dict: dict[str, Any]
    ) -> None:
        sample_service_dict["provider"]["name"] = "azure"
        service = ServiceDefinition.model_validate(sample_service_dict)

        assert build_service(service, base_dir=tmp_path, runner=fake_runner) is None
        assert fake_runner.calls == []

    def test_no_rust_functions(self, tmp_path: Path, fake_runner: Any) -> None:
        service = ServiceDefinition.model_validate(
            {"functions": {"node": {"handler": "index.handler"}}}
        )

        with pytest.raises(NoRustFunctionsError):
            build_service(service, base_dir=tmp_path, runner=fake_runner)
        assert fake_runner.calls == []

    @pytest.mark.parametrize("handler", ["missingname.", ".missingdir", "noseparator"])
    def test_malformed_handler_spawns_nothing(
        self,
        tmp_path: Path,
        fake_runner: Any,
        sample_service_dict: dict[str, Any],
        handler: str,
    ) -> None:
        sample_service_dict["functions"]["b"]["handler"] = handler
        service = ServiceDefinition.model_validate(sample_service_dict)

        with pytest.raises(WrongHandlerError):
            build_service(service, base_dir=tmp_path, runner=fake_runner)
        assert fake_runner.calls == []

    def test_attach_artifacts_only_touches_built_functions(
        self, tmp_path: Path, fake_runner: Any, sample_service_dict: dict[str, Any]
    ) -> None:
        service = ServiceDefinition.model_validate(sample_service_dict)
        coordinator = BuildCoordinator(RustConfig(), base_dir=tmp_path, runner=fake_runner)
        report = coordinator.build_all(service.build_targets()[:1])

        attach_artifacts(service.functions, report, default_runtime="provided.al2023")

        assert service.functions["a"].runtime == "provided.al2023"
        assert service.functions["b"].package is None
