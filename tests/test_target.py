"""Tests for stampbuild.core.target module."""

import json
import os
from pathlib import Path

import pytest

from stampbuild.core.build_info import BuildMode, TargetPlatform
from stampbuild.core.environment import Environment
from stampbuild.core.source import glob_sources
from stampbuild.core.target import Target
from stampbuild.errors import ContractError, MissingInputError, MissingOutputError

from conftest import bump_mtime


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _target(**kwargs) -> Target:
    defaults = {
        "name": "A",
        "inputs": ["{PROJECT_DIR}/main.dart"],
        "outputs": ["{BUILD_DIR}/a.txt"],
    }
    defaults.update(kwargs)
    return Target(**defaults)


def _stamped(target: Target, environment: Environment) -> list[Path]:
    """Create inputs and outputs on disk, then write the target's stamp."""
    inputs = target.resolve_inputs(environment)
    for path in inputs + target.resolve_outputs(environment):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("x", encoding="utf-8")
    target.write_stamp(inputs, target.resolve_outputs(environment), environment)
    return inputs


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestResolve:
    """Tests for resolve_inputs() and resolve_outputs()."""

    def test_patterns_and_functions(self, environment: Environment):
        target = _target(
            inputs=[
                "{PROJECT_DIR}/main.dart",
                lambda env: [env.project_dir / "gen" / "a.dart"],
            ],
            outputs=["{BUILD_DIR}/{mode}/app.so", "{COPY_DIR}/assets/"],
        )
        assert target.resolve_inputs(environment) == [
            environment.project_dir / "main.dart",
            environment.project_dir / "gen" / "a.dart",
        ]
        assert target.resolve_outputs(environment) == [
            environment.build_dir / "debug" / "app.so",
            environment.copy_dir / "assets",
        ]


class TestCanSkipInvocation:
    """Tests for the timestamp-based skip decision."""

    def test_phony_never_skips(self, environment: Environment):
        target = _target(phony=True)
        inputs = _stamped(_target(), environment)
        assert target.can_skip_invocation(inputs, environment) is False

    def test_no_stamp(self, environment: Environment, project_dir: Path):
        (project_dir / "main.dart").write_text("")
        target = _target()
        assert target.can_skip_invocation(target.resolve_inputs(environment), environment) is False

    def test_unchanged(self, environment: Environment):
        target = _target()
        inputs = _stamped(target, environment)
        assert target.can_skip_invocation(inputs, environment) is True

    def test_input_named_twice_still_skips(self, environment: Environment, project_dir: Path):
        """A file matched by both a pattern and a glob counts once."""
        (project_dir / "lib").mkdir()
        (project_dir / "lib" / "main.dart").write_text("")
        target = _target(
            inputs=["{PROJECT_DIR}/lib/main.dart", glob_sources("{PROJECT_DIR}/lib/*.dart")]
        )
        inputs = _stamped(target, environment)
        assert inputs == [project_dir / "lib" / "main.dart"]
        assert target.can_skip_invocation(target.resolve_inputs(environment), environment) is True

    def test_input_retimed(self, environment: Environment):
        target = _target()
        inputs = _stamped(target, environment)
        bump_mtime(inputs[0])
        assert target.can_skip_invocation(inputs, environment) is False

    def test_input_added(self, environment: Environment, project_dir: Path):
        target = _target()
        inputs = _stamped(target, environment)
        extra = project_dir / "extra.dart"
        extra.write_text("")
        assert target.can_skip_invocation(inputs + [extra], environment) is False

    def test_input_removed(self, environment: Environment):
        target = _target(inputs=["{PROJECT_DIR}/main.dart", "{PROJECT_DIR}/b.dart"])
        inputs = _stamped(target, environment)
        assert target.can_skip_invocation(inputs[:1], environment) is False

    def test_input_replaced(self, environment: Environment, project_dir: Path):
        target = _target()
        _stamped(target, environment)
        other = project_dir / "other.dart"
        other.write_text("")
        assert target.can_skip_invocation([other], environment) is False

    def test_output_deleted(self, environment: Environment):
        target = _target()
        inputs = _stamped(target, environment)
        (environment.build_dir / "a.txt").unlink()
        assert target.can_skip_invocation(inputs, environment) is False

    def test_output_modified_after_stamp(self, environment: Environment):
        target = _target()
        inputs = _stamped(target, environment)
        bump_mtime(environment.build_dir / "a.txt")
        assert target.can_skip_invocation(inputs, environment) is False

    def test_stamps_are_per_mode_and_platform(self, environment: Environment, project_dir: Path):
        target = _target()
        inputs = _stamped(target, environment)
        release = Environment.create(
            project_dir,
            cache_dir=environment.cache_dir,
            target_platform=TargetPlatform.ANDROID_ARM64,
            build_mode=BuildMode.RELEASE,
        )
        assert target.can_skip_invocation(inputs, environment) is True
        assert target.can_skip_invocation(inputs, release) is False

    def test_corrupt_stamp_forces_run(self, environment: Environment):
        target = _target()
        inputs = _stamped(target, environment)
        target.stamp_file(environment).write_text("[]", encoding="utf-8")
        assert target.can_skip_invocation(inputs, environment) is False


class TestWriteStamp:
    """Tests for write_stamp()."""

    def test_stamp_contents(self, environment: Environment):
        target = _target()
        inputs = _stamped(target, environment)
        stamp = environment.stamp_dir / "A.debug.android_arm64"
        data = json.loads(stamp.read_text(encoding="utf-8"))
        main = str(inputs[0].absolute())
        assert data["inputs"] == [[main, os.stat(main).st_mtime_ns // 1_000_000]]
        assert data["outputs"] == [str(environment.build_dir / "a.txt")]

    def test_phony_writes_nothing(self, environment: Environment):
        target = _target(phony=True)
        target.write_stamp([], [], environment)
        assert not target.stamp_file(environment).exists()

    def test_missing_input(self, environment: Environment):
        target = _target()
        with pytest.raises(MissingInputError) as exc_info:
            target.write_stamp(target.resolve_inputs(environment), [], environment)
        assert exc_info.value.target == "A"
        assert "main.dart" in str(exc_info.value)
        assert not target.stamp_file(environment).exists()

    def test_missing_output(self, environment: Environment, project_dir: Path):
        (project_dir / "main.dart").write_text("")
        target = _target()
        with pytest.raises(MissingOutputError) as exc_info:
            target.write_stamp(
                target.resolve_inputs(environment),
                target.resolve_outputs(environment),
                environment,
            )
        message = str(exc_info.value)
        assert "a.txt" in message
        assert "target:A" in message
        assert isinstance(exc_info.value, ContractError)


    def test_directory_where_file_output_declared(self, environment: Environment, project_dir: Path):
        (project_dir / "main.dart").write_text("")
        (environment.build_dir / "a.txt").mkdir(parents=True)
        target = _target()
        with pytest.raises(MissingOutputError, match="a.txt"):
            target.write_stamp(
                target.resolve_inputs(environment),
                target.resolve_outputs(environment),
                environment,
            )

    def test_file_where_directory_output_declared(self, environment: Environment, project_dir: Path):
        (project_dir / "main.dart").write_text("")
        environment.copy_dir.mkdir(parents=True)
        (environment.copy_dir / "assets").write_text("")
        target = _target(outputs=["{COPY_DIR}/assets/"])
        with pytest.raises(MissingOutputError, match="assets"):
            target.write_stamp(
                target.resolve_inputs(environment),
                target.resolve_outputs(environment),
                environment,
            )

    def test_directory_output(self, environment: Environment, project_dir: Path):
        (project_dir / "main.dart").write_text("")
        (environment.copy_dir / "assets").mkdir(parents=True)
        target = _target(outputs=["{COPY_DIR}/assets/"])
        inputs = target.resolve_inputs(environment)
        target.write_stamp(inputs, target.resolve_outputs(environment), environment)
        assert target.can_skip_invocation(inputs, environment) is True

    def test_file_where_directory_input_declared(self, environment: Environment, project_dir: Path):
        (project_dir / "assets").write_text("")
        target = _target(inputs=["{PROJECT_DIR}/assets/"], outputs=[])
        with pytest.raises(MissingInputError, match="assets"):
            target.write_stamp(target.resolve_inputs(environment), [], environment)


class TestToJson:
    """Tests for to_json()."""

    def test_describes_without_running(self, environment: Environment):
        called = []

        async def invocation(inputs, env):
            called.append(True)

        dep = Target(name="dep")
        target = _target(dependencies=[dep], invocation=invocation)
        assert target.to_json(environment) == {
            "name": "A",
            "phony": False,
            "dependencies": ["dep"],
            "inputs": [str(environment.project_dir / "main.dart")],
            "outputs": [str(environment.build_dir / "a.txt")],
        }
        assert called == []


class TestSupports:
    """Tests for platform and mode applicability."""

    def test_unrestricted(self, environment: Environment):
        assert _target().supports(environment)

    def test_platform_restriction(self, environment: Environment):
        assert _target(platforms=[TargetPlatform.ANDROID_ARM64]).supports(environment)
        assert not _target(platforms=[TargetPlatform.IOS]).supports(environment)

    def test_mode_restriction(self, environment: Environment):
        assert _target(modes=[BuildMode.DEBUG, BuildMode.PROFILE]).supports(environment)
        assert not _target(modes=[BuildMode.RELEASE]).supports(environment)
