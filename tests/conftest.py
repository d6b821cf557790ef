"""Pytest configuration and fixtures for stampbuild tests."""

import asyncio
import os
from pathlib import Path

import pytest

from stampbuild.core.build_info import BuildMode, TargetPlatform
from stampbuild.core.environment import Environment


def bump_mtime(path: Path, seconds: float = 10.0) -> None:
    """Move a file's modification time forward by `seconds`."""
    stat = os.stat(path)
    delta = int(seconds * 1_000_000_000)
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + delta))


class Recorder:
    """Invocation factory that records which targets ran."""

    def __init__(self):
        self.calls: list[str] = []

    def writing(self, name: str, *relative_outputs: str):
        """Invocation that writes each output under {BUILD_DIR}."""

        async def _invoke(inputs, environment):
            self.calls.append(name)
            for rel in relative_outputs:
                out = environment.build_dir / rel
                out.parent.mkdir(parents=True, exist_ok=True)
                out.write_text(f"{name}\n", encoding="utf-8")

        return _invoke

    def failing(self, name: str, error: Exception):
        """Invocation that records itself and raises."""

        async def _invoke(inputs, environment):
            self.calls.append(name)
            raise error

        return _invoke


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """An empty project directory."""
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def environment(project_dir: Path, tmp_path: Path) -> Environment:
    """Debug android_arm64 environment with a private artifact cache."""
    return Environment.create(
        project_dir,
        cache_dir=tmp_path / "cache",
        target_platform=TargetPlatform.ANDROID_ARM64,
        build_mode=BuildMode.DEBUG,
    )


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def run():
    """Run a coroutine to completion."""
    return asyncio.run
