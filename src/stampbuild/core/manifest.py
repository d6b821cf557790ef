"""
Target manifests: build graphs declared in a JSON file.

A manifest lists targets in the order they should be registered:

    {
      "targets": [
        {
          "name": "kernel_snapshot",
          "inputs": [{"glob": "{PROJECT_DIR}/lib/**/*.dart"},
                     {"directory": "assets", "suffix": ".json"}],
          "outputs": ["{BUILD_DIR}/app.dill"],
          "command": ["compile", "--out", "{BUILD_DIR}/app.dill"]
        },
        {
          "name": "aot_elf",
          "dependencies": ["kernel_snapshot"],
          "inputs": ["{BUILD_DIR}/app.dill"],
          "outputs": ["{BUILD_DIR}/app.so"],
          "command": ["snapshot", "{BUILD_DIR}/app.dill"],
          "modes": ["profile", "release"]
        }
      ]
    }

A "glob" input matches files against a pattern; a "directory" input lists
every file with the given suffix under a project subdirectory. A pattern
ending in "/" names a directory.

Commands are run in the project directory after magic ambient value
substitution. Build defines are passed to them as STAMPBUILD_DEFINE_<KEY>
environment variables. A target without a command does nothing when
invoked.
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from stampbuild.core.build_info import (
    get_build_mode_for_name,
    get_target_platform_for_name,
)
from stampbuild.core.environment import Environment
from stampbuild.core.source import SourceLike, glob_sources, list_sources
from stampbuild.core.target import BuildInvocation, Target
from stampbuild.errors import ConfigurationError, InvocationError

logger = logging.getLogger(__name__)

DEFAULT_MANIFEST_NAME = "stampbuild.json"
DEFINE_ENV_PREFIX = "STAMPBUILD_DEFINE_"

_KNOWN_KEYS = {
    "name",
    "dependencies",
    "inputs",
    "outputs",
    "command",
    "phony",
    "platforms",
    "modes",
}


def command_invocation(name: str, command: list[str]) -> BuildInvocation:
    """Create an invocation that runs `command` for target `name`."""

    async def _invoke(inputs: list[Path], environment: Environment) -> None:
        argv = [environment.substitute(arg) for arg in command]
        env = dict(os.environ)
        for key, value in environment.defines.items():
            env[f"{DEFINE_ENV_PREFIX}{key.upper()}"] = value

        logger.debug("%s: running %s", name, " ".join(argv))
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=environment.project_dir,
                env=env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except PermissionError as e:
            raise InvocationError(name, argv, 126, str(e)) from e
        except OSError as e:
            raise InvocationError(name, argv, 127, str(e)) from e
        stdout, stderr = await process.communicate()

        if stdout:
            logger.debug("%s: %s", name, stdout.decode(errors="replace").rstrip())
        if process.returncode != 0:
            raise InvocationError(
                name, argv, process.returncode, stderr.decode(errors="replace")
            )

    return _invoke


def _parse_source(entry: Any, where: str) -> SourceLike:
    if isinstance(entry, str):
        return entry
    if isinstance(entry, dict) and all(isinstance(v, str) for v in entry.values()):
        if set(entry) == {"glob"}:
            return glob_sources(entry["glob"])
        if set(entry) == {"directory", "suffix"}:
            return list_sources(entry["directory"], entry["suffix"])
    raise ConfigurationError(
        f"{where}: entries must be a pattern string, {{\"glob\": pattern}} or "
        f"{{\"directory\": path, \"suffix\": suffix}}, got {entry!r}"
    )


def _source_list(data: dict[str, Any], key: str, where: str) -> list[SourceLike]:
    value = data.get(key, [])
    if not isinstance(value, list):
        raise ConfigurationError(f"{where}: '{key}' must be a list")
    return [_parse_source(entry, f"{where} {key}") for entry in value]


def _string_list(data: dict[str, Any], key: str, where: str) -> list[str]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigurationError(f"{where}: '{key}' must be a list of strings")
    return value


def parse_targets(data: Any) -> list[Target]:
    """
    Build targets from parsed manifest JSON.

    Raises:
        ConfigurationError: If the manifest is malformed, names a
            dependency that it does not define, or repeats a name.
    """
    if not isinstance(data, dict) or not isinstance(data.get("targets"), list):
        raise ConfigurationError("Manifest must be an object with a 'targets' list")

    raw_targets: dict[str, dict[str, Any]] = {}
    for index, raw in enumerate(data["targets"]):
        if not isinstance(raw, dict) or not isinstance(raw.get("name"), str):
            raise ConfigurationError(f"targets[{index}]: missing 'name'")
        name = raw["name"]
        unknown = set(raw) - _KNOWN_KEYS
        if unknown:
            raise ConfigurationError(
                f"Target '{name}': unknown keys {', '.join(sorted(unknown))}"
            )
        if name in raw_targets:
            raise ConfigurationError(f"Target '{name}' is defined more than once")
        raw_targets[name] = raw

    for name, raw in raw_targets.items():
        for dep in _string_list(raw, "dependencies", f"Target '{name}'"):
            if dep not in raw_targets:
                raise ConfigurationError(
                    f"Target '{name}' depends on unknown target '{dep}'"
                )

    # Dependencies may be declared after their dependents, and may even be
    # cyclic; build them lazily and let the BuildSystem report cycles.
    built: dict[str, Target] = {}

    def _build(name: str) -> Target:
        if name in built:
            return built[name]
        raw = raw_targets[name]
        where = f"Target '{name}'"
        try:
            platforms = [
                get_target_platform_for_name(p)
                for p in _string_list(raw, "platforms", where)
            ]
            modes = [
                get_build_mode_for_name(m) for m in _string_list(raw, "modes", where)
            ]
        except ValueError as e:
            raise ConfigurationError(f"{where}: {e}") from e

        command = _string_list(raw, "command", where)
        phony = raw.get("phony", False)
        if not isinstance(phony, bool):
            raise ConfigurationError(f"{where}: 'phony' must be true or false")

        target = Target(
            name=name,
            inputs=_source_list(raw, "inputs", where),
            outputs=_source_list(raw, "outputs", where),
            platforms=platforms,
            modes=modes,
            phony=phony,
        )
        if command:
            target.invocation = command_invocation(name, command)
        built[name] = target
        target.dependencies = tuple(
            _build(dep) for dep in _string_list(raw, "dependencies", where)
        )
        return target

    return [_build(name) for name in raw_targets]


def load_manifest(path: Path) -> list[Target]:
    """
    Load targets from a JSON manifest file.

    Raises:
        ConfigurationError: If the file is missing or malformed.
    """
    if not path.is_file():
        raise ConfigurationError(f"Target manifest not found: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in target manifest: {e}") from e

    return parse_targets(data)


def find_manifest(project_dir: Path, manifest: Optional[Path] = None) -> Path:
    """Return the manifest path, defaulting to stampbuild.json in project_dir."""
    if manifest is not None:
        return manifest
    return project_dir / DEFAULT_MANIFEST_NAME
