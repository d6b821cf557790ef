"""
Build targets: declarative, timestamp-tracked build rules.

A Target describes a single step of a build. Its inputs and outputs are
declared as Sources (see stampbuild.core.source); its invocation is a
coroutine function that does the work and must leave every declared
output on disk.

To decide whether a target needs to run, the BuildSystem compares the
currently resolved input files against the stamp written by the previous
successful build of the same target, mode and platform. Any added,
removed or retimed input, and any output deleted or modified after the
stamp was written, causes the target to run again. Phony targets always
run and never write stamps.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Sequence

from stampbuild.core.build_info import BuildMode, TargetPlatform
from stampbuild.core.source import (
    DIRECTORY,
    FILE,
    Source,
    SourceLike,
    as_source,
    expected_kinds,
    resolve_sources,
)
from stampbuild.core.stamp import (
    StampRecord,
    modified_millis,
    read_stamp,
    stamp_path,
    write_stamp_file,
)
from stampbuild.errors import MissingInputError, MissingOutputError

if TYPE_CHECKING:
    from stampbuild.core.environment import Environment

logger = logging.getLogger(__name__)

BuildInvocation = Callable[[list[Path], "Environment"], Awaitable[None]]


def _has_kind(path: Path, kind: Optional[str]) -> bool:
    if kind == FILE:
        return path.is_file()
    if kind == DIRECTORY:
        return path.is_dir()
    return path.exists()


async def _noop_invocation(inputs: list[Path], environment: "Environment") -> None:
    return None


@dataclass(eq=False)
class Target:
    """A single named build rule.

    Attributes:
        name: Unique name within a BuildSystem.
        inputs: Declared inputs (patterns, functions or Sources).
        outputs: Declared outputs (patterns, functions or Sources).
        invocation: Coroutine function called with the resolved inputs
            and the Environment.
        dependencies: Targets that must complete before this one.
        platforms: Platforms this target supports; empty means all.
        modes: Build modes this target supports; empty means all.
        phony: If True, the target is never skipped.
    """

    name: str
    inputs: Sequence[SourceLike] = ()
    outputs: Sequence[SourceLike] = ()
    invocation: BuildInvocation = _noop_invocation
    dependencies: Sequence["Target"] = ()
    platforms: Sequence[TargetPlatform] = ()
    modes: Sequence[BuildMode] = ()
    phony: bool = False

    _input_sources: tuple[Source, ...] = field(init=False, repr=False)
    _output_sources: tuple[Source, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._input_sources = tuple(as_source(entry) for entry in self.inputs)
        self._output_sources = tuple(as_source(entry) for entry in self.outputs)
        self.dependencies = tuple(self.dependencies)
        self.platforms = tuple(self.platforms)
        self.modes = tuple(self.modes)

    def __repr__(self) -> str:
        return f"Target({self.name})"

    def supports(self, environment: "Environment") -> bool:
        """True if this target applies to the environment's platform and mode."""
        if self.platforms and environment.target_platform not in self.platforms:
            return False
        if self.modes and environment.build_mode not in self.modes:
            return False
        return True

    def resolve_inputs(self, environment: "Environment") -> list[Path]:
        """Resolve the declared inputs into a concrete list of files."""
        return resolve_sources(self._input_sources, environment)

    def resolve_outputs(self, environment: "Environment") -> list[Path]:
        """Find the current set of declared outputs, including directories."""
        return resolve_sources(self._output_sources, environment)

    def stamp_file(self, environment: "Environment") -> Path:
        return stamp_path(self.name, environment)

    def can_skip_invocation(
        self, inputs: list[Path], environment: "Environment"
    ) -> bool:
        """Check if the previous build of this target is still valid."""
        if self.phony:
            return False

        stamp = self.stamp_file(environment)
        record = read_stamp(stamp)
        if record is None:
            logger.debug("%s: no stamp at %s", self.name, stamp)
            return False
        stamp_modified = os.stat(stamp).st_mtime_ns

        previous = record.input_timestamps()
        if len({str(p.absolute()) for p in inputs}) != len(previous):
            logger.debug("%s: set of inputs changed", self.name)
            return False

        for input_file in inputs:
            absolute_path = str(input_file.absolute())
            previous_timestamp = previous.get(absolute_path)
            if previous_timestamp is None:
                logger.debug("%s: new input %s", self.name, absolute_path)
                return False
            if not input_file.exists():
                logger.debug("%s: input %s is missing", self.name, absolute_path)
                return False
            if modified_millis(input_file) != previous_timestamp:
                logger.debug("%s: input %s changed", self.name, absolute_path)
                return False

        # The set of outputs can vary with the inputs, but it is safe to
        # check only the previous ones when no input changed.
        for output_path in record.outputs:
            try:
                output_modified = os.stat(output_path).st_mtime_ns
            except FileNotFoundError:
                logger.debug("%s: output %s was deleted", self.name, output_path)
                return False
            if output_modified > stamp_modified:
                logger.debug("%s: output %s was modified", self.name, output_path)
                return False

        return True

    def write_stamp(
        self,
        inputs: list[Path],
        outputs: list[Path],
        environment: "Environment",
    ) -> None:
        """
        Record the inputs and outputs of a successful invocation.

        Raises:
            MissingInputError: If a resolved input does not exist, or is a
                file where a directory was declared (or the reverse).
            MissingOutputError: If a declared output was not produced as
                the kind of entity it was declared as.
        """
        if self.phony:
            return

        input_kinds = expected_kinds(self._input_sources, environment)
        output_kinds = expected_kinds(self._output_sources, environment)

        input_stamps: list[tuple[str, int]] = []
        for input_file in inputs:
            if not _has_kind(input_file, input_kinds.get(input_file)):
                raise MissingInputError(self.name, input_file)
            input_stamps.append(
                (str(input_file.absolute()), modified_millis(input_file))
            )

        output_stamps: list[str] = []
        for output in outputs:
            if not _has_kind(output, output_kinds.get(output)):
                raise MissingOutputError(self.name, output)
            output_stamps.append(str(output.absolute()))

        write_stamp_file(
            self.stamp_file(environment),
            StampRecord(inputs=input_stamps, outputs=output_stamps),
        )

    def to_json(self, environment: "Environment") -> dict[str, Any]:
        """
        Convert the target to a structure for consumption by external tools.

        Paths are resolved against the environment; nothing is executed.
        """
        return {
            "name": self.name,
            "phony": self.phony,
            "dependencies": [target.name for target in self.dependencies],
            "inputs": [str(p.absolute()) for p in self.resolve_inputs(environment)],
            "outputs": [str(p.absolute()) for p in self.resolve_outputs(environment)],
        }

