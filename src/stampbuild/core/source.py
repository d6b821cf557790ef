"""
Input and output declarations for build targets.

A target lists its inputs and outputs as Sources. Two kinds exist:

- PatternSource: a path pattern containing magic ambient values such as
  {BUILD_DIR}. A pattern ending in "/" names a directory.
- FunctionSource: a function of the Environment returning concrete paths,
  used to discover files (e.g. every source file under lib/).
"""

import glob
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable, Optional, Union

if TYPE_CHECKING:
    from stampbuild.core.environment import Environment

SourceFunction = Callable[["Environment"], Iterable[Union[Path, str]]]

FILE = "file"
DIRECTORY = "directory"


class Source(ABC):
    """A declared input or output of a target."""

    def kind(self) -> Optional[str]:
        """FILE or DIRECTORY if the source fixes what it names, else None."""
        return None

    @abstractmethod
    def resolve(self, environment: "Environment") -> list[Path]:
        """Produce the concrete paths this source stands for."""
        ...


@dataclass(frozen=True)
class PatternSource(Source):
    """A path pattern with magic ambient values substituted at resolve time."""

    pattern: str

    def resolve(self, environment: "Environment") -> list[Path]:
        raw = environment.substitute(self.pattern)
        if os.sep != "/":
            raw = raw.replace("/", os.sep)
        # normpath drops the trailing separator; kind() keeps track of it.
        return [Path(os.path.normpath(raw))]

    def kind(self) -> Optional[str]:
        if self.pattern.endswith("/") or self.pattern.endswith(os.sep):
            return DIRECTORY
        return FILE


@dataclass(frozen=True)
class FunctionSource(Source):
    """A function producing a list of paths for an environment."""

    function: SourceFunction

    def resolve(self, environment: "Environment") -> list[Path]:
        return [Path(p) for p in self.function(environment)]


SourceLike = Union[Source, str, SourceFunction]


def as_source(entry: SourceLike) -> Source:
    """
    Normalize a declared input or output into a Source.

    Strings become PatternSources and callables become FunctionSources.

    Raises:
        TypeError: If the entry is neither.
    """
    if isinstance(entry, Source):
        return entry
    if isinstance(entry, str):
        return PatternSource(entry)
    if callable(entry):
        return FunctionSource(entry)
    raise TypeError(f"Cannot use {entry!r} as a target input or output")


def resolve_sources(sources: Iterable[Source], environment: "Environment") -> list[Path]:
    """Resolve every source and concatenate the results in order.

    A path produced by more than one source is kept at its first position.
    """
    files: dict[Path, None] = {}
    for source in sources:
        for path in source.resolve(environment):
            files.setdefault(path, None)
    return list(files)


def expected_kinds(
    sources: Iterable[Source], environment: "Environment"
) -> dict[Path, str]:
    """Map each path named by a pattern to the kind of entity it must be."""
    kinds: dict[Path, str] = {}
    for source in sources:
        kind = source.kind()
        if kind is None:
            continue
        for path in source.resolve(environment):
            kinds.setdefault(path, kind)
    return kinds


def list_sources(directory: str, suffix: str) -> FunctionSource:
    """
    Find every file ending in suffix under a project subdirectory.

    This does not attempt to determine whether a file is actually used,
    so it may report more files than strictly necessary. A missing
    directory yields no files.
    """

    def _list(environment: "Environment") -> list[Path]:
        root = environment.project_dir / directory
        if not root.is_dir():
            return []
        return sorted(
            p for p in root.rglob(f"*{suffix}") if p.is_file()
        )

    return FunctionSource(_list)


def glob_sources(pattern: str) -> FunctionSource:
    """
    Find every file matching a glob pattern.

    Magic ambient values are substituted first; "**" matches any number
    of directories.
    """

    def _glob(environment: "Environment") -> list[Path]:
        expanded = environment.substitute(pattern)
        return sorted(
            Path(p) for p in glob.glob(expanded, recursive=True) if os.path.isfile(p)
        )

    return FunctionSource(_glob)
