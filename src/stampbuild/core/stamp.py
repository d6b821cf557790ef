"""
Stamp records: what a target's previous build looked like.

One stamp file is kept per (target, build mode, target platform), named
`<name>.<mode>.<platform>` inside the environment's stamp directory:

    {
      "inputs": [["/abs/path/foo", 1554393215000], ...],
      "outputs": ["/abs/path/out", ...]
    }

Input modification times are milliseconds since the epoch. The stamp
file's own modification time records when the build finished, which is
what output modification times are compared against.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from stampbuild.core.environment import Environment

logger = logging.getLogger(__name__)


def modified_millis(path: Path) -> int:
    """Modification time of path in whole milliseconds since the epoch."""
    return os.stat(path).st_mtime_ns // 1_000_000


@dataclass
class StampRecord:
    """Resolved inputs and outputs of the most recent successful build."""

    inputs: list[tuple[str, int]] = field(default_factory=list)
    outputs: list[str] = field(default_factory=list)

    def input_timestamps(self) -> dict[str, int]:
        return dict(self.inputs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "inputs": [[path, stamp] for path, stamp in self.inputs],
            "outputs": list(self.outputs),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "StampRecord":
        inputs = []
        for pair in d.get("inputs", []):
            if len(pair) != 2:
                raise ValueError(f"Malformed input entry in stamp: {pair!r}")
            inputs.append((str(pair[0]), int(pair[1])))
        return cls(inputs=inputs, outputs=[str(p) for p in d.get("outputs", [])])

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, text: str) -> "StampRecord":
        return cls.from_dict(json.loads(text))


def stamp_path(name: str, environment: "Environment") -> Path:
    """Locate the stamp file for target `name` in `environment`."""
    file_name = f"{name}.{environment.mode_name}.{environment.platform_name}"
    return environment.stamp_dir / file_name


def read_stamp(path: Path) -> Optional[StampRecord]:
    """
    Load a stamp file.

    Returns None if the file does not exist. An unreadable stamp is
    logged and also treated as missing, so the target will run again
    and overwrite it.
    """
    if not path.is_file():
        return None
    try:
        return StampRecord.from_json(path.read_text(encoding="utf-8"))
    except (ValueError, TypeError, AttributeError) as e:
        logger.warning("Ignoring corrupt stamp file %s: %s", path, e)
        return None


def write_stamp_file(path: Path, record: StampRecord) -> None:
    """Write a stamp record, creating the stamp directory if needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(record.to_json(), encoding="utf-8")
