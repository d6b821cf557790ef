"""
Custom exceptions for stampbuild.
"""

from pathlib import Path
from typing import Sequence


class StampBuildError(Exception):
    """Base exception for stampbuild errors."""

    pass


class ConfigurationError(StampBuildError):
    """Error in how targets or the environment were configured."""

    pass


class CyclicDependencyError(ConfigurationError):
    """A target depends on itself, directly or transitively."""

    def __init__(self, cycle: Sequence[str]):
        self.cycle = list(cycle)
        super().__init__(
            "Cyclic dependency detected: " + " -> ".join(self.cycle)
        )


class UnsupportedPlatformError(ConfigurationError):
    """Target platform cannot be used for this operation."""

    pass


class MissingDefineError(ConfigurationError):
    """A target required a build define that was not provided."""

    def __init__(self, define: str, target: str):
        self.define = define
        self.target = target
        super().__init__(
            f"Target '{target}' requires the define '{define}', "
            "but it was not provided"
        )


class ContractError(StampBuildError):
    """A target's declared inputs or outputs do not match the filesystem."""

    def __init__(self, target: str, path: Path, message: str):
        self.target = target
        self.path = Path(path)
        super().__init__(message)


class MissingInputError(ContractError):
    """A declared input did not exist when the stamp was written."""

    def __init__(self, target: str, path: Path):
        super().__init__(
            target, path, f"{target}: Did not find expected input {path}"
        )


class MissingOutputError(ContractError):
    """A declared output was not produced by the invocation."""

    def __init__(self, target: str, path: Path):
        super().__init__(
            target,
            path,
            f"{path} was declared as an output, but was not generated by "
            f"the invocation. Check the definition of target:{target} for errors",
        )


class InvocationError(StampBuildError):
    """A command run on behalf of a target failed."""

    def __init__(self, target: str, command: Sequence[str], return_code: int, stderr: str = ""):
        self.target = target
        self.command = list(command)
        self.return_code = return_code
        self.stderr = stderr
        super().__init__(
            f"{target}: command '{' '.join(self.command)}' "
            f"exited with code {return_code}"
        )
