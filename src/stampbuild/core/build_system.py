"""
Build orchestration over a graph of targets.

The BuildSystem holds every registered Target. Building a target first
flattens it and its transitive dependencies into an order in which every
dependency precedes its dependents, then visits each target in turn:
skip it if its stamp is still valid, otherwise await its invocation and
write a new stamp. Targets run strictly one at a time.

Typical flow:
    BuildSystem(targets).build("name", environment)
        -> compute_target_order()       ordered targets
        -> Target.resolve_inputs()      concrete input files
        -> Target.can_skip_invocation() skip, or
        -> Target.invocation()          run, then
        -> Target.write_stamp()         record inputs and outputs
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from stampbuild.core.environment import Environment
from stampbuild.core.target import Target
from stampbuild.errors import ConfigurationError, CyclicDependencyError

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Targets invoked and skipped by a successful build."""

    target: str
    invoked: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    def __repr__(self) -> str:
        return (
            f"BuildResult({self.target}: {len(self.invoked)} invoked, "
            f"{len(self.skipped)} skipped)"
        )


class BuildSystem:
    """Registry of targets that can build any of them on request."""

    def __init__(self, targets: Iterable[Target] = ()):
        """
        Initialize the build system with a set of targets.

        Args:
            targets: Targets to register. Names must be unique.

        Raises:
            ConfigurationError: If two targets share a name.
        """
        self._targets: dict[str, Target] = {}
        for target in targets:
            self.register(target)

    @property
    def targets(self) -> list[Target]:
        return list(self._targets.values())

    def register(self, target: Target) -> None:
        """
        Add a target to the registry.

        Raises:
            ConfigurationError: If a target with the same name exists.
        """
        if target.name in self._targets:
            raise ConfigurationError(
                f"A target named '{target.name}' is already registered."
            )
        self._targets[target.name] = target

    def get(self, name: str) -> Target:
        """
        Look up a registered target.

        Raises:
            ConfigurationError: If no target has that name.
        """
        target = self._targets.get(name)
        if target is None:
            available = ", ".join(sorted(self._targets)) or "(none)"
            raise ConfigurationError(
                f"No registered target named '{name}'. Available: {available}"
            )
        return target

    async def build(self, name: str, environment: Environment) -> BuildResult:
        """
        Build the target `name` and all of its dependencies.

        Returns:
            BuildResult naming the targets that ran and that were skipped.

        Raises:
            ConfigurationError: If the target is unknown, part of a cycle,
                or a target in its closure does not support the
                environment.
            ContractError: If a target's declared inputs or outputs are
                missing when its stamp is written.
            Exception: Anything raised by an invocation, unchanged.
        """
        ordered = self.compute_target_order(name)
        for target in ordered:
            if not target.supports(environment):
                raise ConfigurationError(
                    f"Target '{target.name}' does not support platform "
                    f"'{environment.platform_name}' in mode '{environment.mode_name}'."
                )

        environment.cache_dir.mkdir(parents=True, exist_ok=True)
        environment.copy_dir.mkdir(parents=True, exist_ok=True)

        result = BuildResult(target=name)
        for target in ordered:
            inputs = target.resolve_inputs(environment)
            if target.can_skip_invocation(inputs, environment):
                logger.debug("Skipping target: %s", target.name)
                result.skipped.append(target.name)
                continue

            logger.debug("%s: Starting", target.name)
            await target.invocation(inputs, environment)
            logger.debug("%s: Complete", target.name)

            outputs = target.resolve_outputs(environment)
            target.write_stamp(inputs, outputs, environment)
            result.invoked.append(target.name)

        logger.info(
            "Built %s: %d invoked, %d skipped",
            name,
            len(result.invoked),
            len(result.skipped),
        )
        return result

    def describe(self, name: str, environment: Environment) -> list[dict[str, Any]]:
        """
        Describe the target `name` and all of its dependencies.

        Nothing is invoked and no stamp is read or written.
        """
        return [
            target.to_json(environment) for target in self.compute_target_order(name)
        ]

    def compute_target_order(self, name: str) -> list[Target]:
        """
        Flatten target `name` and its dependencies into execution order.

        Depth-first, post-order: a target is appended once all of its
        dependencies have been. Targets reachable along several paths
        appear once.

        Raises:
            ConfigurationError: If no target has that name.
            CyclicDependencyError: If a target depends on itself.
        """
        root = self.get(name)

        ordered: list[Target] = []
        # Targets on the current DFS path, in visiting order.
        in_progress: list[Target] = []
        visited: set[Target] = set()

        def _visit(current: Target) -> None:
            if current in in_progress:
                start = in_progress.index(current)
                cycle = [t.name for t in in_progress[start:]] + [current.name]
                raise CyclicDependencyError(cycle)
            if current in visited:
                return
            in_progress.append(current)
            for dependency in current.dependencies:
                _visit(dependency)
            in_progress.pop()
            visited.add(current)
            ordered.append(current)

        _visit(root)
        return ordered
