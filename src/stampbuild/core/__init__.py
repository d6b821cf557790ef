"""
Core modules for stampbuild.
"""

from stampbuild.core.build_system import BuildResult, BuildSystem
from stampbuild.core.environment import Environment
from stampbuild.core.source import FunctionSource, PatternSource
from stampbuild.core.target import Target

__all__ = [
    "BuildResult",
    "BuildSystem",
    "Environment",
    "FunctionSource",
    "PatternSource",
    "Target",
]
