"""
stampbuild - Incremental, dependency-ordered build orchestration.

This package provides tools to:
- Declare build targets with pattern-described inputs and outputs
- Order a target and its transitive dependencies for execution
- Skip targets whose recorded input and output timestamps are unchanged
- Describe a resolved build graph for editors and other build tools
"""

from stampbuild.core.build_info import BuildMode, TargetPlatform
from stampbuild.core.build_system import BuildResult, BuildSystem
from stampbuild.core.environment import Environment
from stampbuild.core.source import (
    FunctionSource,
    PatternSource,
    glob_sources,
    list_sources,
)
from stampbuild.core.target import Target
from stampbuild.errors import StampBuildError

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "BuildMode",
    "TargetPlatform",
    "BuildResult",
    "BuildSystem",
    "Environment",
    "FunctionSource",
    "PatternSource",
    "glob_sources",
    "list_sources",
    "Target",
    "StampBuildError",
]
