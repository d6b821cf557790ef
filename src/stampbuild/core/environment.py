"""
The build Environment: resolved filesystem roots and build selectors.

One Environment is created per build invocation and shared read-only by
every target in it. Only the project directory is required; every other
root has a default derived from it (or from the shared artifact cache).

Magic ambient values substituted into target patterns:

    {PROJECT_DIR}  root of the project.
    {BUILD_DIR}    build intermediates and products. Defaults to
                   {PROJECT_DIR}/build.
    {CACHE_DIR}    shared artifact cache. Defaults to get_cache_dir().
    {COPY_DIR}     platform-specific copy of build products. Defaults to
                   {PROJECT_DIR}/<host folder>/flutter.

Magic local values:

    {platform}     canonical name of the target platform, or "any".
    {mode}         canonical name of the build mode, or "any".

Stamp files are written under the stamp directory, which defaults to
{PROJECT_DIR}/build and has no substitution token.
"""

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

from stampbuild.core.build_info import (
    BuildMode,
    TargetPlatform,
    get_host_folder_for_target_platform,
    get_name_for_build_mode,
    get_name_for_target_platform,
)
from stampbuild.core.cache import get_cache_dir
from stampbuild.errors import MissingDefineError


@dataclass(frozen=True)
class Environment:
    """Special paths and selectors for a single build invocation.

    Use Environment.create() to get the defaults; the constructor
    expects every path to be given explicitly.
    """

    project_dir: Path
    build_dir: Path
    stamp_dir: Path
    cache_dir: Path
    copy_dir: Path
    target_platform: Optional[TargetPlatform] = None
    build_mode: Optional[BuildMode] = None
    defines: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in ("project_dir", "build_dir", "stamp_dir", "cache_dir", "copy_dir"):
            object.__setattr__(self, name, Path(getattr(self, name)).absolute())
        object.__setattr__(self, "defines", MappingProxyType(dict(self.defines)))

    @classmethod
    def create(
        cls,
        project_dir: Path | str,
        *,
        build_dir: Optional[Path | str] = None,
        stamp_dir: Optional[Path | str] = None,
        cache_dir: Optional[Path | str] = None,
        copy_dir: Optional[Path | str] = None,
        target_platform: Optional[TargetPlatform] = None,
        build_mode: Optional[BuildMode] = None,
        defines: Optional[Mapping[str, str]] = None,
    ) -> "Environment":
        """
        Create an Environment, filling in defaults from project_dir.

        Args:
            project_dir: Root of the project.
            build_dir: Defaults to project_dir/build.
            stamp_dir: Defaults to project_dir/build.
            cache_dir: Defaults to the shared artifact cache.
            copy_dir: Defaults to project_dir/<host folder>/flutter.
            target_platform: Selected platform, or None for any.
            build_mode: Selected mode, or None for any.
            defines: Extra string defines made available to invocations.

        Raises:
            UnsupportedPlatformError: If copy_dir is defaulted for a
                platform that has no host folder.
        """
        project_dir = Path(project_dir).absolute()
        if copy_dir is None:
            host_folder = get_host_folder_for_target_platform(target_platform)
            copy_dir = project_dir / host_folder / "flutter"
        return cls(
            project_dir=project_dir,
            build_dir=Path(build_dir) if build_dir else project_dir / "build",
            stamp_dir=Path(stamp_dir) if stamp_dir else project_dir / "build",
            cache_dir=Path(cache_dir) if cache_dir else get_cache_dir(),
            copy_dir=Path(copy_dir),
            target_platform=target_platform,
            build_mode=build_mode,
            defines=defines or {},
        )

    @property
    def platform_name(self) -> str:
        return get_name_for_target_platform(self.target_platform)

    @property
    def mode_name(self) -> str:
        return get_name_for_build_mode(self.build_mode)

    def substitutions(self) -> dict[str, str]:
        """Map each magic token to its value in this environment."""
        return {
            "{PROJECT_DIR}": str(self.project_dir),
            "{BUILD_DIR}": str(self.build_dir),
            "{CACHE_DIR}": str(self.cache_dir),
            "{COPY_DIR}": str(self.copy_dir),
            "{platform}": self.platform_name,
            "{mode}": self.mode_name,
        }

    def substitute(self, text: str) -> str:
        """Replace every magic token in text."""
        for token, value in self.substitutions().items():
            text = text.replace(token, value)
        return text

    def require_define(self, key: str, target: str) -> str:
        """
        Return the define named key.

        Raises:
            MissingDefineError: If the define was not provided.
        """
        value = self.defines.get(key)
        if value is None:
            raise MissingDefineError(key, target)
        return value
