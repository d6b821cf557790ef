"""
Build mode and target platform selectors.

Canonical lowercase names of these values are used in stamp file names
and in the `{mode}` / `{platform}` pattern substitutions. A missing
selector is spelled `any`.
"""

from enum import Enum
from typing import Optional

from stampbuild.errors import UnsupportedPlatformError

ANY = "any"


class BuildMode(Enum):
    """Build mode a target is executed for."""

    DEBUG = "debug"
    PROFILE = "profile"
    RELEASE = "release"
    JIT_RELEASE = "jit_release"


class TargetPlatform(Enum):
    """Platform a target is executed for."""

    ANDROID_ARM = "android_arm"
    ANDROID_ARM64 = "android_arm64"
    ANDROID_X64 = "android_x64"
    ANDROID_X86 = "android_x86"
    IOS = "ios"
    DARWIN_X64 = "darwin_x64"
    LINUX_X64 = "linux_x64"
    WINDOWS_X64 = "windows_x64"
    FUCHSIA = "fuchsia"
    WEB = "web"
    TESTER = "tester"


# Host project folder holding platform-specific copies of build products.
_HOST_FOLDERS: dict[TargetPlatform, str] = {
    TargetPlatform.ANDROID_ARM: "android",
    TargetPlatform.ANDROID_ARM64: "android",
    TargetPlatform.ANDROID_X64: "android",
    TargetPlatform.ANDROID_X86: "android",
    TargetPlatform.IOS: "ios",
    TargetPlatform.DARWIN_X64: "macos",
    TargetPlatform.LINUX_X64: "linux",
    TargetPlatform.WINDOWS_X64: "windows",
    TargetPlatform.FUCHSIA: "fuchsia",
    TargetPlatform.WEB: "web",
}


def get_name_for_build_mode(build_mode: Optional[BuildMode]) -> str:
    """Return the name for the build mode, or "any" if None."""
    if build_mode is None:
        return ANY
    return build_mode.value


def get_name_for_target_platform(target_platform: Optional[TargetPlatform]) -> str:
    """Return the name for the target platform, or "any" if None."""
    if target_platform is None:
        return ANY
    return target_platform.value


def get_build_mode_for_name(name: str) -> BuildMode:
    """
    Parse a build mode name.

    Raises:
        ValueError: If the name is not a known build mode.
    """
    try:
        return BuildMode(name.lower())
    except ValueError:
        available = ", ".join(m.value for m in BuildMode)
        raise ValueError(
            f"Unknown build mode: '{name}'. Available: {available}"
        ) from None


def get_target_platform_for_name(name: str) -> TargetPlatform:
    """
    Parse a target platform name.

    Raises:
        ValueError: If the name is not a known target platform.
    """
    try:
        return TargetPlatform(name.lower())
    except ValueError:
        available = ", ".join(p.value for p in TargetPlatform)
        raise ValueError(
            f"Unknown target platform: '{name}'. Available: {available}"
        ) from None


def get_host_folder_for_target_platform(
    target_platform: Optional[TargetPlatform],
) -> str:
    """
    Return the host folder name for a particular target platform.

    Raises:
        UnsupportedPlatformError: For the tester platform, which is not
            a platform that can be built for.
    """
    if target_platform is None:
        return ANY
    if target_platform is TargetPlatform.TESTER:
        raise UnsupportedPlatformError(
            "tester is not a supported platform for building."
        )
    return _HOST_FOLDERS[target_platform]


def list_build_modes() -> list[str]:
    """List all build mode names."""
    return [m.value for m in BuildMode]


def list_target_platforms() -> list[str]:
    """List all target platform names."""
    return [p.value for p in TargetPlatform]
