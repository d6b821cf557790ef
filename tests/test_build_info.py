"""Tests for stampbuild.core.build_info module."""

import pytest

from stampbuild.core.build_info import (
    BuildMode,
    TargetPlatform,
    get_build_mode_for_name,
    get_host_folder_for_target_platform,
    get_name_for_build_mode,
    get_name_for_target_platform,
    get_target_platform_for_name,
)
from stampbuild.errors import UnsupportedPlatformError


class TestNames:
    """Canonical names used in stamps and substitutions."""

    def test_build_mode_names(self):
        assert get_name_for_build_mode(BuildMode.DEBUG) == "debug"
        assert get_name_for_build_mode(BuildMode.RELEASE) == "release"
        assert get_name_for_build_mode(BuildMode.JIT_RELEASE) == "jit_release"

    def test_missing_selectors_are_any(self):
        assert get_name_for_build_mode(None) == "any"
        assert get_name_for_target_platform(None) == "any"

    def test_platform_names(self):
        assert get_name_for_target_platform(TargetPlatform.ANDROID_ARM64) == "android_arm64"
        assert get_name_for_target_platform(TargetPlatform.DARWIN_X64) == "darwin_x64"

    def test_parse_round_trip(self):
        for mode in BuildMode:
            assert get_build_mode_for_name(get_name_for_build_mode(mode)) is mode
        for target_platform in TargetPlatform:
            name = get_name_for_target_platform(target_platform)
            assert get_target_platform_for_name(name) is target_platform

    def test_parse_is_case_insensitive(self):
        assert get_build_mode_for_name("Release") is BuildMode.RELEASE

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="Unknown build mode"):
            get_build_mode_for_name("fast")
        with pytest.raises(ValueError, match="Unknown target platform"):
            get_target_platform_for_name("amiga")


class TestHostFolder:
    """Tests for get_host_folder_for_target_platform()."""

    @pytest.mark.parametrize(
        "target_platform,folder",
        [
            (TargetPlatform.ANDROID_ARM, "android"),
            (TargetPlatform.ANDROID_X86, "android"),
            (TargetPlatform.IOS, "ios"),
            (TargetPlatform.DARWIN_X64, "macos"),
            (TargetPlatform.LINUX_X64, "linux"),
            (TargetPlatform.WINDOWS_X64, "windows"),
            (TargetPlatform.FUCHSIA, "fuchsia"),
            (TargetPlatform.WEB, "web"),
            (None, "any"),
        ],
    )
    def test_host_folder(self, target_platform, folder):
        assert get_host_folder_for_target_platform(target_platform) == folder

    def test_tester_is_unsupported(self):
        with pytest.raises(UnsupportedPlatformError):
            get_host_folder_for_target_platform(TargetPlatform.TESTER)
