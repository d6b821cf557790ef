"""
Command-line interface for stampbuild.

Usage:
    stampbuild build <target> [-C <project>] [-f <manifest>] [-p <platform>] [-m <mode>]
    stampbuild describe <target> [-C <project>] [-f <manifest>]
    stampbuild list [-C <project>] [-f <manifest>]
    stampbuild cache
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from stampbuild import __version__
from stampbuild.core.build_info import (
    get_build_mode_for_name,
    get_target_platform_for_name,
    list_build_modes,
    list_target_platforms,
)
from stampbuild.core.build_system import BuildSystem
from stampbuild.core.cache import CACHE_DIR_ENV, get_cache_dir
from stampbuild.core.environment import Environment
from stampbuild.core.manifest import find_manifest, load_manifest
from stampbuild.errors import StampBuildError


def _add_project_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-C",
        "--project-dir",
        type=Path,
        default=Path.cwd(),
        help="Project directory (default: current directory)",
    )
    parser.add_argument(
        "-f",
        "--manifest",
        type=Path,
        help="Target manifest (default: <project-dir>/stampbuild.json)",
    )


def _add_environment_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-p",
        "--platform",
        choices=list_target_platforms(),
        help="Target platform (default: any)",
    )
    parser.add_argument(
        "-m",
        "--mode",
        choices=list_build_modes(),
        help="Build mode (default: any)",
    )
    parser.add_argument(
        "-D",
        "--define",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Build define passed to targets (can be repeated)",
    )
    parser.add_argument("--build-dir", type=Path, help="Override {BUILD_DIR}")
    parser.add_argument("--stamp-dir", type=Path, help="Override the stamp directory")
    parser.add_argument("--cache-dir", type=Path, help="Override {CACHE_DIR}")
    parser.add_argument("--copy-dir", type=Path, help="Override {COPY_DIR}")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="stampbuild",
        description="Incremental, dependency-ordered build of declared targets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Build a target and everything it depends on
  stampbuild build aot_elf -p android_arm64 -m release

  # Show the resolved build graph as JSON
  stampbuild describe aot_elf -p android_arm64 -m release

  # List the targets in a manifest
  stampbuild list -f ./stampbuild.json
""",
    )

    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"stampbuild {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log skip decisions and target progress",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # build command
    build_parser = subparsers.add_parser(
        "build",
        help="Build a target and its dependencies",
        description="Run every out-of-date target needed to build TARGET.",
    )
    build_parser.add_argument("target", help="Name of the target to build")
    _add_project_arguments(build_parser)
    _add_environment_arguments(build_parser)

    # describe command
    describe_parser = subparsers.add_parser(
        "describe",
        help="Describe a target and its dependencies as JSON",
        description="Resolve the build graph for TARGET without running anything.",
    )
    describe_parser.add_argument("target", help="Name of the target to describe")
    _add_project_arguments(describe_parser)
    _add_environment_arguments(describe_parser)

    # list command
    list_parser = subparsers.add_parser(
        "list",
        help="List targets in the manifest",
        description="Show every target declared in the manifest.",
    )
    _add_project_arguments(list_parser)

    # cache command
    subparsers.add_parser(
        "cache",
        help="Show the shared artifact cache",
        description="Show the default {CACHE_DIR} location.",
    )

    return parser


def _parse_defines(values: list[str]) -> dict[str, str]:
    defines = {}
    for value in values:
        key, sep, define = value.partition("=")
        if not sep or not key:
            raise StampBuildError(f"Invalid define '{value}', expected KEY=VALUE")
        defines[key] = define
    return defines


def _load_build_system(args: argparse.Namespace) -> BuildSystem:
    project_dir = args.project_dir.resolve()
    manifest = find_manifest(project_dir, args.manifest)
    return BuildSystem(load_manifest(manifest))


def _create_environment(args: argparse.Namespace) -> Environment:
    return Environment.create(
        args.project_dir.resolve(),
        build_dir=args.build_dir,
        stamp_dir=args.stamp_dir,
        cache_dir=args.cache_dir,
        copy_dir=args.copy_dir,
        target_platform=(
            get_target_platform_for_name(args.platform) if args.platform else None
        ),
        build_mode=get_build_mode_for_name(args.mode) if args.mode else None,
        defines=_parse_defines(args.define),
    )


def cmd_build(args: argparse.Namespace) -> int:
    """Handle the build command."""
    try:
        build_system = _load_build_system(args)
        environment = _create_environment(args)
        result = asyncio.run(build_system.build(args.target, environment))
    except StampBuildError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Built {result.target}")
    print(f"  Invoked: {', '.join(result.invoked) if result.invoked else '(none)'}")
    print(f"  Skipped: {', '.join(result.skipped) if result.skipped else '(none)'}")
    return 0


def cmd_describe(args: argparse.Namespace) -> int:
    """Handle the describe command."""
    try:
        build_system = _load_build_system(args)
        environment = _create_environment(args)
        description = build_system.describe(args.target, environment)
    except StampBuildError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(description, indent=2))
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    """Handle the list command."""
    try:
        build_system = _load_build_system(args)
    except StampBuildError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("Targets:")
    for target in build_system.targets:
        flags = " [phony]" if target.phony else ""
        print(f"  {target.name}{flags}")
        if target.dependencies:
            deps = ", ".join(dep.name for dep in target.dependencies)
            print(f"    depends on: {deps}")
    return 0


def cmd_cache(args: argparse.Namespace) -> int:
    """Handle the cache command."""
    cache_dir = get_cache_dir()
    print("Artifact cache:")
    print(f"  Path: {cache_dir}")
    print(f"  Status: {'present' if cache_dir.is_dir() else 'not created'}")
    print(f"  Override with ${CACHE_DIR_ENV}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "build": cmd_build,
        "describe": cmd_describe,
        "list": cmd_list,
        "cache": cmd_cache,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
