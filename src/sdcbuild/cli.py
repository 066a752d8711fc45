"""
Command-line interface for sdcbuild.

Examples:
    sdcbuild                   # One-shot build of the theme in the current directory
    sdcbuild path/to/theme     # One-shot build of another theme
    sdcbuild --watch           # Build, then rebuild on every source change
    sdcbuild --watch -v        # Watch with per-file output and debug logging
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from sdcbuild import __version__
from sdcbuild.config import load_config
from sdcbuild.errors import ConfigError
from sdcbuild.orchestrator import Orchestrator
from sdcbuild.output import init_timer, log_error, log_header, log_warning, set_verbose


@dataclass
class BuildArgs:
    """Arguments for a build run."""

    project_dir: Path
    watch: bool = False
    verbose: bool = False


def build_command(args: BuildArgs) -> None:
    """Build (or watch) a theme and exit with the resulting status."""
    init_timer()
    set_verbose(args.verbose)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    log_header("sdcbuild", __version__)

    try:
        config = load_config(args.project_dir, watch=args.watch, verbose=args.verbose)
        exit_code = Orchestrator(config).run()
        sys.exit(exit_code)

    except ConfigError as e:
        log_error(f"✗ Configuration error: {e}")
        sys.exit(1)

    except KeyboardInterrupt:
        log_warning("Interrupted")
        sys.exit(130)  # Standard exit code for SIGINT

    except Exception as e:
        log_error("✗ Unexpected error")
        log_error(f"{type(e).__name__}: {e}")

        if args.verbose:
            import traceback

            print()
            print("Traceback:")
            print(traceback.format_exc())

        sys.exit(1)


def main() -> None:
    """sdcbuild - build single-directory-component themes."""
    parser = argparse.ArgumentParser(
        prog="sdcbuild",
        description="Compile theme styles and scripts and relocate component output next to each component",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"sdcbuild {__version__}",
    )
    parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Theme directory (default: current directory)",
    )
    parser.add_argument(
        "-w",
        "--watch",
        action="store_true",
        help="Watch sources and rebuild on change",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show per-file output and debug logging",
    )

    parsed_args = parser.parse_args()

    if not parsed_args.project_dir.is_dir():
        print(f"\033[1;31m✗ Error: Path does not exist: {parsed_args.project_dir}\033[0m")
        sys.exit(2)

    build_command(
        BuildArgs(
            project_dir=parsed_args.project_dir,
            watch=parsed_args.watch,
            verbose=parsed_args.verbose,
        )
    )


if __name__ == "__main__":
    main()
