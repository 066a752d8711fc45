"""Style linting.

Runs stylelint over the shared style sources and all component style
sources, skipping vendor directories. Linting is advisory: the report is
shown when it is non-empty, and no outcome (lint problems, a missing
stylelint install, a crashed process) ever fails the build.
"""

import asyncio
import logging
import subprocess

from .config import ThemeConfig
from .errors import SdcBuildError
from .output import log_error, log_report, log_warning
from .subprocess_utils import find_node_tool, safe_run

logger = logging.getLogger(__name__)

# Formatters shipped with stylelint; anything else is a custom formatter module
BUILTIN_FORMATTERS = ("compact", "github", "json", "string", "tap", "unix", "verbose")

# stylelint exit status when problems were reported
EXIT_LINT_PROBLEMS = 2


class StyleLinter:
    """Advisory stylelint runner."""

    def __init__(self, config: ThemeConfig) -> None:
        self.config = config

    def build_command(self, tool: str) -> list[str]:
        cmd = [tool, *self.config.lint_patterns]
        cmd.extend(["--ignore-pattern", self.config.lint_ignore, "--allow-empty-input"])
        formatter = self.config.lint_formatter
        if formatter in BUILTIN_FORMATTERS:
            cmd.extend(["--formatter", formatter])
        else:
            cmd.extend(["--custom-formatter", formatter])
        return cmd

    def lint(self) -> str:
        """Lint and surface the report.

        Returns:
            The report text ("" when clean or when linting could not run)
        """
        try:
            tool = find_node_tool("stylelint", self.config.project_dir)
            completed = safe_run(
                self.build_command(tool),
                cwd=self.config.project_dir,
                capture_output=True,
                text=True,
            )
        except (SdcBuildError, OSError, subprocess.SubprocessError) as e:
            log_error(f"Error linting CSS: {e}")
            return ""

        report = (completed.stdout or "").strip()
        if completed.returncode == EXIT_LINT_PROBLEMS and not report:
            # stylelint 16+ prints problems to stderr
            report = (completed.stderr or "").strip()
        elif completed.returncode not in (0, EXIT_LINT_PROBLEMS) and completed.stderr:
            log_warning(f"stylelint exited with status {completed.returncode}: {completed.stderr.strip()}")

        if report:
            log_report(report)
        else:
            logger.debug("stylelint reported no problems")
        return report

    async def run(self) -> str:
        return await asyncio.to_thread(self.lint)
