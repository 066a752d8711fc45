"""Sass entry loader.

Compiles every .scss/.sass entry with the Dart Sass CLI in a single
invocation using its many-to-many "input:output" form:

    sass --load-path=node_modules --style=compressed --no-source-map \\
        src/scss/style.scss:dist/css/style.css \\
        components/card/src/c-card.scss:dist/css/c-card.css

Outputs follow the bundler's entry naming template with the "css" extension,
so compiled styles land where an esbuild sass plugin would put them.
"""

import asyncio
import logging

from ..build.targets import BuildTarget, TargetKind
from ..errors import BundlerError
from ..subprocess_utils import find_node_tool, safe_run
from .models import BuildOptions, Metafile, OutputMeta

logger = logging.getLogger(__name__)

SASS_EXTENSIONS = (".scss", ".sass")


class SassPlugin:
    """EntryLoader compiling Sass entries with the sass CLI.

    Args:
        load_paths: Extra directories searched by @use/@import (relative to the project)
    """

    name = "sass"

    def __init__(self, load_paths: tuple[str, ...] = ("node_modules",)) -> None:
        self.load_paths = load_paths

    def handles(self, target: BuildTarget) -> bool:
        return target.kind == TargetKind.STYLE and target.path.suffix.lower() in SASS_EXTENSIONS

    def build_command(self, tool: str, targets: list[BuildTarget], options: BuildOptions) -> list[str]:
        """Build the sass command line for the given entries."""
        cmd = [tool]
        cmd.extend(f"--load-path={p}" for p in self.load_paths)
        cmd.append("--style=compressed" if options.minify else "--style=expanded")
        cmd.append("--source-map" if options.sourcemap else "--no-source-map")
        for target in targets:
            cmd.append(f"{target.relative_to(options.project_dir)}:{options.entry_output(target, 'css')}")
        return cmd

    async def compile(self, targets: list[BuildTarget], options: BuildOptions) -> Metafile:
        """Compile the Sass entries and report the emitted stylesheets.

        Raises:
            ToolNotFoundError: If sass is not installed
            BundlerError: If sass exits with a non-zero status
        """
        metafile = Metafile()
        if not targets:
            return metafile

        tool = find_node_tool("sass", options.project_dir)
        cmd = self.build_command(tool, targets, options)
        logger.debug(f"Running: {' '.join(cmd)}")

        completed = await asyncio.to_thread(
            safe_run,
            cmd,
            cwd=options.project_dir,
            capture_output=True,
            text=True,
        )
        if completed.returncode != 0:
            raise BundlerError("sass", completed.returncode, completed.stderr or completed.stdout or "")

        for target in targets:
            output = options.entry_output(target, "css")
            output_path = options.project_dir / output
            size = output_path.stat().st_size if output_path.exists() else 0
            metafile.outputs[output] = OutputMeta(
                entry_point=target.relative_to(options.project_dir),
                bytes=size,
            )
        return metafile
