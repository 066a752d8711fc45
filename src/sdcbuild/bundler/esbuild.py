"""esbuild-backed bundler.

EsbuildBundler implements the Bundler contract on top of the esbuild CLI:

1. Entries are expanded from the declared entry points
2. Entry loader plugins (e.g. SassPlugin) compile the entries they claim
3. esbuild bundles the remaining script entries with code splitting and
   writes its metafile to a temporary directory
4. The merged output manifest is handed to every post-build hook in plugin
   order; a failing hook fails the build

esbuild's own incremental context is only reachable from its JS/Go APIs, so
EsbuildContext keeps the resolved options and re-invokes the full build for
each rebuild request.
"""

import asyncio
import json
import logging
import tempfile
import time
from pathlib import Path

from ..build.targets import BuildTarget, TargetKind
from ..errors import BundlerError, SdcBuildError
from ..output import log_report
from ..subprocess_utils import find_node_tool, safe_run
from .models import BuildOptions, BuildResult, Metafile
from .plugins import BuildEndHook, EntryLoader

logger = logging.getLogger(__name__)


class EsbuildBundler:
    """Bundler driving the esbuild CLI."""

    def build_command(self, tool: str, targets: list[BuildTarget], options: BuildOptions, metafile: Path) -> list[str]:
        """Build the esbuild command line.

        Args:
            tool: Path to the esbuild executable
            targets: Script entries to bundle
            options: Build options
            metafile: Where esbuild writes its metafile

        Returns:
            Command as a list of arguments
        """
        cmd = [tool]
        cmd.extend(t.relative_to(options.project_dir) for t in targets)
        if options.bundle:
            cmd.append("--bundle")
        cmd.extend(
            [
                f"--outdir={options.outdir}",
                f"--outbase={options.outdir}",
                f"--entry-names={options.entry_names}",
                f"--chunk-names={options.chunk_names}",
                f"--format={options.format}",
                f"--target={options.target}",
                f"--log-level={options.log_level}",
                f"--metafile={metafile}",
            ]
        )
        if options.splitting:
            cmd.append("--splitting")
        if options.minify:
            cmd.append("--minify")
        if options.sourcemap:
            cmd.append("--sourcemap")
        cmd.extend(f"--external:{pattern}" for pattern in options.external)
        return cmd

    async def _run_esbuild(self, targets: list[BuildTarget], options: BuildOptions) -> Metafile:
        if not targets:
            return Metafile()

        tool = find_node_tool("esbuild", options.project_dir)
        with tempfile.TemporaryDirectory(prefix="sdcbuild-") as tmp:
            metafile_path = Path(tmp) / "meta.json"
            cmd = self.build_command(tool, targets, options, metafile_path)
            logger.debug(f"Running: {' '.join(cmd)}")

            completed = await asyncio.to_thread(
                safe_run,
                cmd,
                cwd=options.project_dir,
                capture_output=True,
                text=True,
            )
            if completed.returncode != 0:
                raise BundlerError("esbuild", completed.returncode, completed.stderr or "")

            # esbuild reports its output summary on stderr at log level "info"
            if completed.stderr and completed.stderr.strip():
                log_report(completed.stderr)

            try:
                data = json.loads(metafile_path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                raise BundlerError("esbuild", 0, f"Unreadable metafile: {e}") from e

        return Metafile.from_dict(data)

    async def build(self, options: BuildOptions) -> BuildResult:
        """Run one full build and its post-build hooks.

        Raises:
            ToolNotFoundError: If a required tool is not installed
            BundlerError: If a tool fails
            SdcBuildError: If a post-build hook fails
        """
        start = time.time()
        targets = options.expand_entries()
        loaders = [p for p in options.plugins if isinstance(p, EntryLoader)]
        hooks = [p for p in options.plugins if isinstance(p, BuildEndHook)]

        claimed: dict[int, list[BuildTarget]] = {id(loader): [] for loader in loaders}
        remaining: list[BuildTarget] = []
        for target in targets:
            owner = next((loader for loader in loaders if loader.handles(target)), None)
            if owner is not None:
                claimed[id(owner)].append(target)
            elif target.kind == TargetKind.SCRIPT:
                remaining.append(target)
            else:
                logger.warning(f"No loader for style entry {target.path}, skipping")

        options.output_dir.mkdir(parents=True, exist_ok=True)

        metafile = Metafile()
        for loader in loaders:
            metafile.merge(await loader.compile(claimed[id(loader)], options))
        metafile.merge(await self._run_esbuild(remaining, options))

        result = BuildResult(metafile=metafile, entries=targets, elapsed=time.time() - start)
        logger.debug(f"Build produced {result.output_count} outputs in {result.elapsed:.2f}s")

        for hook in hooks:
            logger.debug(f"Running post-build hook: {hook.name}")
            await hook.on_end(result)

        return result

    def context(self, options: BuildOptions) -> "EsbuildContext":
        """Create a persistent context for repeated rebuilds."""
        return EsbuildContext(self, options)


class EsbuildContext:
    """Incremental build context bound to one set of options."""

    def __init__(self, bundler: EsbuildBundler, options: BuildOptions) -> None:
        self.bundler = bundler
        self.options = options
        self.rebuild_count = 0
        self._disposed = False

    async def rebuild(self) -> BuildResult:
        """Rebuild with the context's options, re-running post-build hooks.

        Raises:
            SdcBuildError: If the context was disposed
        """
        if self._disposed:
            raise SdcBuildError("Build context has been disposed")
        self.rebuild_count += 1
        return await self.bundler.build(self.options)

    def dispose(self) -> None:
        self._disposed = True
