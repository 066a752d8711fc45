"""Top-level build sequencing.

One-shot build:
    [1/3] Cleanup -> [2/3] Vendor copy -> [3/3] Build (+ relocation hook)
    Exit status 0 on success, 1 on a build or relocation error.

Watch:
    Cleanup -> Vendor copy -> initial build through a persistent context,
    then the watch loop until interrupted. Build errors are logged and the
    process keeps watching.

Each stage fully completes before the next starts; this ordering is what
keeps cleanup from racing the bundler or the relocation pass.
"""

import asyncio
import logging
from typing import Optional

from .build.build_profiles import print_profile_banner
from .bundler.esbuild import EsbuildBundler
from .bundler.models import BuildOptions
from .bundler.plugins import Bundler
from .bundler.sass import SassPlugin
from .cleanup import CleanupStage
from .config import ThemeConfig
from .errors import SdcBuildError
from .lint import StyleLinter
from .output import TimedLogger, log_detail, log_error, log_success
from .relocation import OutputRelocationPlugin
from .vendor import VendorAssetCopier
from .watch import WatchLoop

logger = logging.getLogger(__name__)


class Orchestrator:
    """Wires the pipeline stages for one theme.

    Args:
        config: Theme configuration
        bundler: Bundler implementation (defaults to EsbuildBundler)
    """

    def __init__(self, config: ThemeConfig, bundler: Optional[Bundler] = None) -> None:
        self.config = config
        self.bundler: Bundler = bundler if bundler is not None else EsbuildBundler()
        self.cleanup = CleanupStage(config)
        self.vendor = VendorAssetCopier(config)
        self.linter = StyleLinter(config)
        self.relocation = OutputRelocationPlugin(config)
        self.watch_loop: Optional[WatchLoop] = None

    def build_options(self) -> BuildOptions:
        return BuildOptions.from_config(self.config, plugins=(SassPlugin(), self.relocation))

    async def prepare(self) -> None:
        """Cleanup then vendor copy; both log their own failures."""
        with TimedLogger("Cleaning output", phase=(1, 3)) as timer:
            removed = await self.cleanup.run()
            timer.detail(f"Removed {len(removed)} relocated artifact(s)")
        with TimedLogger("Copying vendor assets", phase=(2, 3)) as timer:
            copied = await self.vendor.run()
            timer.detail(f"Copied {len(copied)} vendor asset(s)")

    async def build(self) -> int:
        """One-shot build.

        Returns:
            Process exit status
        """
        print_profile_banner(self.config.profile)
        try:
            await self.prepare()
            with TimedLogger("Building theme", phase=(3, 3)):
                result = await self.bundler.build(self.build_options())
        except SdcBuildError as e:
            log_error(f"Error during build: {e}")
            return 1

        report = self.relocation.last_report
        moved = report.moved_count if report else 0
        log_detail(f"{result.output_count} output(s), {moved} relocated to components")
        log_success(f"✓ Build finished in {result.elapsed:.2f}s")
        return 0

    async def watch(self) -> int:
        """Build, then rebuild on every source change until stopped."""
        print_profile_banner(self.config.profile)
        await self.prepare()

        context = self.bundler.context(self.build_options())
        try:
            with TimedLogger("Building theme", phase=(3, 3)):
                try:
                    await context.rebuild()
                except SdcBuildError as e:
                    log_error(f"Error during build: {e}")

            self.watch_loop = WatchLoop(
                config=self.config,
                cleanup=self.cleanup,
                vendor=self.vendor,
                build_context=context,
                linter=self.linter,
            )
            log_success("🚀 Watch has started")
            await self.watch_loop.serve()
        finally:
            context.dispose()
        return 0

    def run(self) -> int:
        """Run the mode selected by the config and return the exit status."""
        if self.config.watch:
            return asyncio.run(self.watch())
        return asyncio.run(self.build())
