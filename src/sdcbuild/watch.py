"""Watch loop - rebuilds the theme when sources change.

watchdog observers run in their own threads. Their handler only filters
events and forwards accepted ones onto the asyncio loop's queue with
call_soon_threadsafe. A single consumer task drives the pipeline:

    IDLE --(source change)--> REBUILDING --(pipeline finished)--> IDLE

One rebuild cycle:
    1. wait for a change signal
    2. wait the debounce interval, then drain everything queued meanwhile
       (a burst of saves becomes one rebuild)
    3. Cleanup -> Vendor copy -> incremental rebuild -> Lint (style changes only)

Only files under a source segment (e.g. components/card/src/) trigger a
rebuild. The relocated artifacts written next to each component are ignored,
so a rebuild never triggers itself.

Rebuild failures are logged and the loop keeps waiting for the next change.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .build.targets import TargetKind
from .bundler.plugins import IncrementalBuild
from .cleanup import CleanupStage
from .config import ThemeConfig
from .errors import SdcBuildError
from .lint import StyleLinter
from .output import log, log_error
from .vendor import VendorAssetCopier

logger = logging.getLogger(__name__)

# Access notifications that do not change file contents
IGNORED_EVENT_TYPES = ("opened", "closed_no_write")


class WatchState(Enum):
    """State of the watch loop."""

    IDLE = "idle"
    REBUILDING = "rebuilding"


@dataclass(frozen=True)
class ChangeEvent:
    """A file system change accepted by the watch filter."""

    event_type: str
    path: Path


class SourceChangeHandler(FileSystemEventHandler):
    """watchdog handler forwarding file events to a WatchLoop.

    Runs on the observer thread; never touches pipeline state directly.
    """

    def __init__(self, watch_loop: "WatchLoop") -> None:
        super().__init__()
        self.watch_loop = watch_loop

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type in IGNORED_EVENT_TYPES:
            return
        # A move counts if either end is a source: moving a file out of src/
        # must still clear the artifact relocated from it.
        for raw_path in (getattr(event, "dest_path", ""), event.src_path):
            if raw_path and self.watch_loop.notify(event.event_type, Path(os.fsdecode(raw_path))):
                return


class WatchLoop:
    """Single-consumer rebuild loop.

    Args:
        config: Theme configuration
        cleanup: Cleanup stage run before each rebuild
        vendor: Vendor copier run before each rebuild
        build_context: Persistent incremental build context
        linter: Linter run after rebuilds triggered by style changes
    """

    def __init__(
        self,
        config: ThemeConfig,
        cleanup: CleanupStage,
        vendor: VendorAssetCopier,
        build_context: IncrementalBuild,
        linter: StyleLinter,
    ) -> None:
        self.config = config
        self.cleanup = cleanup
        self.vendor = vendor
        self.build_context = build_context
        self.linter = linter
        self.state = WatchState.IDLE
        self.rebuild_count = 0
        self.failure_count = 0
        self._queue: asyncio.Queue[Optional[ChangeEvent]] = asyncio.Queue()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._observer: Optional[Any] = None

    def is_source_change(self, path: Path) -> bool:
        """Whether a changed path should trigger a rebuild.

        The path must lie inside the project below a source segment, and must
        not be a directory.
        """
        try:
            rel = path.relative_to(self.config.project_dir)
        except ValueError:
            return False
        if self.config.src_dir not in rel.parts[:-1]:
            return False
        return not path.is_dir()

    def is_style_source(self, path: Path) -> bool:
        return TargetKind.for_path(path) == TargetKind.STYLE

    def notify(self, event_type: str, path: Path) -> bool:
        """Offer a file system event; thread-safe.

        Returns:
            True if the event was accepted and a rebuild requested
        """
        if not self.is_source_change(path):
            logger.debug(f"Ignoring {event_type} on non-source path {path}")
            return False

        event = ChangeEvent(event_type=event_type, path=path)
        loop = self._loop
        if loop is not None and loop.is_running():
            loop.call_soon_threadsafe(self._queue.put_nowait, event)
        else:
            self._queue.put_nowait(event)
        return True

    def stop(self) -> None:
        """Ask the loop to exit after the current cycle; thread-safe."""
        loop = self._loop
        if loop is not None and loop.is_running():
            loop.call_soon_threadsafe(self._queue.put_nowait, None)
        else:
            self._queue.put_nowait(None)

    def start_observer(self) -> None:
        """Start watching every existing watch root recursively."""
        observer = Observer()
        handler = SourceChangeHandler(self)
        for root in self.config.watch_roots:
            if root.is_dir():
                observer.schedule(handler, str(root), recursive=True)
                logger.debug(f"Watching {root}")
            else:
                logger.debug(f"Watch root does not exist, skipping: {root}")
        observer.start()
        self._observer = observer

    def stop_observer(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None

    async def _collect(self, first: ChangeEvent) -> tuple[list[ChangeEvent], bool]:
        """Debounce, then drain pending events.

        Returns:
            (events, stop_requested)
        """
        await asyncio.sleep(self.config.debounce)
        events = [first]
        stop_requested = False
        while not self._queue.empty():
            event = self._queue.get_nowait()
            if event is None:
                stop_requested = True
                break
            events.append(event)
        return events, stop_requested

    async def _build(self) -> bool:
        """Cleanup, vendor copy and rebuild; failures are logged, not raised."""
        try:
            await self.cleanup.run()
            await self.vendor.run()
            await self.build_context.rebuild()
            return True
        except SdcBuildError as e:
            self.failure_count += 1
            log_error(f"Error during rebuild: {e}")
            return False
        except Exception as e:
            # Keep watching whatever broke this cycle
            self.failure_count += 1
            log_error(f"Unexpected error during rebuild: {type(e).__name__}: {e}")
            logger.debug("Rebuild traceback", exc_info=True)
            return False

    async def rebuild(self, events: list[ChangeEvent]) -> bool:
        """Run one full pipeline cycle for a batch of changes.

        Style changes are linted whether or not the build succeeded.

        Returns:
            True if the build completed without error
        """
        self.state = WatchState.REBUILDING
        try:
            for path in dict.fromkeys(e.path for e in events):
                event_type = next(e.event_type for e in reversed(events) if e.path == path)
                log(f"🔨 {event_type} - {self.config.relative(path)}")

            succeeded = await self._build()
            if any(self.is_style_source(e.path) for e in events):
                await self.linter.run()
            return succeeded
        finally:
            self.rebuild_count += 1
            self.state = WatchState.IDLE

    async def run(self) -> None:
        """Consume change signals until stop() is called."""
        self._loop = asyncio.get_running_loop()
        while True:
            first = await self._queue.get()
            if first is None:
                break
            events, stop_requested = await self._collect(first)
            await self.rebuild(events)
            if stop_requested:
                break

    async def serve(self) -> None:
        """Start the observers and run the loop until stopped or cancelled."""
        self._loop = asyncio.get_running_loop()
        self.start_observer()
        try:
            await self.run()
        finally:
            self.stop_observer()
