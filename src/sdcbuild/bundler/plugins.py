"""Plugin and bundler protocols.

The bundler knows two kinds of plugin, both optional per plugin object:

- EntryLoader: takes ownership of entries it handles (e.g. Sass sources)
  and compiles them itself, reporting what it emitted as a Metafile.
- BuildEndHook: awaited once after every build or rebuild with the full
  BuildResult (e.g. output relocation).

Plugins run in the order they are listed in BuildOptions.plugins.
"""

from typing import Protocol, runtime_checkable

from ..build.targets import BuildTarget
from .models import BuildOptions, BuildResult, Metafile


@runtime_checkable
class BuildEndHook(Protocol):
    """Post-build hook receiving each build's output manifest."""

    name: str

    async def on_end(self, result: BuildResult) -> None:
        """Called after a build or rebuild completes.

        Args:
            result: The completed build; result.metafile lists every emitted file

        Raises:
            Any exception fails the build it was called for.
        """
        ...


@runtime_checkable
class EntryLoader(Protocol):
    """Plugin that compiles a subset of entries with its own tool."""

    name: str

    def handles(self, target: BuildTarget) -> bool:
        """Whether this loader compiles the given entry."""
        ...

    async def compile(self, targets: list[BuildTarget], options: BuildOptions) -> Metafile:
        """Compile the claimed entries into options.output_dir.

        Returns:
            Metafile describing the emitted files
        """
        ...


@runtime_checkable
class IncrementalBuild(Protocol):
    """Persistent build context supporting repeated rebuilds."""

    async def rebuild(self) -> BuildResult: ...

    def dispose(self) -> None: ...


@runtime_checkable
class Bundler(Protocol):
    """Bundler contract consumed by the orchestrator."""

    async def build(self, options: BuildOptions) -> BuildResult: ...

    def context(self, options: BuildOptions) -> IncrementalBuild: ...
